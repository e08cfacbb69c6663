"""DynamoDB client bound to a sandbox.

Example:
    >>> from dynamotest import new_dynamodb
    >>>
    >>> client, dispose = new_dynamodb()
    >>> try:
    ...     table = client.create_testing_table("users", schema, {"id": "1"})
    ...     client.query(
    ...         TableName=table,
    ...         KeyConditionExpression="id = :id",
    ...         ExpressionAttributeValues={":id": {"S": "1"}},
    ...     )
    ... finally:
    ...     dispose()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from dynamotest.config import DynamoTestSettings, get_settings
from dynamotest.data.seeding import LoadResult, TableSetup, create_single_table, load
from dynamotest.errors import ConnectError, ErrorContext, RetryExhaustedError
from dynamotest.errors.retry import RetryPolicy
from dynamotest.infra.docker import DockerRuntime, provision

logger = logging.getLogger(__name__)

# Hard-coded credentials; values are irrelevant for DynamoDB Local, which
# performs no authentication.
DUMMY_CREDENTIALS = {
    "aws_access_key_id": "dummy",
    "aws_secret_access_key": "dummy",
    "aws_session_token": "dummy",
}


def build_dynamodb_client(
    endpoint_url: str,
    settings: DynamoTestSettings | None = None,
    max_attempts: int | None = None,
) -> Any:
    """Build a low-level boto3 DynamoDB client for ``endpoint_url``.

    A new boto3 session is created on every call so no state leaks between
    attempts.
    """
    settings = settings or get_settings()
    retries: dict[str, Any] = {"mode": "standard"}
    if max_attempts is not None:
        retries["max_attempts"] = max_attempts

    config = Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries=retries,
    )
    session = boto3.Session(region_name=settings.region, **DUMMY_CREDENTIALS)
    return session.client("dynamodb", endpoint_url=endpoint_url, config=config)


def clone_with_max_attempts(dynamodb: BaseClient, max_attempts: int) -> Any:
    """Return a client for the same endpoint whose botocore retry allowance is ``max_attempts``.

    Timeouts and every other option of the original client's config are kept.
    """
    config = dynamodb.meta.config.merge(
        Config(retries={"mode": "standard", "max_attempts": max_attempts})
    )
    session = boto3.Session(region_name=dynamodb.meta.region_name, **DUMMY_CREDENTIALS)
    return session.client("dynamodb", endpoint_url=dynamodb.meta.endpoint_url, config=config)


def connect(
    endpoint: str,
    settings: DynamoTestSettings | None = None,
    policy: RetryPolicy | None = None,
) -> Any:
    """Connect to DynamoDB Local at ``endpoint`` (``host:port``).

    Every attempt builds a fresh client and issues ``list_tables`` until the
    emulator answers. The attempt budget is the only bound; there is no
    way to cancel a connection in progress.

    Raises:
        ConnectError: If the emulator never answered within the retry budget.
    """
    settings = settings or get_settings()
    policy = policy or RetryPolicy(settings.connect_retry_config())
    endpoint_url = f"http://{endpoint}"
    logger.info(f"Connecting to DynamoDB Local at {endpoint_url}")

    def attempt() -> Any:
        dynamodb = build_dynamodb_client(endpoint_url, settings, max_attempts=1)
        dynamodb.list_tables(Limit=1)
        return dynamodb

    try:
        dynamodb = policy.execute(attempt)
    except RetryExhaustedError as e:
        raise ConnectError(
            f"Could not connect to the Docker instance of DynamoDB Local "
            f"after {e.attempts} attempts",
            context=ErrorContext(endpoint=endpoint),
            cause=e.last_error,
        ) from e

    # The probe client allowed a single attempt; hand out one with the
    # regular botocore retry behaviour.
    return build_dynamodb_client(endpoint_url, settings)


@dataclass(frozen=True)
class Client:
    """A connected DynamoDB client and the container it talks to.

    Operations not defined here are forwarded to the boto3 client, so
    ``client.query(...)`` or ``client.put_item(...)`` work directly.
    """

    dynamodb: Any
    container_id: str
    endpoint: str
    settings: DynamoTestSettings | None = None

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not found on the dataclass itself.
        if name.startswith("__") or name == "dynamodb":
            raise AttributeError(name)
        return getattr(self.dynamodb, name)

    @property
    def url(self) -> str:
        return f"http://{self.endpoint}"

    def with_max_attempts(self, max_attempts: int) -> Any:
        """Return a boto3 client for the same endpoint with a different retry budget."""
        return build_dynamodb_client(self.url, self.settings, max_attempts=max_attempts)

    def prep_tables(self, *setups: TableSetup) -> list[LoadResult]:
        return load(self, *setups, settings=self.settings)

    def create_testing_table(self, prefix: str, schema: Mapping[str, Any], *rows: Any) -> str:
        return create_single_table(self, prefix, schema, *rows, settings=self.settings)


def new_dynamodb(
    settings: DynamoTestSettings | None = None,
    runtime: DockerRuntime | None = None,
) -> tuple[Client, Callable[[], None]]:
    """Start DynamoDB Local in Docker and return a connected client.

    The returned disposer removes the container; call it once the test is
    complete, typically from a ``finally`` block or a fixture teardown.

    Raises:
        RuntimeUnavailableError: If Docker cannot be reached.
        ProvisionError: If the container cannot be started.
        ConnectError: If the emulator never accepts connections.
    """
    settings = settings or get_settings()
    sandbox, dispose = provision(settings, runtime)

    try:
        dynamodb = connect(sandbox.endpoint, settings)
    except ConnectError as e:
        e.context.container_id = sandbox.container_id
        dispose()
        raise

    client = Client(
        dynamodb=dynamodb,
        container_id=sandbox.container_id,
        endpoint=sandbox.endpoint,
        settings=settings,
    )
    return client, dispose
