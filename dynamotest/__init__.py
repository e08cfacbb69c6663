"""dynamotest - disposable DynamoDB Local instances for tests.

dynamotest starts DynamoDB Local in Docker on a random loopback port,
hands back a connected boto3 client, creates and seeds tables, and removes
the container when the test (or the whole run) is over.

Per-test sandbox:
    >>> from dynamotest import TableSetup, new_dynamodb
    >>>
    >>> client, dispose = new_dynamodb()
    >>> try:
    ...     client.prep_tables(TableSetup(table=schema, initial_data=items))
    ...     out = client.query(
    ...         TableName="my-table",
    ...         KeyConditionExpression="id = :id",
    ...         ExpressionAttributeValues={":id": {"S": "123"}},
    ...     )
    ... finally:
    ...     dispose()

Shared sandbox for a whole run:
    >>> from dynamotest import current_client, run_with_session
    >>>
    >>> exit_code = run_with_session(lambda: pytest.main(["tests"]))
    >>> # inside tests
    >>> table = current_client().create_testing_table("users", schema, user)

Failure channels:
    SandboxFault: Docker unavailable, container start/removal failed,
        emulator unreachable, session not started, bad seed rows.
    LoadError: a table could not be created or seeded (carries table_name).
"""

from dynamotest.client import Client, build_dynamodb_client, connect, new_dynamodb
from dynamotest.config import DynamoTestSettings, get_settings, load_settings
from dynamotest.data import (
    LoadResult,
    TableSetup,
    TableState,
    create_single_table,
    from_item,
    load,
    to_item,
)
from dynamotest.errors import (
    ConnectError,
    DisposeError,
    LoadError,
    MarshalError,
    ProvisionError,
    RuntimeUnavailableError,
    SandboxFault,
    SeedWriteError,
    SessionError,
    SessionNotInitializedError,
    TableCreateError,
)
from dynamotest.infra import Sandbox, SandboxStatus, provision
from dynamotest.session import SandboxSession, current_client, run_with_session

__version__ = "0.1.0"

__all__ = [
    # Sandbox lifecycle
    "Sandbox",
    "SandboxStatus",
    "provision",
    "connect",
    "build_dynamodb_client",
    "new_dynamodb",
    "Client",
    # Session
    "SandboxSession",
    "run_with_session",
    "current_client",
    # Loading
    "TableSetup",
    "TableState",
    "LoadResult",
    "load",
    "create_single_table",
    "to_item",
    "from_item",
    # Config
    "DynamoTestSettings",
    "get_settings",
    "load_settings",
    # Errors
    "SandboxFault",
    "RuntimeUnavailableError",
    "ProvisionError",
    "DisposeError",
    "ConnectError",
    "SessionNotInitializedError",
    "SessionError",
    "MarshalError",
    "LoadError",
    "TableCreateError",
    "SeedWriteError",
]
