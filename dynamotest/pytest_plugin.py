"""pytest fixtures for DynamoDB Local sandboxes.

The plugin is registered through the ``pytest11`` entry point, so the
fixtures are available as soon as dynamotest is installed. Nothing
touches Docker until a fixture is requested.

- ``dynamo_client``: a fresh sandbox per test, removed afterwards.
- ``dynamo_session_client``: one sandbox for the whole run, removed when
  the run finishes.
- ``dynamo_table_factory``: creates uniquely named tables on the session
  sandbox.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from dynamotest.client import Client, new_dynamodb
from dynamotest.config import DynamoTestSettings, get_settings
from dynamotest.data.seeding import create_single_table
from dynamotest.session import SandboxSession


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: test needs a running Docker daemon"
    )


@pytest.fixture(scope="session")
def dynamo_settings() -> DynamoTestSettings:
    return get_settings()


@pytest.fixture
def dynamo_client(dynamo_settings: DynamoTestSettings) -> Iterator[Client]:
    client, dispose = new_dynamodb(dynamo_settings)
    try:
        yield client
    finally:
        dispose()


@pytest.fixture(scope="session")
def dynamo_session_client(dynamo_settings: DynamoTestSettings) -> Iterator[Client]:
    session = SandboxSession.get_instance()
    if session.is_started:
        # Started by run_with_session; that caller owns the teardown.
        yield session.client
        return

    with session.scope(dynamo_settings) as client:
        yield client


@pytest.fixture
def dynamo_table_factory(
    dynamo_session_client: Client,
) -> Callable[..., str]:
    """Return ``make(prefix, schema, *rows) -> table_name`` bound to the session client."""

    def make(prefix: str, schema: dict[str, Any], *rows: Any) -> str:
        return create_single_table(
            dynamo_session_client, prefix, schema, *rows, settings=dynamo_session_client.settings
        )

    return make
