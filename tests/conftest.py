"""Pytest fixtures for dynamotest tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from dynamotest.config import DynamoTestSettings
from dynamotest.infra.docker import DockerRuntime, SandboxStatus
from dynamotest.session import SandboxSession

CONTAINER_ID = "3f2a9c1d7e8b4a5c6d7e8f9a0b1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e6f7a8b9c"
ENDPOINT = "127.0.0.1:49153"


def client_error(code: str, message: str = "", operation: str = "CreateTable") -> ClientError:
    """Build a botocore ClientError the way the DynamoDB client raises it."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class MockDynamoDB:
    """Mock low-level DynamoDB client recording loader calls."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, Any]] = {}
        self.items: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.create_errors: dict[str, Exception] = {}
        self.write_errors: dict[str, Exception] = {}
        self.unprocessed: dict[str, int] = {}

    def create_table(self, **kwargs: Any) -> dict[str, Any]:
        name = kwargs["TableName"]
        self.calls.append(("create_table", name))
        if name in self.create_errors:
            raise self.create_errors[name]
        if name in self.tables:
            raise client_error("ResourceInUseException", f"Table already exists: {name}")
        self.tables[name] = kwargs
        self.items[name] = []
        return {"TableDescription": {"TableName": name, "TableStatus": "ACTIVE"}}

    def batch_write_item(self, **kwargs: Any) -> dict[str, Any]:
        request_items = kwargs["RequestItems"]
        unprocessed: dict[str, list[dict[str, Any]]] = {}
        for name, requests in request_items.items():
            self.calls.append(("batch_write_item", name, len(requests)))
            if name in self.write_errors:
                raise self.write_errors[name]
            if name not in self.tables:
                raise client_error(
                    "ResourceNotFoundException",
                    "Requested resource not found",
                    "BatchWriteItem",
                )
            skipped = self.unprocessed.get(name, 0)
            accepted = requests[: len(requests) - skipped] if skipped else requests
            self.items[name].extend(r["PutRequest"]["Item"] for r in accepted)
            if skipped:
                unprocessed[name] = requests[len(requests) - skipped :]
        return {"UnprocessedItems": unprocessed}


@pytest.fixture
def mock_dynamodb() -> MockDynamoDB:
    """Create a mock DynamoDB client."""
    return MockDynamoDB()


@pytest.fixture
def settings() -> DynamoTestSettings:
    """Settings with a tiny retry budget and no backoff."""
    return DynamoTestSettings(
        connect_max_attempts=3,
        connect_base_delay=0.0,
        connect_max_delay=0.0,
    )


@pytest.fixture
def mock_runtime() -> MagicMock:
    """A DockerRuntime double whose container starts and resolves cleanly."""
    runtime = MagicMock(spec=DockerRuntime)
    runtime.ping.return_value = "27.3.1"
    runtime.run.return_value = CONTAINER_ID
    runtime.port.return_value = ENDPOINT
    runtime.inspect_status.return_value = SandboxStatus.RUNNING
    runtime.has_image.return_value = True
    return runtime


@pytest.fixture
def simple_table() -> dict[str, Any]:
    """CreateTable arguments for a table keyed by a string ``id``."""
    return {
        "TableName": "my-table",
        "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
        "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
        "BillingMode": "PAY_PER_REQUEST",
    }


@pytest.fixture
def reset_session() -> Iterator[None]:
    """Drop the session singleton before and after a test."""
    SandboxSession.reset_instance()
    yield
    SandboxSession.reset_instance()
