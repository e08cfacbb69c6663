"""Tests for the connection establisher and the sandbox client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import EndpointConnectionError

from dynamotest.client import (
    DUMMY_CREDENTIALS,
    Client,
    build_dynamodb_client,
    connect,
    new_dynamodb,
)
from dynamotest.config import DynamoTestSettings
from dynamotest.errors import ConnectError, ProvisionError
from dynamotest.infra.docker import DockerError
from tests.conftest import CONTAINER_ID, ENDPOINT


def refused() -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url=f"http://{ENDPOINT}")


class TestBuildDynamoDBClient:
    """Tests for build_dynamodb_client()."""

    def test_dummy_credentials_and_region(self, settings: DynamoTestSettings) -> None:
        with patch("dynamotest.client.boto3.Session") as mock_session:
            build_dynamodb_client(f"http://{ENDPOINT}", settings)

        mock_session.assert_called_once_with(region_name="us-east-1", **DUMMY_CREDENTIALS)
        args, kwargs = mock_session.return_value.client.call_args
        assert args == ("dynamodb",)
        assert kwargs["endpoint_url"] == f"http://{ENDPOINT}"
        config = kwargs["config"]
        assert config.connect_timeout == settings.connect_timeout
        assert config.read_timeout == settings.read_timeout
        assert config.retries == {"mode": "standard"}

    def test_max_attempts(self, settings: DynamoTestSettings) -> None:
        with patch("dynamotest.client.boto3.Session") as mock_session:
            build_dynamodb_client(f"http://{ENDPOINT}", settings, max_attempts=10)

        config = mock_session.return_value.client.call_args.kwargs["config"]
        assert config.retries == {"mode": "standard", "max_attempts": 10}


class TestConnect:
    """Tests for connect()."""

    def test_connects_after_emulator_warms_up(self, settings: DynamoTestSettings) -> None:
        attempt_client = MagicMock()
        attempt_client.list_tables.side_effect = [refused(), refused(), {"TableNames": []}]
        ready = MagicMock()

        with patch(
            "dynamotest.client.build_dynamodb_client", side_effect=[*[attempt_client] * 3, ready]
        ) as build:
            dynamodb = connect(ENDPOINT, settings)

        assert dynamodb is ready
        assert attempt_client.list_tables.call_count == 3
        attempt_client.list_tables.assert_called_with(Limit=1)
        # Probes allow one attempt each; the returned client uses default retries.
        assert build.call_args_list[0].kwargs == {"max_attempts": 1}
        assert build.call_args_list[-1].args == (f"http://{ENDPOINT}", settings)
        assert build.call_args_list[-1].kwargs == {}

    def test_budget_exhausted(self, settings: DynamoTestSettings) -> None:
        attempt_client = MagicMock()
        last = refused()
        attempt_client.list_tables.side_effect = [refused(), refused(), last]

        with patch("dynamotest.client.build_dynamodb_client", return_value=attempt_client):
            with pytest.raises(ConnectError) as exc_info:
                connect(ENDPOINT, settings)

        error = exc_info.value
        assert "after 3 attempts" in error.message
        assert error.cause is last
        assert error.context.endpoint == ENDPOINT
        assert error.recoverable is False
        assert attempt_client.list_tables.call_count == settings.connect_max_attempts


class TestClient:
    """Tests for the Client wrapper."""

    def test_delegates_to_boto3_client(self) -> None:
        dynamodb = MagicMock()
        dynamodb.query.return_value = {"Items": [], "Count": 0}
        client = Client(dynamodb=dynamodb, container_id=CONTAINER_ID, endpoint=ENDPOINT)

        assert client.query(TableName="users") == {"Items": [], "Count": 0}
        dynamodb.query.assert_called_once_with(TableName="users")

    def test_unknown_dunder_is_not_delegated(self) -> None:
        client = Client(dynamodb=MagicMock(), container_id=CONTAINER_ID, endpoint=ENDPOINT)
        with pytest.raises(AttributeError):
            client.__missing_thing__  # noqa: B018

    def test_url(self) -> None:
        client = Client(dynamodb=MagicMock(), container_id=CONTAINER_ID, endpoint=ENDPOINT)
        assert client.url == "http://127.0.0.1:49153"

    def test_with_max_attempts(self, settings: DynamoTestSettings) -> None:
        client = Client(
            dynamodb=MagicMock(), container_id=CONTAINER_ID, endpoint=ENDPOINT, settings=settings
        )
        with patch("dynamotest.client.build_dynamodb_client") as build:
            admin = client.with_max_attempts(10)

        assert admin is build.return_value
        build.assert_called_once_with("http://127.0.0.1:49153", settings, max_attempts=10)


class TestNewDynamoDB:
    """Tests for new_dynamodb()."""

    def test_returns_connected_client_and_disposer(
        self, mock_runtime: MagicMock, settings: DynamoTestSettings
    ) -> None:
        with patch("dynamotest.client.connect") as mock_connect:
            client, dispose = new_dynamodb(settings, mock_runtime)

        mock_connect.assert_called_once_with(ENDPOINT, settings)
        assert client.dynamodb is mock_connect.return_value
        assert client.container_id == CONTAINER_ID
        assert client.endpoint == ENDPOINT
        assert client.settings is settings

        mock_runtime.remove.assert_not_called()
        dispose()
        mock_runtime.remove.assert_called_once_with(CONTAINER_ID)

    def test_connect_failure_disposes_container(
        self, mock_runtime: MagicMock, settings: DynamoTestSettings
    ) -> None:
        with patch("dynamotest.client.connect", side_effect=ConnectError()):
            with pytest.raises(ConnectError) as exc_info:
                new_dynamodb(settings, mock_runtime)

        assert exc_info.value.context.container_id == CONTAINER_ID
        mock_runtime.remove.assert_called_once_with(CONTAINER_ID)

    def test_provision_failure_skips_connect(
        self, mock_runtime: MagicMock, settings: DynamoTestSettings
    ) -> None:
        mock_runtime.run.side_effect = DockerError("Docker command failed: run")

        with patch("dynamotest.client.connect") as mock_connect:
            with pytest.raises(ProvisionError):
                new_dynamodb(settings, mock_runtime)

        mock_connect.assert_not_called()
