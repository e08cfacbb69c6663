"""Tests for the example repository, run against the shared session sandbox."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from dynamotest import Client
from examples.repository_example import (
    ExampleModel,
    ItemNotFoundError,
    RepositoryExample,
    get_schema,
)
from tests.integration.conftest import requires_docker

pytestmark = requires_docker


@pytest.fixture
def model() -> ExampleModel:
    return ExampleModel(id="1", sk="1", value="example")


class TestRepositoryExample:
    """Each test gets its own table on the same DynamoDB Local container."""

    def test_create(
        self,
        dynamo_session_client: Client,
        dynamo_table_factory: Callable[..., str],
        model: ExampleModel,
    ) -> None:
        table = dynamo_table_factory("test", get_schema())
        repo = RepositoryExample(dynamo_session_client, table)

        repo.create(model)

        assert repo.read("1") == model

    def test_read(
        self,
        dynamo_session_client: Client,
        dynamo_table_factory: Callable[..., str],
        model: ExampleModel,
    ) -> None:
        table = dynamo_table_factory("test", get_schema(), model)
        repo = RepositoryExample(dynamo_session_client, table)

        result = repo.read("1")

        assert result.id == "1"
        assert result.value == "example"

    def test_read_missing(
        self,
        dynamo_session_client: Client,
        dynamo_table_factory: Callable[..., str],
    ) -> None:
        repo = RepositoryExample(dynamo_session_client, dynamo_table_factory("test", get_schema()))

        with pytest.raises(ItemNotFoundError):
            repo.read("nope")

    def test_update(
        self,
        dynamo_session_client: Client,
        dynamo_table_factory: Callable[..., str],
        model: ExampleModel,
    ) -> None:
        table = dynamo_table_factory("test", get_schema(), model)
        repo = RepositoryExample(dynamo_session_client, table)

        repo.update(model.model_copy(update={"value": "updated-value"}))

        assert repo.read("1").value == "updated-value"

    def test_update_missing_item(
        self,
        dynamo_session_client: Client,
        dynamo_table_factory: Callable[..., str],
        model: ExampleModel,
    ) -> None:
        repo = RepositoryExample(dynamo_session_client, dynamo_table_factory("test", get_schema()))

        with pytest.raises(ItemNotFoundError):
            repo.update(model)

    def test_tables_are_isolated(
        self,
        dynamo_table_factory: Callable[..., str],
        model: ExampleModel,
    ) -> None:
        first = dynamo_table_factory("test", get_schema(), model)
        second = dynamo_table_factory("test", get_schema(), model)
        assert first != second
