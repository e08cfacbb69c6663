"""Example: testing a DynamoDB repository against DynamoDB Local.

The repository below is ordinary application code; it only needs an
object with ``query``, ``put_item`` and ``update_item``. Its tests live in
``tests/integration/test_repository_example.py`` and use the
``dynamo_table_factory`` fixture, which creates a uniquely named table on
one sandbox shared by the whole run.

Usage:
    python examples/repository_example.py
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from botocore.exceptions import ClientError
from pydantic import BaseModel, ConfigDict, Field

from dynamotest import from_item, to_item

logger = logging.getLogger(__name__)


class DBClient(Protocol):
    def query(self, **kwargs: Any) -> dict[str, Any]: ...

    def put_item(self, **kwargs: Any) -> dict[str, Any]: ...

    def update_item(self, **kwargs: Any) -> dict[str, Any]: ...


class RepositoryError(Exception):
    """Raised when the repository cannot complete an operation."""

    pass


class ItemNotFoundError(RepositoryError):
    pass


class ExampleModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="pk")
    sk: str
    value: str


def get_schema() -> dict[str, Any]:
    """CreateTable arguments for the example table. TableName is filled in per test."""
    return {
        "TableName": "example",
        "AttributeDefinitions": [
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


class RepositoryExample:
    def __init__(self, client: DBClient, table: str) -> None:
        self.client = client
        self.table = table

    def create(self, model: ExampleModel) -> None:
        try:
            self.client.put_item(TableName=self.table, Item=to_item(model))
        except ClientError as e:
            raise RepositoryError(f"error inserting: {e}") from e

    def read(self, id: str) -> ExampleModel:
        try:
            result = self.client.query(
                TableName=self.table,
                KeyConditionExpression="pk = :pk",
                ExpressionAttributeValues={":pk": {"S": id}},
            )
        except ClientError as e:
            raise RepositoryError(f"error querying dynamo: {e}") from e

        items = result.get("Items", [])
        if not items:
            raise ItemNotFoundError(f"not found: {id}")
        # Several sort keys may share a partition key; the last one wins.
        return from_item(items[-1], ExampleModel)

    def update(self, model: ExampleModel) -> None:
        """Set ``value`` on an existing item; fails if the item does not exist."""
        try:
            self.client.update_item(
                TableName=self.table,
                Key={"pk": {"S": model.id}, "sk": {"S": model.sk}},
                UpdateExpression="SET #value = :value",
                ConditionExpression="attribute_exists(#pk)",
                ExpressionAttributeNames={"#value": "value", "#pk": "pk"},
                ExpressionAttributeValues={":value": {"S": model.value}},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ItemNotFoundError(f"not found: {model.id}") from e
            raise RepositoryError(f"failed to update item of {model.id}: {e}") from e


def main() -> None:
    from dynamotest import new_dynamodb

    logging.basicConfig(level=logging.INFO)

    client, dispose = new_dynamodb()
    try:
        table = client.create_testing_table("example", get_schema())
        repo = RepositoryExample(client, table)

        repo.create(ExampleModel(id="1", sk="1", value="example"))
        repo.update(ExampleModel(id="1", sk="1", value="updated-value"))
        print(repo.read("1"))
    finally:
        dispose()


if __name__ == "__main__":
    main()
