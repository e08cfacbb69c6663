"""Table creation and seed data loading.

Each TableSetup pairs a CreateTable request with the items to write into
the new table. ``load`` walks the setups in order, creates each table and
bulk-writes its items, and stops at the first table that fails:

    DECLARED -> CREATING -> CREATED_EMPTY
                         -> SEEDING -> SEEDED
                         -> FAILED

No rollback happens; tables created before a failure stay in place and
are cleaned up with the sandbox itself.

Example:
    >>> setup = TableSetup(
    ...     table={
    ...         "TableName": "users",
    ...         "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
    ...         "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
    ...         "BillingMode": "PAY_PER_REQUEST",
    ...     },
    ...     initial_data=[{"id": {"S": "123"}, "name": {"S": "John Doe"}}],
    ... )
    >>> load(client, setup)
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from dynamotest.config import DynamoTestSettings, get_settings
from dynamotest.data.marshal import to_item
from dynamotest.errors import SeedWriteError, TableCreateError

if TYPE_CHECKING:
    from dynamotest.client import Client

logger = logging.getLogger(__name__)

# DynamoDB rejects BatchWriteItem requests with more than 25 write requests.
BATCH_WRITE_LIMIT = 25


class TableState(Enum):
    """Lifecycle of a single table within one load call."""

    DECLARED = "declared"
    CREATING = "creating"
    CREATED_EMPTY = "created_empty"
    SEEDING = "seeding"
    SEEDED = "seeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TableState.CREATED_EMPTY, TableState.SEEDED, TableState.FAILED)


class TableWriter(Protocol):
    """The subset of the DynamoDB client the loader calls."""

    def create_table(self, **kwargs: Any) -> dict[str, Any]: ...

    def batch_write_item(self, **kwargs: Any) -> dict[str, Any]: ...


@dataclass
class TableSetup:
    """A table definition plus the items to seed it with.

    Attributes:
        table: CreateTable keyword arguments (TableName, KeySchema,
            AttributeDefinitions, BillingMode, GlobalSecondaryIndexes, ...).
        initial_data: Typed items, written in order.
    """

    table: dict[str, Any]
    initial_data: list[dict[str, Any]] = field(default_factory=list)

    @property
    def table_name(self) -> str:
        return str(self.table.get("TableName", ""))


@dataclass
class LoadResult:
    """Outcome of loading one table."""

    table_name: str
    state: TableState
    item_count: int = 0


def _chunks(items: Sequence[dict[str, Any]], size: int) -> Iterator[list[dict[str, Any]]]:
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def _table_admin(client: TableWriter | Client, settings: DynamoTestSettings) -> TableWriter:
    from dynamotest.client import Client, clone_with_max_attempts

    if isinstance(client, Client):
        return client.with_max_attempts(settings.create_table_max_attempts)
    if isinstance(client, BaseClient):
        return clone_with_max_attempts(client, settings.create_table_max_attempts)
    # Test doubles and other writers are used as given.
    return client


def _create_table(admin: TableWriter, setup: TableSetup) -> None:
    try:
        admin.create_table(**setup.table)
    except (ClientError, BotoCoreError) as e:
        raise TableCreateError(setup.table_name, cause=e, state=TableState.FAILED) from e


def _seed_table(client: TableWriter, setup: TableSetup) -> None:
    table_name = setup.table_name
    puts = [{"PutRequest": {"Item": item}} for item in setup.initial_data]

    for batch in _chunks(puts, BATCH_WRITE_LIMIT):
        try:
            response = client.batch_write_item(RequestItems={table_name: batch})
        except (ClientError, BotoCoreError) as e:
            raise SeedWriteError(table_name, cause=e, state=TableState.FAILED) from e

        unprocessed = (response or {}).get("UnprocessedItems") or {}
        pending = sum(len(requests) for requests in unprocessed.values())
        if pending:
            raise SeedWriteError(
                table_name,
                message=f"Could not write data to table '{table_name}': "
                f"{pending} item(s) left unprocessed",
                state=TableState.FAILED,
                unprocessed=pending,
            )


def load(
    client: TableWriter | Client,
    *setups: TableSetup,
    settings: DynamoTestSettings | None = None,
) -> list[LoadResult]:
    """Create each table and write its seed items, in the order given.

    Args:
        client: A connected Client, a boto3 DynamoDB client, or any object
            with ``create_table`` and ``batch_write_item`` methods. Tables
            are created through a clone of a Client or boto3 client that
            allows ``create_table_max_attempts``; other objects are used as
            given.
        *setups: Tables to create and seed.
        settings: Overrides the elevated CreateTable retry allowance.

    Returns:
        One LoadResult per table.

    Raises:
        TableCreateError: If a table cannot be created.
        SeedWriteError: If a table's items cannot all be written.
    """
    settings = settings or get_settings()
    admin = _table_admin(client, settings)
    results: list[LoadResult] = []

    for setup in setups:
        logger.debug(f"Creating table '{setup.table_name}'")
        _create_table(admin, setup)

        if not setup.initial_data:
            logger.info(
                f"Table '{setup.table_name}' has been created, and no initial data has been added"
            )
            results.append(LoadResult(setup.table_name, TableState.CREATED_EMPTY))
            continue

        _seed_table(client, setup)
        logger.info(f"Table '{setup.table_name}' has been created")
        results.append(LoadResult(setup.table_name, TableState.SEEDED, len(setup.initial_data)))

    return results


def unique_table_name(prefix: str) -> str:
    """Derive a table name that will not collide with parallel tests."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def create_single_table(
    client: TableWriter | Client,
    prefix: str,
    schema: Mapping[str, Any],
    *rows: Any,
    settings: DynamoTestSettings | None = None,
) -> str:
    """Create one uniquely named table from a template and seed it.

    Args:
        client: A connected Client.
        prefix: Start of the generated table name.
        schema: CreateTable keyword arguments; ``TableName`` is replaced.
        *rows: Typed items, dicts, dataclasses or pydantic models.

    Returns:
        The generated table name.

    Raises:
        MarshalError: If a row cannot be converted to a typed item.
        LoadError: If the table cannot be created or seeded.
    """
    table = copy.deepcopy(dict(schema))
    table["TableName"] = unique_table_name(prefix)
    items = [to_item(row) for row in rows]

    load(client, TableSetup(table=table, initial_data=items), settings=settings)
    return table["TableName"]


__all__ = [
    "BATCH_WRITE_LIMIT",
    "LoadResult",
    "TableSetup",
    "TableState",
    "TableWriter",
    "create_single_table",
    "load",
    "unique_table_name",
]
