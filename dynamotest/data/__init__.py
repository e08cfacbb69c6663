"""Table creation, seed loading and item marshaling."""

from dynamotest.data.marshal import (
    B,
    BOOL,
    N,
    NULL,
    S,
    from_item,
    is_typed_item,
    to_item,
)
from dynamotest.data.seeding import (
    BATCH_WRITE_LIMIT,
    LoadResult,
    TableSetup,
    TableState,
    TableWriter,
    create_single_table,
    load,
    unique_table_name,
)

__all__ = [
    # Marshaling
    "B",
    "BOOL",
    "N",
    "NULL",
    "S",
    "from_item",
    "is_typed_item",
    "to_item",
    # Seeding
    "BATCH_WRITE_LIMIT",
    "LoadResult",
    "TableSetup",
    "TableState",
    "TableWriter",
    "create_single_table",
    "load",
    "unique_table_name",
]
