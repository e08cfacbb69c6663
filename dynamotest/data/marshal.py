"""Conversion between plain records and DynamoDB typed items.

A typed item maps attribute names to tagged values, the representation
the low-level DynamoDB API reads and writes::

    {"id": {"S": "123"}, "age": {"N": "42"}, "active": {"BOOL": True}}

Serialization itself is delegated to boto3's TypeSerializer and
TypeDeserializer; this module only decides how a record becomes a mapping
(pydantic models by alias, dataclasses by field name, mappings as is) and
papers over float handling, which boto3 refuses.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, TypeVar

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer
from pydantic import BaseModel

from dynamotest.errors import MarshalError

T = TypeVar("T")

TYPE_TAGS = frozenset({"S", "N", "B", "BOOL", "NULL", "M", "L", "SS", "NS", "BS"})

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def S(value: str) -> dict[str, Any]:
    return {"S": value}


def N(value: int | float | Decimal | str) -> dict[str, Any]:
    return {"N": str(value)}


def B(value: bytes) -> dict[str, Any]:
    return {"B": value}


def BOOL(value: bool) -> dict[str, Any]:
    return {"BOOL": value}


def NULL() -> dict[str, Any]:
    return {"NULL": True}


def is_typed_value(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) == 1 and next(iter(value)) in TYPE_TAGS


def is_typed_item(row: Any) -> bool:
    """Check whether every attribute of ``row`` is already a tagged value."""
    return isinstance(row, Mapping) and all(is_typed_value(v) for v in row.values())


def _record_to_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True)
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    if isinstance(record, Mapping):
        return record
    raise MarshalError(
        f"Cannot marshal {type(record).__name__}: expected a mapping, dataclass or pydantic model",
        record_type=type(record).__name__,
    )


def _coerce(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _coerce(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_coerce(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {_coerce(v) for v in value}
    return value


def to_item(record: Any) -> dict[str, Any]:
    """Convert a record into a typed DynamoDB item.

    Typed items are returned unchanged (as a new dict). Pydantic models are
    dumped by alias, so a field declared as ``pk: str = Field(alias="test_PK")``
    is written as ``test_PK``.

    Raises:
        MarshalError: If the record or one of its values cannot be serialized.
    """
    if is_typed_item(record):
        return dict(record)

    mapping = _record_to_mapping(record)
    try:
        return {str(k): _serializer.serialize(_coerce(v)) for k, v in mapping.items()}
    except (TypeError, ValueError) as e:
        raise MarshalError(
            f"Could not marshal {type(record).__name__}: {e}",
            cause=e,
            record_type=type(record).__name__,
        ) from e


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Binary):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, set):
        return {_plain(v) for v in value}
    return value


def from_item(item: Mapping[str, Any], model: type[T] | None = None) -> Any:
    """Convert a typed item back into plain Python values.

    Args:
        item: Typed item, e.g. one entry of a Query response's ``Items``.
        model: Optional pydantic model or dataclass to build from the values.

    Returns:
        A dict when no model is given, otherwise an instance of ``model``.
    """
    data = {k: _plain(_deserializer.deserialize(v)) for k, v in item.items()}
    if model is None:
        return data
    if isinstance(model, type) and issubclass(model, BaseModel):
        return model.model_validate(data)
    if dataclasses.is_dataclass(model):
        names = {f.name for f in dataclasses.fields(model)}
        return model(**{k: v for k, v in data.items() if k in names})
    raise TypeError(f"Unsupported model type: {model!r}")
