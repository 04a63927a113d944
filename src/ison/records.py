"""
Record glue: dataclass instances and plain mappings <-> ISON text.

This layer sits outside the parser/serializer/validator. It turns each
record into a generic field map (dataclasses.asdict for dataclasses)
and talks to the core only through Document.add_block,
Block.add_field / add_row / get_field_names, to_value and
Value.to_python.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from ison.dump import dumps
from ison.model import Block, Document, Row
from ison.parser import parse
from ison.serialization import smart_order_fields
from ison.values import to_value


T = TypeVar("T")


def record_to_map(item: Any) -> Dict[str, Any]:
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    if isinstance(item, Mapping):
        return {str(k): v for k, v in item.items()}
    raise TypeError(f"Unsupported record type: {type(item)}")


def _row_from_map(m: Dict[str, Any]) -> Row:
    return {k: to_value(v) for k, v in m.items()}


def records_to_ison(items: Iterable[Any], table: str) -> str:
    """
    Render records as one ISON table block.

    Columns come from the first record, smart-ordered.
    """
    maps = [record_to_map(item) for item in items]
    block = Block(kind="table", name=table)
    if maps:
        for name in smart_order_fields(list(maps[0])):
            block.add_field(name)
        for m in maps:
            block.add_row(_row_from_map(m))

    doc = Document()
    doc.add_block(block)
    return dumps(doc)


def record_to_ison(item: Any, name: str) -> str:
    """Render one record as an ISON object block."""
    m = record_to_map(item)
    block = Block(kind="object", name=name)
    for field_name in smart_order_fields(list(m)):
        block.add_field(field_name)
    block.add_row(_row_from_map(m))

    doc = Document()
    doc.add_block(block)
    return dumps(doc)


def _build(row: Row, field_names: List[str], cls: Optional[Type[T]]) -> Any:
    data = {name: row[name].to_python() for name in field_names if name in row}
    if cls is None:
        return data
    if dataclasses.is_dataclass(cls):
        accepted = {f.name for f in dataclasses.fields(cls) if f.init}
        data = {k: v for k, v in data.items() if k in accepted}
    return cls(**data)


def ison_to_records(text: str, table: str, cls: Optional[Type[T]] = None) -> List[Any]:
    """
    Read the rows of a table block as records.

    Args:
        text: ISON source
        table: Block name
        cls: Record type (dataclass or any keyword-constructible class);
            plain dicts when None

    Returns:
        List of records; empty if the block is missing or not a table
    """
    block = parse(text).get(table)
    if block is None or block.kind != "table":
        return []
    field_names = block.get_field_names()
    return [_build(row, field_names, cls) for row in block.rows]


def ison_to_record(text: str, name: str, cls: Optional[Type[T]] = None) -> Any:
    """Read the first row of an object block, or None."""
    block = parse(text).get(name)
    if block is None or block.kind != "object" or not block.rows:
        return None
    return _build(block.rows[0], block.get_field_names(), cls)


__all__ = [
    "record_to_map",
    "records_to_ison",
    "record_to_ison",
    "ison_to_records",
    "ison_to_record",
]
