"""
Core Document Model Objects

Defines the in-memory structure every ISON text decodes into:
    - FieldInfo (column declaration)
    - Row (one record, field name -> Value)
    - Block (a named table, object, or meta section)
    - Document (root container, ordered blocks)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about text, quoting, or JSON
        - Form a single ownership tree (Document -> Block -> Row -> Value)
        - Are mutated only by append (add_field, add_row) or
          replacement (add_block)
        - Carry no locking; one Document per caller
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ison.values import Value


BLOCK_KINDS = ("table", "object", "meta")

Row = Dict[str, Value]
"""
A single record keyed by field name.

A row need not hold every declared field. A short data line only fills
the leading fields; absent fields are missing keys, not NullValue.
"""


@dataclass
class FieldInfo:
    """
    Declares one column of a block.

    Properties:
        name: Column name, unique within the block
        type_hint: One of "int", "float", "bool", "string", "ref",
            "computed", or "" (infer on decode, emit bare on encode)
    """

    name: str = ""
    type_hint: str = ""

    def to_ison(self) -> str:
        if self.type_hint.strip():
            return f"{self.name}:{self.type_hint}"
        return self.name


@dataclass
class Block:
    """
    A named section of an ISON document.

    Example:
        table.users
        id:int name:string
        1 Alice
        2 Bob
        ---
        2 total

    Becomes:
        Block(
            kind="table",
            name="users",
            fields=[FieldInfo("id", "int"), FieldInfo("name", "string")],
            rows=[{"id": IntValue(1), ...}, {"id": IntValue(2), ...}],
            summary_row={"id": IntValue(2), "name": StringValue("total")},
        )

    Properties:
        kind: "table" (many rows), "object" (one row), or "meta"
        name: Block identifier, unique within the document
        fields: Ordered column declarations. This order drives both
            positional decoding and serialization column order.
        rows: Data rows in input order
        summary_row: Optional aggregate row written after ``---``
    """

    kind: str
    name: str
    fields: List[FieldInfo] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    summary_row: Optional[Row] = None

    def add_field(self, name: str, type_hint: str = "") -> None:
        self.fields.append(FieldInfo(name=name, type_hint=type_hint))

    def add_row(self, row: Row) -> None:
        self.rows.append(row)

    def get_field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Optional[FieldInfo]:
        """
        Retrieve a field declaration by name.

        Returns:
            FieldInfo or None if the block has no such column
        """
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class Document:
    """
    Root container for a parsed or built ISON document.

    INVARIANTS:
        - ``order`` lists every key of ``blocks`` exactly once
        - Re-adding a block under an existing name replaces its content
          but keeps its first-seen position in ``order``
    """

    blocks: Dict[str, Block] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)

    def add_block(self, block: Block) -> None:
        if block.name not in self.blocks:
            self.order.append(block.name)
        self.blocks[block.name] = block

    def get(self, name: str) -> Optional[Block]:
        """
        Retrieve a block by name.

        Returns:
            Block object or None if not found
        """
        return self.blocks.get(name)

    def ordered_blocks(self) -> List[Block]:
        return [self.blocks[name] for name in self.order]

    def __contains__(self, name: object) -> bool:
        return name in self.blocks
