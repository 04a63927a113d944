"""
ISON: a typed, tabular, line-oriented text format.

A document is a sequence of named blocks (table, object, meta). Each block
declares its fields once and then lists one row per line:

    table.users
    id:int name:string active:bool
    1 Alice true
    2 "Bob Jones" false

ISONL is the streaming variant: one self-describing row per line,
``kind.name|fields|values``.

LAYERS:
    values / model      -> in-memory document (pure data)
    tokenizer / codec   -> text <-> tokens <-> values
    parser / dump       -> text <-> Document
    serialization       -> Document <-> generic maps (JSON / YAML)
    schema              -> validation of generic maps
    records             -> dataclass glue, outside the core
"""

from ison.values import (
    ValueType,
    Reference,
    Value,
    NullValue,
    BoolValue,
    IntValue,
    FloatValue,
    StringValue,
    RefValue,
    to_value,
)
from ison.model import FieldInfo, Row, Block, Document, BLOCK_KINDS
from ison.parser import parse, parse_isonl, load, load_isonl
from ison.dump import DumpOptions, dumps, dump, dumps_isonl, dump_isonl
from ison.errors import ISONError, ValidationError, ValidationErrors

__version__ = "1.0.0"

__all__ = [
    "ValueType",
    "Reference",
    "Value",
    "NullValue",
    "BoolValue",
    "IntValue",
    "FloatValue",
    "StringValue",
    "RefValue",
    "to_value",
    "FieldInfo",
    "Row",
    "Block",
    "Document",
    "BLOCK_KINDS",
    "parse",
    "parse_isonl",
    "load",
    "load_isonl",
    "DumpOptions",
    "dumps",
    "dump",
    "dumps_isonl",
    "dump_isonl",
    "ISONError",
    "ValidationError",
    "ValidationErrors",
]
