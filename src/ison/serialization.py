"""
Serialization helpers between ISON Documents and generic maps.

Provides the JSON/YAML boundary via an intermediate dict representation.
JSON text is handled by the stdlib json module and YAML by PyYAML; this
module only shapes the maps handed to and received from them.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from ison.dump import dumps, dumps_isonl
from ison.model import Block, Document, Row
from ison.parser import parse, parse_isonl
from ison.values import Reference, RefValue, Value, to_value


NAME_LIKE_FIELDS = frozenset({"name", "title", "label", "description", "display_name", "full_name"})


@dataclass(frozen=True)
class FromDictOptions:
    """
    Settings for document_from_dict.

    Attributes:
        auto_refs: Turn foreign-key-looking columns (``customer_id`` next
            to a ``customers`` block) into namespaced references.
        smart_order: Reorder columns with smart_order_fields.
    """

    auto_refs: bool = False
    smart_order: bool = False


def value_to_data(v: Value) -> Any:
    py = v.to_python()
    if isinstance(py, Reference):
        return py.to_dict()
    return py


def row_to_dict(row: Row) -> Dict[str, Any]:
    return {k: value_to_data(v) for k, v in row.items()}


def block_to_dict(b: Block) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "kind": b.kind,
        "name": b.name,
        "fields": [{"name": f.name, "typeHint": f.type_hint} for f in b.fields],
        "rows": [row_to_dict(r) for r in b.rows],
    }
    if b.summary_row is not None:
        d["summary"] = row_to_dict(b.summary_row)
    return d


def document_to_dict(doc: Document) -> Dict[str, Any]:
    return {b.name: block_to_dict(b) for b in doc.ordered_blocks()}


def document_to_data(doc: Document) -> Dict[str, List[Dict[str, Any]]]:
    """Block name -> list of row maps; the shape used for JSON export."""
    return {b.name: [row_to_dict(r) for r in b.rows] for b in doc.ordered_blocks()}


def document_to_json(doc: Document, indent: Optional[int] = None) -> str:
    return json.dumps(document_to_data(doc), indent=indent)


def ison_to_json(text: str, indent: Optional[int] = None) -> str:
    return document_to_json(parse(text), indent=indent)


def _table_from_rows(name: str, items: List[Any], field_names: List[str]) -> Block:
    block = Block(kind="table", name=name)
    for field_name in field_names:
        block.add_field(field_name)
    for item in items:
        if isinstance(item, dict):
            block.add_row({str(k): to_value(v) for k, v in item.items()})
    return block


def _object_from_map(name: str, content: Dict[Any, Any], field_names: List[str]) -> Block:
    block = Block(kind="object", name=name)
    for field_name in field_names:
        block.add_field(field_name)
    block.add_row({str(k): to_value(v) for k, v in content.items()})
    return block


def document_from_data(data: Dict[str, Any]) -> Document:
    """
    Build a Document from decoded JSON/YAML, preserving key order.

    A list becomes a table whose fields are the first row's keys; a map
    becomes a one-row object block. Other top-level values are ignored.
    """
    doc = Document()
    for name, value in data.items():
        if isinstance(value, list):
            first = value[0] if value and isinstance(value[0], dict) else {}
            doc.add_block(_table_from_rows(name, value, [str(k) for k in first]))
        elif isinstance(value, dict):
            doc.add_block(_object_from_map(name, value, [str(k) for k in value]))
    return doc


def document_from_json(s: str) -> Document:
    d = json.loads(s)
    if not isinstance(d, dict):
        return Document()
    return document_from_data(d)


def document_to_yaml(doc: Document) -> str:
    return yaml.safe_dump(document_to_data(doc), sort_keys=False, allow_unicode=True)


def document_from_yaml(s: str) -> Document:
    d = yaml.safe_load(s)
    if not isinstance(d, dict):
        return Document()
    return document_from_data({str(k): v for k, v in d.items()})


def smart_order_fields(fields: List[str]) -> List[str]:
    """
    Reorder column names for readability.

    Order:
        1. ``id``
        2. name-like columns (name, title, label, description,
           display_name, full_name)
        3. everything else
        4. foreign-key columns ending in ``_id``

    Matching is case-insensitive; order inside each group and the
    original spelling are preserved.

    Example:
        smart_order_fields(["email", "customer_id", "name", "id", "status"])
        -> ["id", "name", "email", "status", "customer_id"]
    """
    id_fields: List[str] = []
    name_fields: List[str] = []
    ref_fields: List[str] = []
    other_fields: List[str] = []
    for f in fields:
        lower = f.lower()
        if lower == "id":
            id_fields.append(f)
        elif lower in NAME_LIKE_FIELDS:
            name_fields.append(f)
        elif lower.endswith("_id"):
            ref_fields.append(f)
        else:
            other_fields.append(f)
    return id_fields + name_fields + other_fields + ref_fields


def _detect_ref_fields(data: Dict[str, Any]) -> Dict[str, str]:
    """
    Map column name -> reference namespace for foreign-key columns.

    ``customer_id`` refers to namespace ``customer`` when a block named
    ``customer`` or ``customers`` exists. An ``edges`` block next to a
    ``nodes`` block gets ``source``/``target`` as ``node`` references.
    """
    ref_fields: Dict[str, str] = {}
    for table_name, table_data in data.items():
        if isinstance(table_data, list) and table_data and isinstance(table_data[0], dict):
            for key in table_data[0]:
                key = str(key)
                if key.endswith("_id") and key != "id":
                    stem = key[:-3]
                    if stem + "s" in data or stem in data:
                        ref_fields[key] = stem
        if table_name == "edges" and "nodes" in data:
            ref_fields["source"] = "node"
            ref_fields["target"] = "node"
    return ref_fields


def _cell(key: str, v: Any, ref_fields: Dict[str, str]) -> Value:
    namespace = ref_fields.get(key)
    if namespace and not isinstance(v, bool) and isinstance(v, (int, float, str)):
        ref_id = str(int(v)) if isinstance(v, float) and v.is_integer() else str(v)
        return RefValue(Reference(id=ref_id, namespace=namespace))
    return to_value(v)


def document_from_dict(data: Dict[str, Any], options: Optional[FromDictOptions] = None) -> Document:
    """
    Build a Document from a map of block name -> rows or object.

    Blocks are added in sorted name order. A non-empty list of maps
    becomes a table whose columns are the union of all row keys in
    first-seen order; a map becomes an object block. Empty lists and
    lists of non-maps produce no block.
    """
    options = options or FromDictOptions()
    ref_fields = _detect_ref_fields(data) if options.auto_refs else {}
    doc = Document()

    for name in sorted(data):
        content = data[name]
        if isinstance(content, list):
            if not content or not isinstance(content[0], dict):
                continue
            field_order: List[str] = []
            for item in content:
                if isinstance(item, dict):
                    for k in item:
                        if str(k) not in field_order:
                            field_order.append(str(k))
            if options.smart_order:
                field_order = smart_order_fields(field_order)
            block = Block(kind="table", name=name)
            for f in field_order:
                block.add_field(f)
            for item in content:
                if isinstance(item, dict):
                    block.add_row({str(k): _cell(str(k), v, ref_fields) for k, v in item.items()})
            doc.add_block(block)
        elif isinstance(content, dict):
            fields = [str(k) for k in content]
            if options.smart_order:
                fields = smart_order_fields(fields)
            doc.add_block(_object_from_map(name, content, fields))

    return doc


def ison_to_isonl(text: str) -> str:
    return dumps_isonl(parse(text))


def isonl_to_ison(text: str) -> str:
    return dumps(parse_isonl(text))


__all__ = [
    "FromDictOptions",
    "block_to_dict",
    "document_to_dict",
    "document_to_data",
    "document_to_json",
    "ison_to_json",
    "document_from_data",
    "document_from_json",
    "document_to_yaml",
    "document_from_yaml",
    "document_from_dict",
    "smart_order_fields",
    "ison_to_isonl",
    "isonl_to_ison",
]
