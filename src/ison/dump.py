"""
ISON serializer (Document -> text).

Canonical form:

    kind.name
    field:hint field ...
    value value ...
    ---
    summary values ...
    <blank line between blocks>

Streaming form (ISONL): one ``kind.name|fields|values`` line per row,
repeating the header so every line stands alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ison.codec import encode_value
from ison.model import Block, Document, FieldInfo, Row
from ison.parser import SUMMARY_SEPARATOR


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DumpOptions:
    """
    Serialization settings.

    Attributes:
        align_columns: Pad cells with spaces so columns line up. Padding
            is whitespace, so it disappears on re-parse.
        delimiter: Separator between cells. Anything other than
            whitespace will not re-parse as separate tokens; an empty
            delimiter falls back to a single space.
    """

    align_columns: bool = False
    delimiter: str = " "


DEFAULT_DUMP_OPTIONS = DumpOptions()


def format_fields(fields: List[FieldInfo], delimiter: str = " ") -> str:
    return delimiter.join(f.to_ison() for f in fields)


def row_cells(row: Row, fields: List[FieldInfo]) -> List[str]:
    """Encode a row in field order; absent fields render as ``~``."""
    cells = []
    for f in fields:
        v = row.get(f.name)
        cells.append(encode_value(v) if v is not None else "~")
    return cells


def column_widths(block: Block) -> List[int]:
    """
    Display width of each column: the widest of its header cell,
    row cells and summary cell.
    """
    widths = [len(f.to_ison()) for f in block.fields]
    rows = list(block.rows)
    if block.summary_row is not None:
        rows.append(block.summary_row)
    for row in rows:
        for j, cell in enumerate(row_cells(row, block.fields)):
            if len(cell) > widths[j]:
                widths[j] = len(cell)
    return widths


def _join(cells: List[str], delimiter: str, widths: Optional[List[int]]) -> str:
    if widths is None:
        return delimiter.join(cells)
    padded = [cell.ljust(widths[j]) for j, cell in enumerate(cells[:-1])]
    return delimiter.join(padded + cells[-1:])


def _dump_block(block: Block, options: DumpOptions, delimiter: str) -> List[str]:
    widths = column_widths(block) if options.align_columns else None

    lines = [f"{block.kind}.{block.name}"]
    lines.append(_join([f.to_ison() for f in block.fields], delimiter, widths))
    for row in block.rows:
        lines.append(_join(row_cells(row, block.fields), delimiter, widths))
    if block.summary_row is not None:
        lines.append(SUMMARY_SEPARATOR)
        lines.append(_join(row_cells(block.summary_row, block.fields), delimiter, widths))
    return lines


def dumps(doc: Document, options: Optional[DumpOptions] = None) -> str:
    """
    Serialize a Document to canonical ISON text.

    Args:
        doc: Document to serialize
        options: DumpOptions (defaults: no alignment, space delimiter)

    Returns:
        ISON text, blocks in document order separated by a blank line
    """
    options = options or DEFAULT_DUMP_OPTIONS
    delimiter = options.delimiter or " "

    out: List[str] = []
    for i, block in enumerate(doc.ordered_blocks()):
        if i > 0:
            out.append("")
        out.extend(_dump_block(block, options, delimiter))
    if not out:
        return ""
    return "\n".join(out) + "\n"


def dump(doc: Document, path: str, options: Optional[DumpOptions] = None) -> None:
    """
    Serialize a Document and write it to a file (UTF-8).

    Raises:
        OSError: If the file cannot be written
    """
    text = dumps(doc, options)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.debug("Wrote %d blocks to %s", len(doc.order), path)


def dumps_isonl(doc: Document) -> str:
    """
    Serialize a Document to ISONL.

    Blocks without rows produce no lines; summary rows are not streamed.
    """
    lines: List[str] = []
    for block in doc.ordered_blocks():
        prefix = f"{block.kind}.{block.name}|{format_fields(block.fields)}|"
        for row in block.rows:
            lines.append(prefix + " ".join(row_cells(row, block.fields)))
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def dump_isonl(doc: Document, path: str) -> None:
    text = dumps_isonl(doc)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.debug("Wrote %d blocks to %s", len(doc.order), path)


__all__ = [
    "DumpOptions",
    "dumps",
    "dump",
    "dumps_isonl",
    "dump_isonl",
    "column_widths",
    "format_fields",
    "row_cells",
]
