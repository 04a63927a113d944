"""
ISON Parser (text -> Document).

Grammar:
    # comment                  skipped anywhere
    kind.name                  opens a block (kind in table/object/meta)
    f1 f2:int f3:ref           first non-blank line after the header: fields
    v1 v2 v3                   data rows, zipped positionally onto fields
    ---                        later rows go to the summary row
    <blank line>               ends the block

Parsing is lenient by design of the format: unknown block kinds, stray
lines and surplus tokens are skipped, never raised. An empty or broken
text yields a Document with fewer (or no) blocks.

ISONL:
    kind.name|f1 f2:int|v1 v2

The first line seen for a block name registers its fields; later lines
for that name only contribute rows.
"""

import logging
from typing import List, Optional, Tuple

from ison.codec import parse_value
from ison.model import BLOCK_KINDS, Block, Document, FieldInfo, Row
from ison.tokenizer import parse_field_def, split_lines, tokenize_line


logger = logging.getLogger(__name__)

SUMMARY_SEPARATOR = "---"


def is_valid_kind(kind: str) -> bool:
    return kind in BLOCK_KINDS


def parse_block_header(line: str) -> Optional[Tuple[str, str]]:
    """
    Return (kind, name) if the line opens a block, else None.

    A quoted line never opens a block, even if it contains a dot.
    """
    if "." not in line or line.startswith('"'):
        return None
    kind, name = line.split(".", 1)
    if not is_valid_kind(kind):
        return None
    return kind, name


def build_row(tokens: List[str], fields: List[FieldInfo]) -> Row:
    """
    Zip tokens onto fields in declaration order.

    Missing trailing tokens leave their fields absent; surplus tokens
    are dropped.
    """
    row: Row = {}
    for field, token in zip(fields, tokens):
        row[field.name] = parse_value(token, field.type_hint)
    return row


def _is_skippable(line: str) -> bool:
    return not line or line.startswith("#")


class Parser:
    """
    Line cursor over an ISON text.

    A Parser is single-use: parse() consumes its lines.
    """

    def __init__(self, text: str):
        self.text = text
        self.lines = split_lines(text)
        self.pos = 0

    def parse(self) -> Document:
        doc = Document()

        while self.pos < len(self.lines):
            line = self.lines[self.pos].strip()
            if _is_skippable(line):
                self.pos += 1
                continue

            header = parse_block_header(line)
            if header is not None:
                kind, name = header
                doc.add_block(self._parse_block(kind, name))
                continue

            logger.debug("Skipping line %d outside any block: %r", self.pos + 1, line)
            self.pos += 1

        return doc

    def _parse_block(self, kind: str, name: str) -> Block:
        block = Block(kind=kind, name=name)
        self.pos += 1

        # Field definitions: next non-blank, non-comment line
        while self.pos < len(self.lines) and _is_skippable(self.lines[self.pos].strip()):
            self.pos += 1
        if self.pos >= len(self.lines):
            return block

        for token in tokenize_line(self.lines[self.pos].strip()):
            field_name, type_hint = parse_field_def(token)
            block.add_field(field_name, type_hint)
        self.pos += 1

        in_summary = False
        while self.pos < len(self.lines):
            line = self.lines[self.pos].strip()

            if not line:
                self.pos += 1
                break
            if line.startswith("#"):
                self.pos += 1
                continue
            # next block header: leave it for the outer loop
            if parse_block_header(line) is not None:
                break
            if line == SUMMARY_SEPARATOR:
                in_summary = True
                self.pos += 1
                continue

            row = build_row(tokenize_line(line), block.fields)
            if in_summary:
                block.summary_row = row
            else:
                block.add_row(row)
            self.pos += 1

        return block


def parse(text: str) -> Document:
    """
    Parse ISON text into a Document.

    Args:
        text: ISON source

    Returns:
        Document (possibly empty); never raises on content
    """
    return Parser(text).parse()


def parse_isonl(text: str) -> Document:
    """
    Parse ISONL (one self-describing row per line) into a Document.

    Lines that do not split into three ``|`` sections, or whose header
    has no ``.``, are skipped. Headers repeated with different fields
    keep the fields registered by the first line.
    """
    doc = Document()

    for lineno, raw in enumerate(split_lines(text), start=1):
        line = raw.strip()
        if _is_skippable(line):
            continue

        parts = line.split("|", 2)
        if len(parts) != 3:
            logger.debug("Skipping ISONL line %d without three sections", lineno)
            continue
        header, field_section, value_section = parts

        if "." not in header:
            logger.debug("Skipping ISONL line %d with malformed header %r", lineno, header)
            continue
        kind, name = header.split(".", 1)

        field_defs = [parse_field_def(t) for t in tokenize_line(field_section)]

        block = doc.get(name)
        if block is None:
            block = Block(kind=kind, name=name)
            for field_name, type_hint in field_defs:
                block.add_field(field_name, type_hint)
            doc.add_block(block)
        elif field_defs != [(f.name, f.type_hint) for f in block.fields]:
            logger.debug(
                "ISONL line %d: header for %r differs from first occurrence; keeping original fields",
                lineno,
                name,
            )

        block.add_row(build_row(tokenize_line(value_section), block.fields))

    return doc


def load(path: str) -> Document:
    """
    Read and parse an ISON file (UTF-8).

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        return parse(f.read())


def load_isonl(path: str) -> Document:
    with open(path, "r", encoding="utf-8") as f:
        return parse_isonl(f.read())


__all__ = [
    "Parser",
    "parse",
    "parse_isonl",
    "load",
    "load_isonl",
    "parse_block_header",
    "build_row",
    "is_valid_kind",
    "SUMMARY_SEPARATOR",
]
