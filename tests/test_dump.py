"""
Tests for the ISON serializer (Document -> text).

These tests ensure dumps() is the inverse of parse() for ordinary
values, and that ISONL lines are self-describing.
"""

import pytest

from ison.dump import DumpOptions, dumps, dump, dumps_isonl, dump_isonl, column_widths
from ison.model import Block, Document
from ison.parser import parse, parse_isonl, load
from ison.values import (
    NullValue,
    BoolValue,
    IntValue,
    FloatValue,
    StringValue,
    RefValue,
    Reference,
)


def build_users() -> Document:
    doc = Document()
    block = Block(kind="table", name="users")
    block.add_field("id", "int")
    block.add_field("name", "string")
    block.add_row({"id": IntValue(1), "name": StringValue("Alice")})
    block.add_row({"id": IntValue(2), "name": StringValue("Bob")})
    doc.add_block(block)
    return doc


class TestDumps:
    """Canonical form."""

    def test_basic(self):
        assert dumps(build_users()) == "table.users\nid:int name:string\n1 Alice\n2 Bob\n"

    def test_absent_field_renders_null(self):
        doc = Document()
        block = Block(kind="table", name="t")
        block.add_field("a")
        block.add_field("b")
        block.add_row({"a": IntValue(1)})
        doc.add_block(block)
        assert "1 ~" in dumps(doc)

    def test_blocks_separated_by_blank_line(self):
        doc = build_users()
        cfg = Block(kind="object", name="config")
        cfg.add_field("debug")
        cfg.add_row({"debug": BoolValue(True)})
        doc.add_block(cfg)
        assert dumps(doc) == (
            "table.users\nid:int name:string\n1 Alice\n2 Bob\n"
            "\n"
            "object.config\ndebug\ntrue\n"
        )

    def test_summary_row_on_its_own_line(self):
        doc = build_users()
        doc.get("users").summary_row = {"id": IntValue(2), "name": StringValue("total")}
        text = dumps(doc)
        assert "\n---\n2 total\n" in text
        reparsed = parse(text).get("users")
        assert len(reparsed.rows) == 2
        assert reparsed.summary_row["name"] == StringValue("total")

    def test_empty_document(self):
        assert dumps(Document()) == ""

    def test_custom_delimiter(self):
        text = dumps(build_users(), DumpOptions(delimiter="\t"))
        assert "id:int\tname:string" in text
        assert parse(text).get("users").rows[1]["name"] == StringValue("Bob")

    def test_empty_delimiter_falls_back_to_space(self):
        text = dumps(build_users(), DumpOptions(delimiter=""))
        assert "1 Alice" in text


class TestAlignment:
    """Column alignment pads with spaces only."""

    def test_column_widths(self):
        block = build_users().get("users")
        assert column_widths(block) == [len("id:int"), len("name:string")]

    def test_widths_grow_with_values(self):
        doc = build_users()
        doc.get("users").add_row({"id": IntValue(1234567), "name": StringValue("A much longer name")})
        widths = column_widths(doc.get("users"))
        assert widths == [7, len('"A much longer name"')]

    def test_aligned_output(self):
        doc = Document()
        block = Block(kind="table", name="t")
        block.add_field("id")
        block.add_field("name")
        block.add_row({"id": IntValue(100), "name": StringValue("Al")})
        block.add_row({"id": IntValue(2), "name": StringValue("Bo")})
        doc.add_block(block)
        text = dumps(doc, DumpOptions(align_columns=True))
        assert text == "table.t\nid  name\n100 Al\n2   Bo\n"

    def test_alignment_does_not_change_values(self):
        doc = build_users()
        doc.get("users").add_row({"id": IntValue(300), "name": StringValue("Charlie Brown")})
        aligned = parse(dumps(doc, DumpOptions(align_columns=True)))
        plain = parse(dumps(doc))
        assert aligned.get("users").rows == plain.get("users").rows


class TestRoundtrip:
    """decode(encode(doc)) keeps every scalar."""

    def test_parse_dump_parse(self):
        text = "table.users\nid:int name:string active:bool\n1 Alice true\n2 Bob false \n"
        doc = parse(text)
        doc2 = parse(dumps(doc))
        assert doc.get("users").rows == doc2.get("users").rows

    def test_all_value_kinds(self):
        doc = Document()
        block = Block(kind="table", name="mixed")
        for name in ("n", "b", "i", "f", "s", "r1", "r2", "r3"):
            block.add_field(name)
        row = {
            "n": NullValue(),
            "b": BoolValue(False),
            "i": IntValue(-12),
            "f": FloatValue(0.5),
            "s": StringValue("two words\nand a \"quote\"\tand tab"),
            "r1": RefValue(Reference(id="1")),
            "r2": RefValue(Reference(id="42", namespace="user")),
            "r3": RefValue(Reference(id="5", relationship="OWNS")),
        }
        block.add_row(row)
        doc.add_block(block)
        assert parse(dumps(doc)).get("mixed").rows[0] == row

    def test_order_preserved(self):
        text = "table.b\nx\n1\n\ntable.a\ny\n2\n"
        assert parse(dumps(parse(text))).order == ["b", "a"]


class TestISONL:
    """Streaming form."""

    def test_dumps_isonl(self):
        lines = dumps_isonl(build_users()).strip().split("\n")
        assert lines == [
            "table.users|id:int name:string|1 Alice",
            "table.users|id:int name:string|2 Bob",
        ]

    def test_roundtrip(self):
        doc = build_users()
        back = parse_isonl(dumps_isonl(doc))
        assert back.get("users").rows == doc.get("users").rows
        assert back.get("users").fields == doc.get("users").fields

    def test_empty_block_emits_nothing(self):
        doc = Document()
        doc.add_block(Block(kind="table", name="t"))
        assert dumps_isonl(doc) == ""


class TestFiles:
    """File writers."""

    def test_dump_and_load(self, tmp_path):
        path = tmp_path / "users.ison"
        dump(build_users(), str(path))
        assert load(str(path)).get("users").rows == build_users().get("users").rows

    def test_dump_isonl(self, tmp_path):
        path = tmp_path / "users.isonl"
        dump_isonl(build_users(), str(path))
        assert path.read_text(encoding="utf-8").count("\n") == 2

    def test_unwritable_path_propagates(self, tmp_path):
        with pytest.raises(OSError):
            dump(build_users(), str(tmp_path / "missing" / "out.ison"))
