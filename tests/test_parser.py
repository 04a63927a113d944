"""
Tests for the ISON / ISONL parser (text -> Document).

We need to:
1. Recognize block headers and field declarations
2. Zip data tokens onto fields positionally
3. Handle comments, blank lines, summaries
4. Stay lenient: never raise on malformed content
5. Parse ISONL with first-header-wins semantics
"""

import logging

import pytest

from ison.parser import parse, parse_isonl, load, load_isonl, parse_block_header
from ison.values import (
    NullValue,
    BoolValue,
    IntValue,
    FloatValue,
    StringValue,
    Reference,
)


USERS = """
table.users
id:int name:string active:bool
1 Alice true
2 Bob false
"""


class TestBlocks:
    """Block structure."""

    def test_typed_table(self):
        doc = parse(USERS)
        block = doc.get("users")
        assert block is not None
        assert block.kind == "table"
        assert block.name == "users"
        assert [(f.name, f.type_hint) for f in block.fields] == [
            ("id", "int"),
            ("name", "string"),
            ("active", "bool"),
        ]
        assert len(block.rows) == 2
        assert block.rows[0] == {
            "id": IntValue(1),
            "name": StringValue("Alice"),
            "active": BoolValue(True),
        }

    def test_untyped_table(self):
        doc = parse("table.users\nid name email\n1 Alice alice@example.com\n")
        row = doc.get("users").rows[0]
        assert row["id"].as_int() == 1
        assert row["email"].as_string() == "alice@example.com"

    def test_float_column(self):
        doc = parse("table.s\nscore:float\n95.5\n82.0\n")
        assert doc.get("s").rows[1]["score"] == FloatValue(82.0)

    def test_quoted_strings(self):
        doc = parse(
            'table.users\nid name\n1 "Alice Smith"\n2 "Bob \\"The Builder\\" Jones"\n'
        )
        rows = doc.get("users").rows
        assert rows[0]["name"].as_string() == "Alice Smith"
        assert rows[1]["name"].as_string() == 'Bob "The Builder" Jones'

    def test_null_values(self):
        doc = parse("table.users\nid name email\n1 Alice ~\n2 ~ null\n3 Charlie NULL\n")
        rows = doc.get("users").rows
        assert rows[0]["email"].is_null()
        assert rows[1]["name"].is_null()
        assert rows[1]["email"].is_null()
        assert rows[2]["email"].is_null()

    def test_references(self):
        doc = parse("table.orders\nid user_id product\n1 :1 Widget\n2 :user:42 Gadget\n3 :OWNS:5 Gizmo\n")
        rows = doc.get("orders").rows
        assert rows[0]["user_id"].as_ref() == Reference(id="1")
        assert rows[1]["user_id"].as_ref() == Reference(id="42", namespace="user")
        ref = rows[2]["user_id"].as_ref()
        assert ref == Reference(id="5", relationship="OWNS")
        assert ref.is_relationship()

    def test_object_block(self):
        doc = parse("object.config\nkey value\ndebug true\ntimeout 30\n")
        block = doc.get("config")
        assert block.kind == "object"
        assert len(block.rows) == 2

    def test_meta_block(self):
        doc = parse("meta.info\nversion\n1.0\n")
        assert doc.get("info").kind == "meta"

    def test_multiple_blocks_keep_order(self):
        text = """
table.users
id name
1 Alice

table.orders
id user_id
O1 :1

object.meta
version 1.0
"""
        doc = parse(text)
        assert len(doc.blocks) == 3
        assert doc.order == ["users", "orders", "meta"]

    def test_header_ends_previous_block_without_blank_line(self):
        doc = parse("table.a\nx\n1\ntable.b\ny\n2\n")
        assert doc.order == ["a", "b"]
        assert len(doc.get("a").rows) == 1
        assert doc.get("b").rows[0]["y"] == IntValue(2)

    def test_repeated_block_name_replaces_in_place(self):
        doc = parse("table.a\nx\n1\n\ntable.b\ny\n2\n\ntable.a\nz\n3\n")
        assert doc.order == ["a", "b"]
        assert doc.get("a").get_field_names() == ["z"]

    def test_block_name_may_contain_dots(self):
        doc = parse("table.app.users\nid\n1\n")
        assert doc.order == ["app.users"]

    def test_header_without_fields(self):
        doc = parse("table.empty\n")
        block = doc.get("empty")
        assert block.fields == []
        assert block.rows == []


class TestRows:
    """Positional row semantics."""

    def test_short_row_leaves_fields_absent(self):
        doc = parse("table.t\na b c\n1 2\n")
        row = doc.get("t").rows[0]
        assert set(row) == {"a", "b"}
        assert "c" not in row

    def test_extra_tokens_are_dropped(self):
        doc = parse("table.t\na b\n1 2 3 4\n")
        assert doc.get("t").rows[0] == {"a": IntValue(1), "b": IntValue(2)}

    def test_dotted_value_is_not_a_header(self):
        doc = parse("table.t\nv\n3.14\nfoo.bar\n")
        rows = doc.get("t").rows
        assert rows[0]["v"] == FloatValue(3.14)
        assert rows[1]["v"] == StringValue("foo.bar")

    def test_quoted_line_with_dot_is_data(self):
        doc = parse('table.t\nv\n"table.x"\n')
        assert doc.get("t").rows[0]["v"] == StringValue("table.x")
        assert doc.order == ["t"]

    def test_empty_quoted_string(self):
        doc = parse('table.t\na b c\n1 "" x\n')
        row = doc.get("t").rows[0]
        assert row["b"] == StringValue("")
        assert row["c"] == StringValue("x")


class TestSummary:
    """Summary rows after ---."""

    def test_summary_row(self):
        doc = parse("table.sales\nproduct amount\nWidget 100\nGadget 200\n---\ntotal 300\n")
        block = doc.get("sales")
        assert len(block.rows) == 2
        assert block.summary_row is not None
        assert block.summary_row["amount"].as_int() == 300

    def test_last_summary_line_wins(self):
        doc = parse("table.s\na\n1\n---\n2\n3\n")
        block = doc.get("s")
        assert len(block.rows) == 1
        assert block.summary_row == {"a": IntValue(3)}

    def test_no_summary(self):
        assert parse(USERS).get("users").summary_row is None


class TestLeniency:
    """Parsing never raises on content."""

    def test_comments(self):
        text = """
# This is a comment
table.users
# Field definitions
id name
# Row 1
1 Alice
# Row 2
2 Bob
"""
        assert len(parse(text).get("users").rows) == 2

    def test_blank_line_ends_block(self):
        doc = parse("table.t\na\n1\n\n2\n")
        assert len(doc.get("t").rows) == 1

    def test_unknown_kind_is_skipped(self):
        doc = parse("widget.x\na\n1\n\ntable.t\na\n1\n")
        assert doc.order == ["t"]

    @pytest.mark.parametrize("text", ["", "\n\n", "garbage line", "...", "---", '"unterminated'])
    def test_broken_input_yields_empty_document(self, text):
        doc = parse(text)
        assert doc.order == []

    def test_crlf_input(self):
        doc = parse("table.t\r\na b\r\n1 2\r\n")
        assert doc.get("t").rows[0] == {"a": IntValue(1), "b": IntValue(2)}

    def test_skipped_lines_are_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="ison.parser"):
            parse("stray line\n")
        assert "stray line" in caplog.text


class TestParseBlockHeader:
    """Header detection."""

    def test_valid(self):
        assert parse_block_header("table.users") == ("table", "users")

    def test_invalid_kind(self):
        assert parse_block_header("tables.users") is None

    def test_no_dot(self):
        assert parse_block_header("table") is None


class TestISONL:
    """Streaming format."""

    def test_parse(self):
        text = (
            "table.users|id:int name:string|1 Alice\n"
            "table.users|id:int name:string|2 Bob\n"
            "table.orders|id product|O1 Widget"
        )
        doc = parse_isonl(text)
        assert len(doc.get("users").rows) == 2
        assert len(doc.get("orders").rows) == 1
        assert doc.order == ["users", "orders"]
        assert doc.get("users").rows[1] == {"id": IntValue(2), "name": StringValue("Bob")}

    def test_first_header_wins(self):
        text = "table.t|a b|1 2\ntable.t|x y z|3 4 5\n"
        block = parse_isonl(text).get("t")
        assert block.get_field_names() == ["a", "b"]
        assert block.rows[1] == {"a": IntValue(3), "b": IntValue(4)}

    def test_divergent_header_is_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="ison.parser"):
            parse_isonl("table.t|a|1\ntable.t|b|2\n")
        assert "differs" in caplog.text

    def test_pipes_inside_values_survive(self):
        block = parse_isonl('table.t|a|"x|y"\n').get("t")
        assert block.rows[0]["a"] == StringValue("x|y")

    def test_malformed_lines_are_skipped(self):
        text = "# comment\n\nnot a row\ntable|a|1\nobject.cfg|k|v\n"
        doc = parse_isonl(text)
        assert doc.order == ["cfg"]
        assert doc.get("cfg").kind == "object"

    def test_null_tokens(self):
        block = parse_isonl("table.t|a b|~ 1\n").get("t")
        assert block.rows[0]["a"] == NullValue()


class TestFiles:
    """File wrappers."""

    def test_load(self, tmp_path):
        path = tmp_path / "users.ison"
        path.write_text(USERS, encoding="utf-8")
        assert len(load(str(path)).get("users").rows) == 2

    def test_load_isonl(self, tmp_path):
        path = tmp_path / "users.isonl"
        path.write_text("table.u|id|1\ntable.u|id|2\n", encoding="utf-8")
        assert len(load_isonl(str(path)).get("u").rows) == 2

    def test_missing_file_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load(str(tmp_path / "missing.ison"))
