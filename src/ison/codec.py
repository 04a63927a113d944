"""
Value codec: token text <-> Value.

Decoding precedence (independent of the type hint):
    1. ~ / null / NULL           -> NullValue
    2. true / TRUE, false / FALSE -> BoolValue
    3. leading ':'               -> RefValue
    4. type hint dispatch (int, float, bool, string, ref)
    5. auto inference: int, then float, then string
"""

from __future__ import annotations

import math
import re
from typing import Optional

from ison.values import (
    INT64_MAX,
    INT64_MIN,
    NULL,
    BoolValue,
    FloatValue,
    IntValue,
    NullValue,
    Reference,
    RefValue,
    StringValue,
    Value,
)


NULL_TOKENS = frozenset({"~", "null", "NULL"})
TRUE_TOKENS = frozenset({"true", "TRUE"})
FALSE_TOKENS = frozenset({"false", "FALSE"})

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?NaN|[+-]?Infinity"
)
_RELATIONSHIP_RE = re.compile(r"[A-Z_]+")

_NEEDS_QUOTES = (" ", "\t", "\n", '"')


def parse_int(token: str) -> Optional[int]:
    """Strict signed 64-bit integer parse; None if the token is not one."""
    if not _INT_RE.fullmatch(token):
        return None
    n = int(token)
    if n < INT64_MIN or n > INT64_MAX:
        return None
    return n


def parse_float(token: str) -> Optional[float]:
    if not _FLOAT_RE.fullmatch(token):
        return None
    return float(token.replace("Infinity", "inf"))


def format_float(f: float) -> str:
    """Shortest round-tripping text; non-finite values use NaN / Infinity."""
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "Infinity" if f > 0 else "-Infinity"
    return repr(f)


def quote_string(s: str) -> str:
    """Quote-wrap with the escapes tokenize_line decodes."""
    escaped = s.replace("\\", "\\\\")
    escaped = escaped.replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n")
    escaped = escaped.replace("\t", "\\t")
    return f'"{escaped}"'


def encode_string(s: str) -> str:
    if not s.strip() or any(c in s for c in _NEEDS_QUOTES):
        return quote_string(s)
    return s


def encode_value(v: Value) -> str:
    """
    Render a Value as a single ISON token.

    Examples:
        NullValue()                -> ~
        BoolValue(False)           -> false
        StringValue("hello world") -> "hello world"
        RefValue(Reference("1", namespace="user")) -> :user:1
    """
    if isinstance(v, NullValue):
        return "~"
    if isinstance(v, BoolValue):
        return "true" if v.value else "false"
    if isinstance(v, IntValue):
        return str(v.value)
    if isinstance(v, FloatValue):
        return format_float(v.value)
    if isinstance(v, StringValue):
        return encode_string(v.value)
    if isinstance(v, RefValue):
        return v.value.to_ison()
    raise TypeError(f"Unsupported Value type: {type(v)}")


def parse_reference(token: str) -> Reference:
    """
    Parse ``:id``, ``:namespace:id`` or ``:RELATIONSHIP:id``.

    The qualifier is a relationship only when it is non-empty and made
    of uppercase ASCII letters and underscores. Ids are never parsed as
    numbers. A token without the leading colon becomes a bare id.
    """
    if not token.startswith(":"):
        return Reference(id=token)
    body = token[1:]
    parts = body.split(":", 1)
    if len(parts) == 1:
        return Reference(id=parts[0])
    qualifier, ref_id = parts
    if _RELATIONSHIP_RE.fullmatch(qualifier):
        return Reference(id=ref_id, relationship=qualifier)
    return Reference(id=ref_id, namespace=qualifier)


def parse_value(token: str, type_hint: str = "") -> Value:
    """
    Decode one token into a Value, guided by the field's type hint.

    A hint that does not match the token falls through to inference
    rather than failing: ``abc`` under an ``int`` hint is a string.
    """
    if token in NULL_TOKENS:
        return NULL
    if token in TRUE_TOKENS:
        return BoolValue(True)
    if token in FALSE_TOKENS:
        return BoolValue(False)
    if token.startswith(":"):
        return RefValue(parse_reference(token))

    if type_hint == "int":
        n = parse_int(token)
        if n is not None:
            return IntValue(n)
    elif type_hint == "float":
        f = parse_float(token)
        if f is not None:
            return FloatValue(f)
    elif type_hint == "bool":
        if token == "1":
            return BoolValue(True)
        if token == "0":
            return BoolValue(False)
    elif type_hint == "string":
        return StringValue(token)
    elif type_hint == "ref":
        # a ':' token was already handled above
        return StringValue(token)

    n = parse_int(token)
    if n is not None:
        return IntValue(n)
    f = parse_float(token)
    if f is not None:
        return FloatValue(f)
    return StringValue(token)
