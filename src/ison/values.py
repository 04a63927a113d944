"""
Value System for ISON

Every cell of an ISON row holds exactly one Value. A Value is a closed
family of variants, each carrying only its own payload:

    NullValue()            ~
    BoolValue(True)        true
    IntValue(42)           42
    FloatValue(3.14)       3.14
    StringValue("hi")      hi / "hi there"
    RefValue(Reference)    :1  :user:42  :OWNS:5

ARCHITECTURAL RULE:
    Values are immutable (frozen=True).
    No implicit coercion is ever stored: "42" decoded with a string hint
    stays a StringValue. The only widening is the as_float() accessor,
    which also reads an IntValue.
"""

from __future__ import annotations

import json
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueType(Enum):
    """
    Variant tag of a Value.

    Useful when a caller needs to branch on the kind of cell without
    isinstance checks (e.g. when rendering column statistics).
    """

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    REFERENCE = "ref"


@dataclass(frozen=True)
class Reference:
    """
    An inline pointer to another record.

    Forms:
        :42             -> Reference(id="42")
        :user:42        -> Reference(id="42", namespace="user")
        :OWNS:5         -> Reference(id="5", relationship="OWNS")

    Properties:
        id: Always free-form text. ":007" keeps its leading zeros.
        namespace: Table-like qualifier (lowercase or mixed case).
        relationship: Edge type, set only when the qualifier is all
            uppercase letters and underscores.

    At most one of namespace/relationship is meaningful; relationship
    wins when rendering.
    """

    id: str = ""
    namespace: str = ""
    relationship: str = ""

    def to_ison(self) -> str:
        if self.relationship.strip():
            return f":{self.relationship}:{self.id}"
        if self.namespace.strip():
            return f":{self.namespace}:{self.id}"
        return f":{self.id}"

    def is_relationship(self) -> bool:
        return bool(self.relationship.strip())

    def ns_or_rel(self) -> str:
        """Return the relationship if set, otherwise the namespace."""
        return self.relationship if self.relationship.strip() else self.namespace

    def to_dict(self) -> Dict[str, str]:
        return {
            "_ref": self.id,
            "_namespace": self.namespace,
            "_relationship": self.relationship,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Reference":
        return cls(
            id=str(d.get("_ref", "")),
            namespace=d.get("_namespace") or "",
            relationship=d.get("_relationship") or "",
        )

    def __str__(self) -> str:
        return self.to_ison()


class Value(ABC):
    """
    Base class for all ISON cell values.

    Accessors return None on a variant mismatch; they never raise.
    Subclasses override only the accessor matching their own payload.
    """

    type: ValueType

    def is_null(self) -> bool:
        return False

    def as_bool(self) -> Optional[bool]:
        return None

    def as_int(self) -> Optional[int]:
        return None

    def as_float(self) -> Optional[float]:
        return None

    def as_string(self) -> Optional[str]:
        return None

    def as_ref(self) -> Optional[Reference]:
        return None

    def to_python(self) -> Any:
        """Return the generic scalar for this value (Reference for refs)."""
        raise NotImplementedError

    def to_ison(self) -> str:
        from ison.codec import encode_value

        return encode_value(self)


@dataclass(frozen=True)
class NullValue(Value):
    """The absent value, written as ``~``."""

    type = ValueType.NULL

    def is_null(self) -> bool:
        return True

    def to_python(self) -> Any:
        return None


@dataclass(frozen=True)
class BoolValue(Value):
    value: bool

    type = ValueType.BOOL

    def as_bool(self) -> Optional[bool]:
        return self.value

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class IntValue(Value):
    """
    Signed 64-bit integer.

    as_float() widens; this is the only cross-variant accessor.
    """

    value: int

    type = ValueType.INT

    def as_int(self) -> Optional[int]:
        return self.value

    def as_float(self) -> Optional[float]:
        return float(self.value)

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class FloatValue(Value):
    value: float

    type = ValueType.FLOAT

    def as_float(self) -> Optional[float]:
        return self.value

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class StringValue(Value):
    value: str

    type = ValueType.STRING

    def as_string(self) -> Optional[str]:
        return self.value

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class RefValue(Value):
    value: Reference

    type = ValueType.REFERENCE

    def as_ref(self) -> Optional[Reference]:
        return self.value

    def to_python(self) -> Any:
        return self.value


NULL = NullValue()


def to_value(obj: Any) -> Value:
    """
    Build a Value from a generic scalar (JSON/YAML/dataclass field).

    bool is checked before int because bool is an int subclass.
    Integral floats collapse to IntValue, matching how JSON numbers
    written as ``1.0`` are usually meant.
    """
    if obj is None:
        return NULL
    if isinstance(obj, Value):
        return obj
    if isinstance(obj, bool):
        return BoolValue(obj)
    if isinstance(obj, int):
        return IntValue(obj)
    if isinstance(obj, float):
        if obj.is_integer() and INT64_MIN <= obj <= INT64_MAX:
            return IntValue(int(obj))
        return FloatValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, Reference):
        return RefValue(obj)
    if isinstance(obj, dict) and "_ref" in obj:
        return RefValue(Reference.from_dict(obj))
    if isinstance(obj, (list, dict)):
        return StringValue(json.dumps(obj, default=str))
    return StringValue(str(obj))
