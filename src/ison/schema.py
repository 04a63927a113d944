"""
Schema validation for decoded ISON data.

Validators check generic maps (the shape produced by the serialization
layer) against declared shapes, in the spirit of Zod:

    users = table("users", {
        "id": int_(),
        "name": string().min(1),
        "email": string().email(),
        "manager": ref().namespace("user").optional(),
    })
    result = document({"users": users}).safe_parse(data)

ARCHITECTURAL RULES:
    - validate() RETURNS an error (or None). It never raises for bad data.
    - Leaf validators report at most one error per call.
    - Composite validators (object, array, table, document) never stop at
      the first failure; they return a ValidationErrors with every
      violation, each tagged with its path ("email", "[2]",
      "row[1].email", "users.row[1].email").
    - Builder methods mutate and return self. Configure first, then
      validate; do not reconfigure a schema that is in use.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple, Union

from ison.errors import ISONError, ValidationError, ValidationErrors
from ison.model import Document
from ison.serialization import row_to_dict


EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$")

Refinement = Callable[[Any], Optional[ISONError]]


def _type_name(v: Any) -> str:
    return type(v).__name__


def _fail(message: str, value: Any = None) -> ValidationError:
    return ValidationError(field="", message=message, value=value)


def _join_path(prefix: str, sub: str) -> str:
    if not sub:
        return prefix
    if not prefix:
        return sub
    if sub.startswith("["):
        return prefix + sub
    return f"{prefix}.{sub}"


def _collect(errs: ValidationErrors, path: str, err: Exception, value: Any) -> None:
    """Add err to errs under path, flattening nested aggregates."""
    if isinstance(err, ValidationErrors):
        for e in err.errors:
            errs.add(ValidationError(field=_join_path(path, e.field), message=e.message, value=e.value))
    elif isinstance(err, ValidationError):
        errs.add(ValidationError(field=_join_path(path, err.field), message=err.message, value=value))
    else:
        errs.add(ValidationError(field=path, message=str(err) or "unknown error", value=value))


class Schema(ABC):
    """
    Base class for all validators.

    Carries the shared optional / default / description / refinement
    state. A default is applied by the containing ObjectSchema when the
    field is missing; a scalar schema never injects it itself.
    """

    def __init__(self) -> None:
        self._optional = False
        self._default: Any = None
        self._has_default = False
        self._description = ""
        self._refinements: List[Refinement] = []

    def optional(self):
        self._optional = True
        return self

    def default(self, value: Any):
        self._default = value
        self._has_default = True
        return self

    def describe(self, description: str):
        self._description = description
        return self

    def refine(self, predicate: Callable[[Any], bool], message: str):
        """
        Add a custom check, run only after all built-in checks pass.

        Refinements run in the order added; the first failure wins.
        """

        def check(v: Any) -> Optional[ISONError]:
            if not predicate(v):
                return _fail(message, v)
            return None

        self._refinements.append(check)
        return self

    def is_optional(self) -> bool:
        return self._optional

    def get_default(self) -> Tuple[Any, bool]:
        return self._default, self._has_default

    def get_description(self) -> str:
        return self._description

    def _run_refinements(self, v: Any) -> Optional[ISONError]:
        for check in self._refinements:
            err = check(v)
            if err is not None:
                return err
        return None

    def _missing(self, what: str = "field") -> Optional[ISONError]:
        if self._optional:
            return None
        return _fail(f"required {what} is missing")

    @abstractmethod
    def validate(self, v: Any) -> Optional[ISONError]:
        """Return None if v is acceptable, else the error."""


class StringSchema(Schema):
    def __init__(self) -> None:
        super().__init__()
        self._min_len: Optional[int] = None
        self._max_len: Optional[int] = None
        self._exact_len: Optional[int] = None
        self._pattern: Optional[Pattern[str]] = None
        self._email = False
        self._url = False

    def min(self, n: int) -> "StringSchema":
        self._min_len = n
        return self

    def max(self, n: int) -> "StringSchema":
        self._max_len = n
        return self

    def length(self, n: int) -> "StringSchema":
        self._exact_len = n
        return self

    def email(self) -> "StringSchema":
        self._email = True
        return self

    def url(self) -> "StringSchema":
        self._url = True
        return self

    def regex(self, pattern: Union[str, Pattern[str]]) -> "StringSchema":
        """The whole string must match."""
        self._pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        return self

    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing()
        if not isinstance(v, str):
            return _fail(f"expected string, got {_type_name(v)}", v)

        if self._min_len is not None and len(v) < self._min_len:
            return _fail(f"string must be at least {self._min_len} characters", v)
        if self._max_len is not None and len(v) > self._max_len:
            return _fail(f"string must be at most {self._max_len} characters", v)
        if self._exact_len is not None and len(v) != self._exact_len:
            return _fail(f"string must be exactly {self._exact_len} characters", v)
        if self._email and not EMAIL_RE.fullmatch(v):
            return _fail("invalid email format", v)
        if self._url and not URL_RE.fullmatch(v):
            return _fail("invalid URL format", v)
        if self._pattern is not None and not self._pattern.fullmatch(v):
            return _fail("string does not match required pattern", v)

        return self._run_refinements(v)


class NumberSchema(Schema):
    """
    Accepts int and float (never bool).

    In integer mode the value must equal its own truncation, so 3.0
    passes and 3.5 fails.
    """

    def __init__(self, integer: bool = False) -> None:
        super().__init__()
        self._integer = integer
        self._min: Optional[float] = None
        self._max: Optional[float] = None
        self._positive = False
        self._negative = False

    def min(self, n: float) -> "NumberSchema":
        self._min = n
        return self

    def max(self, n: float) -> "NumberSchema":
        self._max = n
        return self

    def positive(self) -> "NumberSchema":
        self._positive = True
        return self

    def negative(self) -> "NumberSchema":
        self._negative = True
        return self

    def refine(self, predicate: Callable[[float], bool], message: str) -> "NumberSchema":
        def check(v: Any) -> Optional[ISONError]:
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                return None
            if not predicate(float(v)):
                return _fail(message, v)
            return None

        self._refinements.append(check)
        return self

    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing()
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return _fail(f"expected number, got {_type_name(v)}", v)

        num = v

        if self._integer and isinstance(num, float):
            if not math.isfinite(num) or num != math.trunc(num):
                return _fail("expected integer, got float", v)

        if self._min is not None and num < self._min:
            return _fail(f"number must be at least {self._min}", v)
        if self._max is not None and num > self._max:
            return _fail(f"number must be at most {self._max}", v)
        if self._positive and num <= 0:
            return _fail("number must be positive", v)
        if self._negative and num >= 0:
            return _fail("number must be negative", v)

        return self._run_refinements(v)


class BooleanSchema(Schema):
    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing()
        if not isinstance(v, bool):
            return _fail(f"expected boolean, got {_type_name(v)}", v)
        return self._run_refinements(v)


class NullSchema(Schema):
    def validate(self, v: Any) -> Optional[ISONError]:
        if v is not None:
            return _fail(f"expected null, got {_type_name(v)}", v)
        return None


class RefSchema(Schema):
    """
    Accepts a reference map (``{"_ref": ..., "_namespace": ...}``, the
    shape the serialization layer exports) or a ``:``-prefixed string.

    namespace()/relationship() constraints apply to the map form only.
    """

    def __init__(self) -> None:
        super().__init__()
        self._namespace: Optional[str] = None
        self._relationship: Optional[str] = None

    def namespace(self, ns: str) -> "RefSchema":
        self._namespace = ns
        return self

    def relationship(self, rel: str) -> "RefSchema":
        self._relationship = rel
        return self

    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing()

        if isinstance(v, Mapping):
            if "_ref" not in v:
                return _fail("expected reference object with _ref field", v)
            if self._namespace is not None and v.get("_namespace") != self._namespace:
                return _fail(f"expected namespace {self._namespace}", v)
            if self._relationship is not None and v.get("_relationship") != self._relationship:
                return _fail(f"expected relationship {self._relationship}", v)
        elif isinstance(v, str):
            if not v.startswith(":"):
                return _fail("expected reference string starting with ':'", v)
        else:
            return _fail(f"expected reference, got {_type_name(v)}", v)

        return self._run_refinements(v)


class ObjectSchema(Schema):
    """
    Validates a map against a fixed field -> schema mapping.

    A missing field whose (required) schema has a default takes the
    default and is not validated on this pass. Every field error is
    collected before returning.
    """

    def __init__(self, fields: Optional[Dict[str, Schema]] = None) -> None:
        super().__init__()
        self._fields: Dict[str, Schema] = dict(fields or {})

    @property
    def shape(self) -> Dict[str, Schema]:
        return dict(self._fields)

    def extend(self, fields: Dict[str, Schema]) -> "ObjectSchema":
        return ObjectSchema({**self._fields, **fields})

    def pick(self, *keys: str) -> "ObjectSchema":
        return ObjectSchema({k: s for k, s in self._fields.items() if k in keys})

    def omit(self, *keys: str) -> "ObjectSchema":
        return ObjectSchema({k: s for k, s in self._fields.items() if k not in keys})

    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing()
        if not isinstance(v, Mapping):
            return _fail(f"expected object, got {_type_name(v)}", v)

        obj = dict(v)
        errs = ValidationErrors()
        for name, schema in self._fields.items():
            field_value = obj.get(name)
            if field_value is None and not schema.is_optional():
                default, has_default = schema.get_default()
                if has_default:
                    obj[name] = default
                    continue
            err = schema.validate(field_value)
            if err is not None:
                _collect(errs, name, err, field_value)

        if errs.has_errors():
            return errs

        return self._run_refinements(obj)


class ArraySchema(Schema):
    def __init__(self, item_schema: Schema) -> None:
        super().__init__()
        self._item_schema = item_schema
        self._min_len: Optional[int] = None
        self._max_len: Optional[int] = None

    def min(self, n: int) -> "ArraySchema":
        self._min_len = n
        return self

    def max(self, n: int) -> "ArraySchema":
        self._max_len = n
        return self

    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing()
        if not isinstance(v, (list, tuple)):
            return _fail(f"expected array, got {_type_name(v)}", v)

        if self._min_len is not None and len(v) < self._min_len:
            return _fail(f"array must have at least {self._min_len} items", v)
        if self._max_len is not None and len(v) > self._max_len:
            return _fail(f"array must have at most {self._max_len} items", v)

        errs = ValidationErrors()
        for i, item in enumerate(v):
            err = self._item_schema.validate(item)
            if err is not None:
                _collect(errs, f"[{i}]", err, item)

        if errs.has_errors():
            return errs

        return self._run_refinements(v)


class TableSchema(Schema):
    """
    Validates the rows of a table block.

    Accepts a bare list of row maps or a block map carrying ``rows``
    (as produced by block_to_dict). Errors are tagged ``row[i]`` and
    ``row[i].field``.
    """

    def __init__(self, name: str, fields: Dict[str, Schema]) -> None:
        super().__init__()
        self._name = name
        self._row_schema = ObjectSchema(fields)

    @property
    def name(self) -> str:
        return self._name

    def get_name(self) -> str:
        return self._name

    def validate(self, v: Any) -> Optional[ISONError]:
        if v is None:
            return self._missing("table")
        if isinstance(v, Mapping):
            rows = v.get("rows")
            if not isinstance(rows, (list, tuple)):
                return _fail("expected table with rows array", v)
            return self._validate_rows(rows)
        if isinstance(v, (list, tuple)):
            return self._validate_rows(v)
        return _fail(f"expected table, got {_type_name(v)}", v)

    def _validate_rows(self, rows) -> Optional[ISONError]:
        errs = ValidationErrors()
        for i, row in enumerate(rows):
            path = f"row[{i}]"
            if not isinstance(row, Mapping):
                errs.add(ValidationError(field=path, message="expected row object", value=row))
                continue
            err = self._row_schema.validate(row)
            if err is not None:
                _collect(errs, path, err, row)

        if errs.has_errors():
            return errs

        return self._run_refinements(rows)


@dataclass
class SafeParseResult:
    """Outcome of DocumentSchema.safe_parse; exactly one of data/error is set."""

    success: bool = False
    data: Optional[Dict[str, Any]] = None
    error: Optional[ValidationErrors] = None


def document_values(doc: Document) -> Dict[str, Any]:
    """
    Shape a Document for validation: table blocks become lists of row
    maps, object and meta blocks become their first row (or None).
    """
    values: Dict[str, Any] = {}
    for block in doc.ordered_blocks():
        rows = [row_to_dict(r) for r in block.rows]
        if block.kind == "table":
            values[block.name] = rows
        else:
            values[block.name] = rows[0] if rows else None
    return values


class DocumentSchema:
    """
    Validates a block name -> value map against block name -> schema.

    Blocks present in the data but absent from the schema are ignored.
    A Document may be passed directly; it is shaped by document_values.
    """

    def __init__(self, blocks: Dict[str, Schema]) -> None:
        self._blocks = dict(blocks)

    def validate(self, value: Any) -> Optional[ValidationErrors]:
        if isinstance(value, Document):
            value = document_values(value)
        errs = ValidationErrors()
        if not isinstance(value, Mapping):
            errs.add(ValidationError(field="", message=f"expected document, got {_type_name(value)}", value=value))
            return errs

        for name, schema in self._blocks.items():
            block_value = value.get(name)
            err = schema.validate(block_value)
            if err is not None:
                _collect(errs, name, err, block_value)

        return errs if errs.has_errors() else None

    def parse(self, value: Any) -> Dict[str, Any]:
        """
        Return the validated data.

        Raises:
            ValidationErrors: With every violation found
        """
        if isinstance(value, Document):
            value = document_values(value)
        err = self.validate(value)
        if err is not None:
            raise err
        return value

    def safe_parse(self, value: Any) -> SafeParseResult:
        try:
            data = self.parse(value)
        except ValidationErrors as err:
            return SafeParseResult(success=False, data=None, error=err)
        return SafeParseResult(success=True, data=data, error=None)


# =========================================================================
# Factory functions
# =========================================================================


def string() -> StringSchema:
    return StringSchema()


def number() -> NumberSchema:
    return NumberSchema()


def int_() -> NumberSchema:
    return NumberSchema(integer=True)


def float_() -> NumberSchema:
    return NumberSchema()


def boolean() -> BooleanSchema:
    return BooleanSchema()


bool_ = boolean


def null() -> NullSchema:
    return NullSchema()


def ref() -> RefSchema:
    return RefSchema()


reference = ref


def object_(fields: Dict[str, Schema]) -> ObjectSchema:
    return ObjectSchema(fields)


def array(item_schema: Schema) -> ArraySchema:
    return ArraySchema(item_schema)


def table(name: str, fields: Dict[str, Schema]) -> TableSchema:
    return TableSchema(name, fields)


def document(blocks: Dict[str, Schema]) -> DocumentSchema:
    return DocumentSchema(blocks)


__all__ = [
    "Schema",
    "StringSchema",
    "NumberSchema",
    "BooleanSchema",
    "NullSchema",
    "RefSchema",
    "ObjectSchema",
    "ArraySchema",
    "TableSchema",
    "DocumentSchema",
    "SafeParseResult",
    "document_values",
    "string",
    "number",
    "int_",
    "float_",
    "boolean",
    "bool_",
    "null",
    "ref",
    "reference",
    "object_",
    "array",
    "table",
    "document",
]
