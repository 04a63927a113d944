"""
Exceptions for the ison package.

Boundaries
- Parsing never raises on content; unreadable input yields fewer blocks.
- Validators return these exceptions as values instead of raising them.
  Only DocumentSchema.parse raises, and only ValidationErrors.
- File I/O errors (OSError) propagate unmodified from load/dump.
"""

from __future__ import annotations

from typing import Any, List


class ISONError(Exception):
    """
    Base class for errors produced by the ison package.

    Notes:
        Carries a plain message; subclasses add structure.
    """

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ISONError):
    """
    A single validation finding.

    Attributes:
        field: Dotted/bracketed path to the offending value, e.g.
            "email", "[2]", "row[1].email", "users.row[1].email".
            Empty for a leaf validator that does not know its position.
        value: The offending value.
    """

    def __init__(self, field: str = "", message: str = "", value: Any = None):
        self.field = field
        self._message = message
        self.value = value
        super().__init__(self.error())

    @property
    def message(self) -> str:
        return self._message

    def error(self) -> str:
        if not self.field:
            return self._message
        return f"{self.field}: {self._message}"


class ValidationErrors(ISONError):
    """
    An aggregate of findings from a composite validator.

    Composite validators (object, array, table, document) always collect
    every violation before returning one of these.
    """

    def __init__(self, errors: List[ValidationError] | None = None):
        self.errors: List[ValidationError] = list(errors or [])
        super().__init__()

    def add(self, error: ValidationError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def error(self) -> str:
        return "; ".join(e.error() for e in self.errors)

    @property
    def message(self) -> str:
        return self.error()

    def __str__(self) -> str:
        return self.error()

    def __iter__(self):
        return iter(self.errors)
