"""
Custom exceptions for reading tree exports.
"""

from __future__ import annotations
from typing import Optional


class JsonlProcessorError(Exception):
    """Base exception for tree export processing errors."""

    pass


class EmptyInputError(JsonlProcessorError):
    """Raised when the input has no metadata line."""

    pass


class DecompressionError(JsonlProcessorError):
    """Raised when gzip input is malformed or truncated."""

    pass


class SchemaError(JsonlProcessorError, ValueError):
    """
    Raised when a line is not valid JSON or does not match the expected record shape.

    Attributes:
        line_number: 1-based line of the input the error refers to, if known
        field: Name of the offending field, if known
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        field: Optional[str] = None,
    ):
        self.reason = message
        self.line_number = line_number
        self.field = field
        super().__init__(self._compose())

    def _compose(self) -> str:
        parts = []
        if self.line_number is not None:
            parts.append(f"line {self.line_number}")
        if self.field is not None:
            parts.append(f"field '{self.field}'")
        if not parts:
            return self.reason
        return f"{', '.join(parts)}: {self.reason}"

    def at_line(self, line_number: int) -> "SchemaError":
        """Return a copy of this error bound to ``line_number``."""
        return SchemaError(self.reason, line_number=line_number, field=self.field)
