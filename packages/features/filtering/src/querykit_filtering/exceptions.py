"""Filtering package exceptions.

All of them are client-input errors and derive from the core
``ValidationError`` so an API layer can map them to a 400 response.
"""

from __future__ import annotations

from typing import Any

from querykit_core.primitives.exceptions import ValidationError


class FilterParseError(ValidationError):
    """Raised when query string or filter structure is invalid."""


class FieldNotAllowedError(ValidationError):
    """Raised when a field is not in the whitelist or operator is disallowed."""


class InvalidCursorError(ValidationError):
    """A pagination cursor was rejected; ``details`` carries the codec's reason."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__({"cursor": [message]})
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message
