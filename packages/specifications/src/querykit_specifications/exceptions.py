"""
Specification exception hierarchy.

All exceptions inherit from ``SpecificationError`` and provide
``to_dict()`` for API-friendly error responses.

Three families matter to callers:

- construction contract violations (``SpecificationContractError``) are
  programming errors raised while a query specification is being built;
- cursor errors (``CursorError``) reject caller-supplied pagination tokens
  and should surface as a client-input error;
- structure errors (``ValidationError``, ``OperatorNotFoundError``,
  ``FieldNotFoundError``) reject malformed predicate trees.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any

from querykit_core.primitives.exceptions import QueryKitError

# Cursors are attacker-controlled; never echo more than this back.
_CURSOR_PREVIEW_LENGTH = 64


class SpecificationError(QueryKitError):
    """Base exception for all specification errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ValidationError(SpecificationError):
    """Predicate tree structure validation failed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "message": self.message,
            "path": self.path,
        }


class OperatorNotFoundError(SpecificationError):
    """
    Unknown operator specified.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(self, operator: str, valid_operators: list[str]) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Unknown operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_FOUND",
            "operator": self.operator,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }


class FieldNotFoundError(SpecificationError):
    """
    Invalid field path with helpful suggestions.

    Raised by translation layers when a predicate or ordering names a
    field the backing model does not have.
    """

    def __init__(
        self,
        invalid_field: str,
        model_name: str,
        available_fields: list[str],
        full_path: str | None = None,
    ) -> None:
        self.invalid_field = invalid_field
        self.model_name = model_name
        self.available_fields = available_fields
        self.full_path = full_path or invalid_field
        self.suggestions = get_close_matches(
            invalid_field, available_fields, n=5, cutoff=0.6
        )

        message = f"Invalid field '{invalid_field}' on '{model_name}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_FOUND",
            "field": self.invalid_field,
            "model": self.model_name,
            "full_path": self.full_path,
            "suggestions": self.suggestions,
        }


class RelationshipTraversalError(ValidationError):
    """
    A dotted path tried to traverse a field that is not a relationship,
    e.g. ``name.something`` where ``name`` is a scalar column.
    """

    def __init__(self, field: str, model_name: str, full_path: str) -> None:
        self.field = field
        self.model_name = model_name
        self.full_path = full_path
        super().__init__(
            f"Cannot traverse '{field}' on '{model_name}': "
            f"it is not a relationship. Full path: '{full_path}'",
            path=full_path,
        )


# ── Construction contract violations ─────────────────────────────────


class SpecificationContractError(SpecificationError):
    """A query specification was built in a way its contract forbids."""


class ConflictingPaginationError(SpecificationContractError):
    """Offset and keyset pagination were both requested on one specification."""


class MissingPrimaryOrderError(SpecificationContractError):
    """A secondary ordering was added before any primary ordering."""


class InvalidPageSizeError(SpecificationContractError):
    """``skip``/``take`` outside their allowed range."""


class KeysetOrderMismatchError(SpecificationContractError):
    """Keyset keys are not the leading keys of the established ordering."""


class KeysetCursorError(SpecificationContractError):
    """The keyset ``last_value`` does not carry a value for every keyset key."""


class NonDeterministicOrderError(SpecificationError):
    """Two consecutive rows share the same keyset value.

    Keyset pagination needs a total order; add a unique tie-breaker
    (typically the primary key) as the last keyset key.
    """


# ── Cursor errors ────────────────────────────────────────────────────


class CursorError(SpecificationError):
    """Base class for rejected pagination cursors (client-input errors)."""

    code = "INVALID_CURSOR"

    def __init__(self, message: str, cursor: str | None) -> None:
        self.cursor = _preview(cursor)
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "cursor": self.cursor,
        }


class MalformedCursorError(CursorError):
    """The cursor is not a well-formed base64url canonical JSON token."""

    code = "MALFORMED_CURSOR"

    def __init__(self, cursor: str | None, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed cursor {_preview(cursor)!r}: {reason}", cursor)


class CursorPayloadMismatchError(CursorError):
    """The cursor decodes, but not into the requested type."""

    code = "CURSOR_PAYLOAD_MISMATCH"

    def __init__(
        self,
        cursor: str | None,
        expected_type: str,
        details: list[str] | None = None,
    ) -> None:
        self.expected_type = expected_type
        self.details = details or []
        message = f"Cursor payload does not match expected type {expected_type}"
        if self.details:
            message += f": {'; '.join(self.details)}"
        super().__init__(message, cursor)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["expected_type"] = self.expected_type
        data["details"] = self.details
        return data


def _preview(cursor: str | None) -> str | None:
    if cursor is None or len(cursor) <= _CURSOR_PREVIEW_LENGTH:
        return cursor
    return cursor[:_CURSOR_PREVIEW_LENGTH] + "..."
