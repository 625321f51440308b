"""FieldWhitelist: per-resource filterable, sortable and includable fields."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .exceptions import FieldNotAllowedError
from .syntax import normalise_operator


class FieldWhitelist:
    """
    Per-resource allowed fields and operators.

    ``filterable_fields`` maps a field path to its allowed operators, given
    as values (``">="``) or aliases (``"gte"``); an empty set allows every
    operator on that field.

    ``sortable_fields`` is either a set of field paths or a mapping of
    field path to value type (``{"created_at": datetime, "id": int}``).
    The types are what keyset cursors over those fields decode into, so
    keyset paging needs the mapping form.
    """

    def __init__(
        self,
        *,
        filterable_fields: Mapping[str, Iterable[str]] | None = None,
        sortable_fields: Mapping[str, Any] | Iterable[str] | None = None,
        includable_paths: Iterable[str] | None = None,
    ) -> None:
        self.filterable_fields: dict[str, frozenset[str]] = {
            name: frozenset(normalise_operator(op) for op in ops)
            for name, ops in (filterable_fields or {}).items()
        }
        if isinstance(sortable_fields, Mapping):
            self.sort_types: dict[str, Any] = dict(sortable_fields)
        else:
            self.sort_types = {}
        self.sortable_fields = frozenset(sortable_fields or ())
        self.includable_paths = frozenset(includable_paths or ())

    def allow_filter(self, field: str, op: str) -> None:
        """Raise FieldNotAllowedError if field or operator is not allowed."""
        if field not in self.filterable_fields:
            raise FieldNotAllowedError({field: [f"Field {field!r} is not filterable"]})
        allowed_ops = self.filterable_fields[field]
        if allowed_ops and normalise_operator(op) not in allowed_ops:
            raise FieldNotAllowedError(
                {field: [f"Operator {op!r} not allowed for field {field!r}"]}
            )

    def allow_sort(self, field: str) -> None:
        if field not in self.sortable_fields:
            raise FieldNotAllowedError({field: [f"Field {field!r} is not sortable"]})

    def allow_include(self, path: str) -> None:
        if path not in self.includable_paths:
            raise FieldNotAllowedError({path: [f"Path {path!r} cannot be included"]})
