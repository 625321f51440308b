"""API query parsing: filter, sort, include and pagination into a QuerySpecification."""

from __future__ import annotations

from .exceptions import FieldNotAllowedError, FilterParseError, InvalidCursorError
from .pagination import PageRequest, PaginationParser
from .parser import QueryParser
from .syntax import ColonSeparatedSyntax, FilterSyntax, JsonFilterSyntax, normalise_operator
from .whitelist import FieldWhitelist

__all__ = [
    "ColonSeparatedSyntax",
    "FieldNotAllowedError",
    "FieldWhitelist",
    "FilterParseError",
    "FilterSyntax",
    "InvalidCursorError",
    "JsonFilterSyntax",
    "PageRequest",
    "PaginationParser",
    "QueryParser",
    "normalise_operator",
]
