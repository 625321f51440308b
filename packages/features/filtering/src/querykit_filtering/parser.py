"""QueryParser: untrusted query params -> QuerySpecification.

Recognised parameters (names configurable)::

    filter   predicate JSON (or colon syntax, see ``syntax``)
    sort     "-created_at,id"
    include  "customer,lines.product"
    limit, offset                     offset paging
    cursor / before                   keyset paging, forward / backward

Keyset paging uses every sort key as a keyset key, so a cursor is only
accepted together with a ``sort``.  The last sort key should be unique
(e.g. ``id``) for pages to be stable.

Cursors decode into the declared types of the sort fields (see
``FieldWhitelist`` and ``sort_types``), so a ``datetime`` key comes back
as a ``datetime`` and a payload of the wrong type is a client error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from querykit_core.ports.queryable import OrderKey
from querykit_specifications.cursor import keyset_cursor_type
from querykit_specifications.exceptions import (
    KeysetCursorError,
    OperatorNotFoundError,
)
from querykit_specifications.exceptions import (
    ValidationError as SpecificationValidationError,
)
from querykit_specifications.predicates import iter_leaves, predicate_from_dict
from querykit_specifications.query import QuerySpecificationBuilder

from .exceptions import FilterParseError, InvalidCursorError
from .pagination import PageRequest, PaginationParser
from .syntax import FilterSyntax, JsonFilterSyntax

if TYPE_CHECKING:
    from collections.abc import Mapping

    from querykit_specifications.operators_memory import MemoryOperatorRegistry
    from querykit_specifications.query import QuerySpecification

    from .whitelist import FieldWhitelist

logger = logging.getLogger("querykit.filtering")


class QueryParser:
    """
    Build a :class:`QuerySpecification` from API query parameters.

    ``pagination_mode`` decides what a request without ``offset`` or
    ``cursor`` gets: an offset first page or a keyset first page.

    ``sort_types`` maps sort field paths to their value types for callers
    that parse without a whitelist; types declared on the whitelist take
    precedence.
    """

    def __init__(
        self,
        *,
        syntax: FilterSyntax | None = None,
        pagination: PaginationParser | None = None,
        registry: MemoryOperatorRegistry | None = None,
        pagination_mode: Literal["offset", "keyset"] = "offset",
        sort_types: Mapping[str, Any] | None = None,
    ) -> None:
        self._syntax = syntax or JsonFilterSyntax()
        self._pagination = pagination or PaginationParser()
        self._registry = registry
        self._mode = pagination_mode
        self._sort_types = dict(sort_types or {})

    def parse(
        self,
        query_params: dict[str, Any],
        whitelist: FieldWhitelist | None = None,
        cursor_type: Any = None,
        *,
        filter_key: str = "filter",
        sort_key: str = "sort",
        include_key: str = "include",
    ) -> QuerySpecification[Any]:
        """
        Parse *query_params*.

        ``cursor_type`` overrides the type cursors decode into.  By default
        it is built from the sort fields' declared types: the field's type
        for a single sort key, else a ``TypedDict`` keyed by field path.

        Raises:
            FilterParseError: Malformed parameters.
            FieldNotAllowedError: A field or operator outside *whitelist*.
            InvalidCursorError: A rejected cursor.
            TypeError: Keyset paging over a sort field with no declared type.
        """
        builder = QuerySpecificationBuilder(
            registry=self._registry, max_page_size=self._pagination.max_limit
        )

        criteria = self._syntax.parse_filter(query_params.get(filter_key))
        if criteria:
            try:
                predicate = predicate_from_dict(criteria)
            except (SpecificationValidationError, OperatorNotFoundError) as exc:
                raise FilterParseError(str(exc)) from exc
            if whitelist:
                for leaf in iter_leaves(predicate):
                    whitelist.allow_filter(leaf.attr, leaf.operator.value)
            builder.add_criteria(predicate)

        ordering = self._parse_sort(query_params.get(sort_key), whitelist)
        for index, key in enumerate(ordering):
            if index == 0:
                if key.descending:
                    builder.apply_order_by_descending(key.field)
                else:
                    builder.apply_order_by(key.field)
            elif key.descending:
                builder.apply_then_by_descending(key.field)
            else:
                builder.apply_then_by(key.field)

        for path in self._parse_list(query_params.get(include_key), include_key):
            if whitelist:
                whitelist.allow_include(path)
            builder.add_include(path)

        page = self._pagination.parse(query_params)
        if page.is_keyset or (self._mode == "keyset" and page.offset is None):
            self._apply_keyset_paging(builder, page, ordering, whitelist, cursor_type)
        else:
            builder.apply_paging(skip=page.offset or 0, take=page.limit)

        spec = builder.build()
        logger.debug("Parsed query parameters into %s", spec.describe())
        return spec

    def cursor_type_for(
        self, ordering: list[OrderKey], whitelist: FieldWhitelist | None = None
    ) -> Any:
        """
        The type a cursor over *ordering* decodes into.

        Raises:
            TypeError: A sort field has no declared type.
        """
        types = dict(self._sort_types)
        if whitelist is not None:
            types.update(whitelist.sort_types)
        missing = [key.field for key in ordering if key.field not in types]
        if missing:
            raise TypeError(
                f"No cursor type declared for sort field(s) {missing}; declare "
                "them in FieldWhitelist(sortable_fields={field: type}) or "
                "QueryParser(sort_types=...), or pass cursor_type"
            )
        return keyset_cursor_type([(key.field, types[key.field]) for key in ordering])

    def _apply_keyset_paging(
        self,
        builder: QuerySpecificationBuilder,
        page: PageRequest,
        ordering: list[OrderKey],
        whitelist: FieldWhitelist | None,
        cursor_type: Any,
    ) -> None:
        if not ordering:
            raise FilterParseError("Cursor pagination requires a 'sort' parameter")
        if cursor_type is None:
            cursor_type = self.cursor_type_for(ordering, whitelist)
        after = None
        if page.cursor is not None:
            after = self._pagination.decode_cursor(page.cursor, cursor_type)
        try:
            builder.apply_keyset_paging(
                ordering, after, page.limit, backward=page.backward
            )
        except KeysetCursorError as exc:
            raise InvalidCursorError(
                f"Cursor does not match the requested sort: {exc}"
            ) from exc

    def _parse_sort(self, raw: Any, whitelist: FieldWhitelist | None) -> list[OrderKey]:
        keys: list[OrderKey] = []
        for item in self._parse_list(raw, "sort"):
            descending = item.startswith("-")
            name = item[1:].strip() if descending or item.startswith("+") else item
            if not name:
                raise FilterParseError(f"Invalid sort key: {item!r}")
            if whitelist:
                whitelist.allow_sort(name)
            if any(k.field == name for k in keys):
                raise FilterParseError(f"Duplicate sort key: {name!r}")
            keys.append(OrderKey(name, descending=descending))
        return keys

    @staticmethod
    def _parse_list(raw: Any, key: str) -> list[str]:
        if raw is None or raw == "":
            return []
        if isinstance(raw, str):
            return [part.strip() for part in raw.split(",") if part.strip()]
        if isinstance(raw, list) and all(isinstance(p, str) for p in raw):
            return [p.strip() for p in raw if p.strip()]
        raise FilterParseError(f"'{key}' must be a comma-separated string")
