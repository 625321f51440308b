"""
Page assembly for keyset (cursor) and offset paging.

Keyset flow::

    paginator = KeysetPaginator()
    last = codec.decode(request.after, dict[str, Any])
    spec = (
        QuerySpecificationBuilder()
        .apply_order_by_descending("created_at")
        .apply_then_by_descending("id")
        .apply_keyset_paging(["created_at", "id"], last, take=20, descending=True)
        .build()
    )
    page = paginator.paginate(InMemoryQueryable(rows), spec)
    page.page_info.end_cursor      # hand this back as the next "after"

The paginator fetches ``take + 1`` rows: the extra row only tells whether
another page exists and is never returned.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .cursor import CursorCodec
from .evaluator import SpecificationEvaluator
from .exceptions import NonDeterministicOrderError, SpecificationContractError
from .fields import resolve_field
from .keyset import keyset_boundary
from .query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    KeysetPaging,
    QuerySpecification,
)

logger = logging.getLogger("querykit.specifications.pagination")

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class PageInfo:
    has_previous_page: bool = False
    has_next_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_previous_page": self.has_previous_page,
            "has_next_page": self.has_next_page,
            "start_cursor": self.start_cursor,
            "end_cursor": self.end_cursor,
        }


@dataclass(frozen=True)
class CursorItem(Generic[T]):
    """One row of a page together with the cursor that points at it."""

    item: T
    cursor: str


@dataclass(frozen=True)
class CursorPage(Generic[T]):
    edges: tuple[CursorItem[T], ...] = ()
    page_info: PageInfo = field(default_factory=PageInfo)
    total_count: int | None = None

    @property
    def items(self) -> list[T]:
        return [edge.item for edge in self.edges]

    @property
    def is_empty(self) -> bool:
        return not self.edges

    def map(self, selector: Callable[[T], R]) -> CursorPage[R]:
        """Transform every item, keeping cursors and page info."""
        return CursorPage(
            edges=tuple(CursorItem(selector(e.item), e.cursor) for e in self.edges),
            page_info=self.page_info,
            total_count=self.total_count,
        )

    @classmethod
    def empty(cls, total_count: int | None = None) -> CursorPage[Any]:
        return cls(total_count=total_count)

    def __len__(self) -> int:
        return len(self.edges)


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """A page of an offset-paged query, numbered from 1."""

    items: tuple[T, ...]
    page_number: int
    page_size: int
    total_count: int

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        if self.page_size < 0:
            raise ValueError(f"page_size must be >= 0, got {self.page_size}")
        if self.total_count < 0:
            raise ValueError(f"total_count must be >= 0, got {self.total_count}")
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def first_item_index(self) -> int:
        """1-based position of the first item overall; 0 for an empty page."""
        if not self.items:
            return 0
        return (self.page_number - 1) * self.page_size + 1

    @property
    def last_item_index(self) -> int:
        if not self.items:
            return 0
        return self.first_item_index + len(self.items) - 1

    def map(self, selector: Callable[[T], R]) -> PagedResult[R]:
        return PagedResult(
            items=tuple(selector(item) for item in self.items),
            page_number=self.page_number,
            page_size=self.page_size,
            total_count=self.total_count,
        )

    @classmethod
    def empty(cls, page_number: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> PagedResult[Any]:
        return cls(items=(), page_number=page_number, page_size=page_size, total_count=0)

    @classmethod
    def from_offset(
        cls,
        items: Sequence[T],
        skip: int,
        take: int | None,
        total_count: int,
    ) -> PagedResult[T]:
        """
        Build a result from raw ``skip``/``take`` values.

        Without ``take`` the whole remainder is one page.
        """
        if take is None:
            return cls(
                items=tuple(items),
                page_number=1,
                page_size=max(total_count - skip, len(items)),
                total_count=total_count,
            )
        return cls(
            items=tuple(items),
            page_number=skip // take + 1,
            page_size=take,
            total_count=total_count,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": list(self.items),
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "has_previous_page": self.has_previous_page,
            "has_next_page": self.has_next_page,
        }


class KeysetPaginator:
    """
    Turns a keyset-paged :class:`QuerySpecification` into a :class:`CursorPage`.

    ``prepare`` narrows a source (fetching one row past the page), the
    caller materialises it however the backend requires, and
    ``build_page`` assembles the result.  ``paginate`` does all three for
    sources exposing ``to_list()``.
    """

    def __init__(
        self,
        codec: CursorCodec | None = None,
        evaluator: SpecificationEvaluator | None = None,
    ) -> None:
        self._codec = codec or CursorCodec()
        self._evaluator = evaluator or SpecificationEvaluator()

    @property
    def codec(self) -> CursorCodec:
        return self._codec

    def prepare(self, source: Any, spec: QuerySpecification[Any]) -> Any:
        _keyset_paging(spec)
        return self._evaluator.evaluate(source, spec, lookahead=1)

    def paginate(
        self,
        source: Any,
        spec: QuerySpecification[Any],
        *,
        total_count: int | None = None,
    ) -> CursorPage[Any]:
        rows = self.prepare(source, spec).to_list()
        return self.build_page(spec, rows, total_count=total_count)

    def build_page(
        self,
        spec: QuerySpecification[Any],
        rows: Sequence[Any],
        *,
        total_count: int | None = None,
    ) -> CursorPage[Any]:
        """
        Assemble a page from rows fetched via :meth:`prepare`.

        *rows* are in fetch order (reversed ordering when paging backward)
        and may include the one lookahead row.
        """
        paging = _keyset_paging(spec)
        rows = list(rows)
        keys = [self.key_value(spec, row) for row in rows]
        for index in range(1, len(keys)):
            if keys[index] == keys[index - 1]:
                raise NonDeterministicOrderError(
                    f"Rows {index - 1} and {index} share keyset value {keys[index]!r}; "
                    f"keys {[str(k) for k in paging.keys]} do not define a total order. "
                    "Add a unique tie-breaker as the last key"
                )

        has_more = len(rows) > paging.take
        page_rows = rows[: paging.take]
        page_keys = keys[: paging.take]

        if paging.backward:
            page_rows.reverse()
            page_keys.reverse()
            has_previous, has_next = has_more, paging.has_cursor
        else:
            has_previous, has_next = paging.has_cursor, has_more

        edges = tuple(
            CursorItem(row, self._codec.encode(key))
            for row, key in zip(page_rows, page_keys, strict=True)
        )
        page_info = PageInfo(
            has_previous_page=has_previous,
            has_next_page=has_next,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        )
        logger.debug(
            "Built keyset page: %d item(s), has_previous=%s, has_next=%s",
            len(edges),
            has_previous,
            has_next,
        )
        return CursorPage(edges=edges, page_info=page_info, total_count=total_count)

    @staticmethod
    def key_value(spec: QuerySpecification[Any], row: Any) -> Any:
        """
        The keyset value of *row*: a scalar for one key, else ``{field: value}``.

        This is what gets encoded into the row's cursor and what
        ``apply_keyset_paging`` accepts back as ``last_value``.
        """
        paging = _keyset_paging(spec)
        if len(paging.keys) == 1:
            return resolve_field(row, paging.keys[0].field)
        return {key.field: resolve_field(row, key.field) for key in paging.keys}


def _keyset_paging(spec: QuerySpecification[Any]) -> KeysetPaging:
    paging = spec.paging
    if not isinstance(paging, KeysetPaging):
        raise SpecificationContractError(
            f"Keyset pagination requires keyset paging, got {type(paging).__name__}"
        )
    return paging


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "CursorItem",
    "CursorPage",
    "KeysetPaginator",
    "PageInfo",
    "PagedResult",
    "keyset_boundary",
]
