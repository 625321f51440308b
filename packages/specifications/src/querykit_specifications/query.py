"""
Query specifications: criteria plus ordering, eager loads and paging.

``QuerySpecificationBuilder`` is the mutable phase.  Every mutator checks
its own contract and raises a ``SpecificationContractError`` subclass at
the call that breaks it, so a bad combination never survives until
evaluation.  ``build()`` freezes the result into a ``QuerySpecification``::

    spec = (
        QuerySpecificationBuilder()
        .add_criteria(field("status", "=", "active"))
        .apply_order_by_descending("created_at")
        .apply_then_by_descending("id")
        .apply_keyset_paging(["created_at", "id"], last, take=20, descending=True)
        .build()
    )

Exactly one paging mode is active on a built specification: ``NoPaging``,
``OffsetPaging`` or ``KeysetPaging``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar, Union
from uuid import UUID

from querykit_core.ports.queryable import OrderKey

from .base import Specification
from .exceptions import (
    ConflictingPaginationError,
    InvalidPageSizeError,
    KeysetCursorError,
    KeysetOrderMismatchError,
    MissingPrimaryOrderError,
)
from .fields import resolve_field
from .operators_memory import build_default_registry
from .predicates import PredicateNode, and_all

if TYPE_CHECKING:
    from .operators_memory import MemoryOperatorRegistry

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Values that stand for a single keyset key on their own.
_SCALAR_TYPES = (str, bytes, int, float, Decimal, date, time, timedelta, UUID, Enum)


@dataclass(frozen=True)
class NoPaging:
    """Every matching row is returned."""


@dataclass(frozen=True)
class OffsetPaging:
    skip: int = 0
    take: int | None = None


@dataclass(frozen=True)
class KeysetPaging:
    """
    Seek-method paging.

    ``last_value`` holds one boundary value per key (in key order), taken
    from the last row of the previous page, or from the first row when
    paging ``backward``.  ``None`` means "first page".
    """

    keys: tuple[OrderKey, ...]
    last_value: tuple[Any, ...] | None
    take: int
    backward: bool = False

    @property
    def has_cursor(self) -> bool:
        return self.last_value is not None


PagingMode = Union[NoPaging, OffsetPaging, KeysetPaging]


class QuerySpecification(Specification[T]):
    """
    Immutable query description.

    Its predicate is the AND-fold of ``criteria`` (an empty fold matches
    everything), so it still combines and evaluates like any other
    ``Specification``.  Combining returns a plain ``Specification``;
    ordering and paging do not survive boolean composition.
    """

    def __init__(
        self,
        criteria: Sequence[PredicateNode] = (),
        *,
        ordering: Sequence[OrderKey] = (),
        includes: frozenset[str] = frozenset(),
        paging: PagingMode = NoPaging(),  # noqa: B008
        registry: MemoryOperatorRegistry | None = None,
    ) -> None:
        self._criteria = tuple(criteria)
        self._ordering = tuple(ordering)
        self._includes = frozenset(includes)
        self._paging = paging
        super().__init__(and_all(self._criteria), registry=registry)

    @property
    def criteria(self) -> tuple[PredicateNode, ...]:
        return self._criteria

    @property
    def ordering(self) -> tuple[OrderKey, ...]:
        return self._ordering

    @property
    def includes(self) -> frozenset[str]:
        return self._includes

    @property
    def paging(self) -> PagingMode:
        return self._paging

    @property
    def is_paged(self) -> bool:
        return not isinstance(self._paging, NoPaging)

    def describe(self) -> dict[str, Any]:
        """JSON-friendly summary, used in logs and debugging output."""
        data: dict[str, Any] = {"criteria": self.to_dict()}
        if self._ordering:
            data["order_by"] = [str(key) for key in self._ordering]
        if self._includes:
            data["include"] = sorted(self._includes)
        paging = self._paging
        if isinstance(paging, OffsetPaging):
            data["paging"] = {"mode": "offset", "skip": paging.skip, "take": paging.take}
        elif isinstance(paging, KeysetPaging):
            data["paging"] = {
                "mode": "keyset",
                "keys": [str(key) for key in paging.keys],
                "take": paging.take,
                "backward": paging.backward,
                "has_cursor": paging.has_cursor,
            }
        return data

    def __repr__(self) -> str:
        return f"QuerySpecification({self.describe()!r})"


class QuerySpecificationBuilder:
    """Mutable phase of a :class:`QuerySpecification`."""

    def __init__(
        self,
        *,
        registry: MemoryOperatorRegistry | None = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._registry = registry if registry is not None else build_default_registry()
        self._max_page_size = max_page_size
        self._criteria: list[PredicateNode] = []
        self._ordering: list[OrderKey] = []
        self._includes: set[str] = set()
        self._paging: PagingMode = NoPaging()

    # -- criteria ------------------------------------------------------------

    def add_criteria(self, criteria: Specification[Any] | PredicateNode) -> QuerySpecificationBuilder:
        node = criteria.predicate if isinstance(criteria, Specification) else criteria
        if not isinstance(node, PredicateNode):
            raise TypeError(
                f"Criteria must be a Specification or PredicateNode, got {type(node).__name__}"
            )
        self._criteria.append(node)
        return self

    # -- ordering ------------------------------------------------------------

    def apply_order_by(self, field_path: str) -> QuerySpecificationBuilder:
        """Set the primary ordering, discarding any previous ordering."""
        self._ordering = [OrderKey(field_path)]
        return self

    def apply_order_by_descending(self, field_path: str) -> QuerySpecificationBuilder:
        self._ordering = [OrderKey(field_path, descending=True)]
        return self

    def apply_then_by(self, field_path: str) -> QuerySpecificationBuilder:
        return self._then_by(OrderKey(field_path))

    def apply_then_by_descending(self, field_path: str) -> QuerySpecificationBuilder:
        return self._then_by(OrderKey(field_path, descending=True))

    def _then_by(self, key: OrderKey) -> QuerySpecificationBuilder:
        if not self._ordering:
            raise MissingPrimaryOrderError(
                f"Cannot add secondary ordering on '{key.field}' without a primary "
                "ordering; call apply_order_by() first"
            )
        self._ordering.append(key)
        return self

    # -- eager loading -------------------------------------------------------

    def add_include(self, path: str) -> QuerySpecificationBuilder:
        if not path:
            raise ValueError("Include path must not be empty")
        self._includes.add(path)
        return self

    # -- paging --------------------------------------------------------------

    def apply_paging(self, skip: int = 0, take: int | None = None) -> QuerySpecificationBuilder:
        if isinstance(self._paging, KeysetPaging):
            raise ConflictingPaginationError(
                "Offset paging cannot be applied: keyset paging is already active"
            )
        if skip < 0:
            raise InvalidPageSizeError(f"skip must be >= 0, got {skip}")
        if take is not None:
            self._check_take(take)
        self._paging = OffsetPaging(skip=skip, take=take)
        return self

    def apply_keyset_paging(
        self,
        keys: str | OrderKey | Sequence[str | OrderKey],
        last_value: Any,
        take: int,
        *,
        descending: bool = False,
        backward: bool = False,
    ) -> QuerySpecificationBuilder:
        """
        Page by seeking past ``last_value`` on ``keys``.

        ``keys`` are field paths (all in the ``descending`` direction) or
        explicit ``OrderKey`` objects.  ``last_value`` may be ``None``
        (first page), a scalar (single key), a mapping keyed by field path,
        a positional sequence or an object carrying the key attributes.
        """
        if isinstance(self._paging, OffsetPaging):
            raise ConflictingPaginationError(
                "Keyset paging cannot be applied: offset paging is already active"
            )
        self._check_take(take)
        order_keys = _order_keys(keys, descending)
        self._paging = KeysetPaging(
            keys=order_keys,
            last_value=_boundary_values(order_keys, last_value),
            take=take,
            backward=backward,
        )
        return self

    def _check_take(self, take: int) -> None:
        if take < 1:
            raise InvalidPageSizeError(f"take must be >= 1, got {take}")
        if take > self._max_page_size:
            raise InvalidPageSizeError(
                f"take must be <= {self._max_page_size}, got {take}"
            )

    # -- build ---------------------------------------------------------------

    def build(self) -> QuerySpecification[Any]:
        ordering = tuple(self._ordering)
        paging = self._paging
        if isinstance(paging, KeysetPaging):
            # The keyset keys either lead the ordering or extend it.
            shared = min(len(ordering), len(paging.keys))
            if ordering[:shared] != paging.keys[:shared]:
                raise KeysetOrderMismatchError(
                    f"Keyset keys {[str(k) for k in paging.keys]} conflict with the "
                    f"ordering {[str(k) for k in ordering]}: shared leading keys "
                    "must match in position and direction"
                )
            if len(ordering) < len(paging.keys):
                ordering = paging.keys
        return QuerySpecification(
            self._criteria,
            ordering=ordering,
            includes=frozenset(self._includes),
            paging=paging,
            registry=self._registry,
        )


def _order_keys(
    keys: str | OrderKey | Sequence[str | OrderKey],
    descending: bool,
) -> tuple[OrderKey, ...]:
    if isinstance(keys, str | OrderKey):
        keys = [keys]
    result = tuple(
        key if isinstance(key, OrderKey) else OrderKey(key, descending=descending)
        for key in keys
    )
    if not result:
        raise KeysetCursorError("Keyset paging needs at least one key")
    fields = [key.field for key in result]
    if len(set(fields)) != len(fields):
        raise KeysetCursorError(f"Keyset keys must be distinct, got {fields}")
    return result


def _boundary_values(keys: tuple[OrderKey, ...], last_value: Any) -> tuple[Any, ...] | None:
    if last_value is None:
        return None

    fields = [key.field for key in keys]
    if isinstance(last_value, Mapping):
        missing = [f for f in fields if f not in last_value]
        if missing:
            raise KeysetCursorError(f"Keyset value is missing keys: {missing}")
        values = tuple(last_value[f] for f in fields)
    elif isinstance(last_value, _SCALAR_TYPES):
        if len(keys) != 1:
            raise KeysetCursorError(
                f"A scalar keyset value only fits a single key, got keys {fields}"
            )
        values = (last_value,)
    elif isinstance(last_value, Sequence):
        if len(last_value) != len(keys):
            raise KeysetCursorError(
                f"Keyset value has {len(last_value)} element(s) for {len(keys)} key(s)"
            )
        values = tuple(last_value)
    else:
        values = tuple(resolve_field(last_value, f) for f in fields)

    nulls = [f for f, v in zip(fields, values, strict=True) if v is None]
    if nulls:
        raise KeysetCursorError(f"Keyset value has no value for keys: {nulls}")
    return values
