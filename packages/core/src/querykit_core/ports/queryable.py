"""IQueryable — backend-agnostic queryable source protocol.

A queryable is an immutable *description* of a query over a collection of
``T``.  Every method returns a new queryable; nothing is executed until the
backend adapter materialises it (``to_list()`` for in-memory sources,
``await fetch(session)`` for SQLAlchemy, ...).

Predicates are passed as inspectable trees (see
``querykit_specifications.predicates``), never as opaque callables, so that a
backend can translate them into its native filter language (push-down)
instead of loading every row into memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T", covariant=True)


@dataclass(frozen=True)
class OrderKey:
    """One ordering component: a dot-separated field path and a direction."""

    field: str
    descending: bool = False

    def reversed(self) -> OrderKey:
        """Return the same key with the opposite direction."""
        return OrderKey(self.field, not self.descending)

    def __str__(self) -> str:
        return f"-{self.field}" if self.descending else self.field


@runtime_checkable
class IQueryable(Protocol[T]):
    """Capability set a backend must offer to evaluate a query specification."""

    def where(self, predicate: Any) -> IQueryable[T]:
        """Restrict the source to rows satisfying *predicate* (a predicate tree)."""
        ...

    def include(self, *paths: str) -> IQueryable[T]:
        """Attach eager-load hints.  Must never change which rows are returned."""
        ...

    def order_by(self, keys: Sequence[OrderKey]) -> IQueryable[T]:
        """Replace the ordering with *keys*, primary key first."""
        ...

    def skip(self, count: int) -> IQueryable[T]: ...

    def take(self, count: int) -> IQueryable[T]: ...

    def select(self, selector: Callable[[Any], Any]) -> IQueryable[Any]:
        """Project every resulting row through *selector*."""
        ...
