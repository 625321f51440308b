"""In-memory :class:`IQueryable` backend over a sequence of objects or mappings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .base import Specification
from .compiler import compile_predicate
from .fields import resolve_field
from .operators_memory import build_default_registry
from .predicates import PredicateNode

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from querykit_core.ports.queryable import OrderKey

    from .operators_memory import MemoryOperatorRegistry

T = TypeVar("T")


class InMemoryQueryable(Generic[T]):
    """
    Immutable queryable over an in-memory snapshot.

    Each step materialises a new snapshot, so a queryable can be branched
    freely.  ``include`` hints are recorded but have nothing to load.
    Sorting is stable; ``None`` sorts before every other value in
    ascending order (and therefore last when descending).
    """

    def __init__(
        self,
        items: Iterable[T],
        *,
        registry: MemoryOperatorRegistry | None = None,
        includes: frozenset[str] = frozenset(),
    ) -> None:
        self._items: tuple[T, ...] = tuple(items)
        self._registry = registry if registry is not None else build_default_registry()
        self._includes = includes

    def _derive(self, items: Iterable[Any]) -> InMemoryQueryable[Any]:
        return InMemoryQueryable(items, registry=self._registry, includes=self._includes)

    @property
    def includes(self) -> frozenset[str]:
        return self._includes

    def where(self, predicate: PredicateNode | Specification[Any]) -> InMemoryQueryable[T]:
        node = predicate.predicate if isinstance(predicate, Specification) else predicate
        if not isinstance(node, PredicateNode):
            raise TypeError(
                f"where() expects a predicate tree, got {type(predicate).__name__}"
            )
        test = compile_predicate(node, self._registry)
        return self._derive(item for item in self._items if test(item))

    def include(self, *paths: str) -> InMemoryQueryable[T]:
        return InMemoryQueryable(
            self._items,
            registry=self._registry,
            includes=self._includes | frozenset(paths),
        )

    def order_by(self, keys: Sequence[OrderKey]) -> InMemoryQueryable[T]:
        rows = list(self._items)
        # least significant key first; list.sort is stable
        for key in reversed(keys):
            rows.sort(key=_sort_key(key.field), reverse=key.descending)
        return self._derive(rows)

    def skip(self, count: int) -> InMemoryQueryable[T]:
        if count < 0:
            raise ValueError(f"skip count must be >= 0, got {count}")
        return self._derive(self._items[count:])

    def take(self, count: int) -> InMemoryQueryable[T]:
        if count < 0:
            raise ValueError(f"take count must be >= 0, got {count}")
        return self._derive(self._items[:count])

    def select(self, selector: Callable[[T], Any]) -> InMemoryQueryable[Any]:
        return self._derive(selector(item) for item in self._items)

    def to_list(self) -> list[T]:
        return list(self._items)

    def count(self) -> int:
        return len(self._items)

    def first(self) -> T | None:
        return self._items[0] if self._items else None

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


def _sort_key(attr: str) -> Callable[[Any], tuple[bool, Any]]:
    def key(item: Any) -> tuple[bool, Any]:
        value = resolve_field(item, attr)
        return (value is not None, value)

    return key
