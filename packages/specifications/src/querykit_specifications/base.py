from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .compiler import compile_predicate
from .operators_memory import build_default_registry
from .predicates import AndPredicate, NotPredicate, OrPredicate, PredicateNode

if TYPE_CHECKING:
    from collections.abc import Callable

    from .operators_memory import MemoryOperatorRegistry

T = TypeVar("T")


class Specification(Generic[T]):
    """
    A composable, inspectable predicate over ``T``.

    Wraps one predicate tree.  Combinators never mutate either operand;
    they build a new tree whose children are the operands' trees, so a
    translation layer can still walk down to every leaf::

        spec = active.and_(adult).or_(admin)      # or: (active & adult) | admin
        spec.predicate                            # OrPredicate(AndPredicate(...), ...)

    ``is_satisfied_by`` compiles the tree on first use (via the operator
    registry) and reuses the compiled callable afterwards.
    """

    def __init__(
        self,
        predicate: PredicateNode,
        *,
        registry: MemoryOperatorRegistry | None = None,
    ) -> None:
        if not isinstance(predicate, PredicateNode):
            raise TypeError(
                f"Specification expects a PredicateNode, got {type(predicate).__name__}"
            )
        self._predicate = predicate
        self._registry = registry if registry is not None else build_default_registry()

    @property
    def predicate(self) -> PredicateNode:
        return self._predicate

    @property
    def registry(self) -> MemoryOperatorRegistry:
        return self._registry

    # -- combinators ---------------------------------------------------------

    def and_(self, other: Specification[T]) -> Specification[T]:
        return Specification(
            AndPredicate((self.predicate, _predicate_of(other))),
            registry=self._registry,
        )

    def or_(self, other: Specification[T]) -> Specification[T]:
        return Specification(
            OrPredicate((self.predicate, _predicate_of(other))),
            registry=self._registry,
        )

    def not_(self) -> Specification[T]:
        return Specification(NotPredicate(self.predicate), registry=self._registry)

    def merge(self, other: Specification[T]) -> Specification[T]:
        """Merge with another specification using logical AND."""
        return self.and_(other)

    __and__ = and_
    __or__ = or_
    __invert__ = not_

    # -- evaluation ----------------------------------------------------------

    @cached_property
    def _compiled(self) -> Callable[[Any], bool]:
        return compile_predicate(self._predicate, self._registry)

    def is_satisfied_by(self, candidate: T) -> bool:
        return self._compiled(candidate)

    # -- serialisation -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return self._predicate.to_dict()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._predicate!r})"


def _predicate_of(other: Any) -> PredicateNode:
    if isinstance(other, Specification):
        return other.predicate
    if isinstance(other, PredicateNode):
        return other
    raise TypeError(
        f"Cannot combine a Specification with {type(other).__name__}; "
        "only Specification or PredicateNode operands keep the tree inspectable"
    )
