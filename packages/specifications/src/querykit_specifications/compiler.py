"""
Compile a predicate tree into a directly callable test.

The tree is walked once; every leaf operator is bound to its condition
value up front, so evaluating the returned callable does no look-ups.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .fields import resolve_field
from .predicates import (
    AndPredicate,
    FieldPredicate,
    NotPredicate,
    OrPredicate,
    PredicateNode,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .operators_memory import MemoryOperatorRegistry


def compile_predicate(
    node: PredicateNode,
    registry: MemoryOperatorRegistry,
) -> Callable[[Any], bool]:
    """Return a one-argument callable equivalent to *node*."""
    if isinstance(node, FieldPredicate):
        return _compile_leaf(node, registry)

    if isinstance(node, AndPredicate):
        parts = tuple(compile_predicate(c, registry) for c in node.operands)
        return lambda candidate: all(part(candidate) for part in parts)

    if isinstance(node, OrPredicate):
        parts = tuple(compile_predicate(c, registry) for c in node.operands)
        return lambda candidate: any(part(candidate) for part in parts)

    if isinstance(node, NotPredicate):
        inner = compile_predicate(node.operand, registry)
        return lambda candidate: not inner(candidate)

    raise TypeError(f"Unsupported predicate node: {type(node).__name__}")


def _compile_leaf(
    node: FieldPredicate,
    registry: MemoryOperatorRegistry,
) -> Callable[[Any], bool]:
    test = registry.bind(node.operator, node.value)
    attr = node.attr
    return lambda candidate: test(resolve_field(candidate, attr))
