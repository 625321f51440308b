"""
Fluent builder for constructing specification trees.

Example::

    spec = (
        SpecificationBuilder()
        .where("status", "=", "active")
        .where("age", ">", 18)
        .build()
    )
    # -> AND(status = "active", age > 18)

    spec = (
        SpecificationBuilder()
        .or_group()
            .where("role", "=", "admin")
            .where("role", "=", "owner")
        .end_group()
        .where("active", "=", True)
        .build()
    )
    # -> AND(OR(role = "admin", role = "owner"), active = True)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import Specification
from .operators_memory import build_default_registry
from .predicates import (
    AndPredicate,
    FieldPredicate,
    NotPredicate,
    OrPredicate,
    PredicateNode,
)

if TYPE_CHECKING:
    from .operators import SpecificationOperator
    from .operators_memory import MemoryOperatorRegistry


class SpecificationBuilder:
    """
    Collects predicate nodes level by level.

    Conditions at the same level are AND-ed.  ``or_group()``,
    ``and_group()`` and ``not_group()`` open a nested level which
    ``end_group()`` folds back into its parent.
    """

    def __init__(self, registry: MemoryOperatorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else build_default_registry()
        self._nodes: list[PredicateNode] = []
        self._stack: list[tuple[str, list[PredicateNode]]] = []

    def where(
        self,
        attr: str,
        op: SpecificationOperator | str,
        val: Any = None,
    ) -> SpecificationBuilder:
        """Add a single attribute condition to the current group."""
        self._current().append(FieldPredicate(attr, op, val))
        return self

    def add(self, spec: Specification[Any] | PredicateNode) -> SpecificationBuilder:
        """Add an existing specification (or bare predicate) to the current group."""
        node = spec.predicate if isinstance(spec, Specification) else spec
        self._current().append(node)
        return self

    def and_group(self) -> SpecificationBuilder:
        self._stack.append(("and", []))
        return self

    def or_group(self) -> SpecificationBuilder:
        self._stack.append(("or", []))
        return self

    def not_group(self) -> SpecificationBuilder:
        """Open a NOT group.  It must end up holding exactly one condition."""
        self._stack.append(("not", []))
        return self

    def end_group(self) -> SpecificationBuilder:
        if not self._stack:
            raise ValueError("No open group to close")
        group_op, nodes = self._stack.pop()
        self._current().append(_combine(group_op, nodes))
        return self

    def build(self) -> Specification[Any]:
        """
        Return the composed specification.

        A single top-level condition is returned unwrapped.

        Raises:
            ValueError: If groups are still open or nothing was added.
        """
        if self._stack:
            raise ValueError(
                f"{len(self._stack)} group(s) still open; "
                "call end_group() before build()"
            )
        if not self._nodes:
            raise ValueError("No conditions added to builder")
        return Specification(_combine("and", self._nodes), registry=self._registry)

    def reset(self) -> SpecificationBuilder:
        self._nodes.clear()
        self._stack.clear()
        return self

    def _current(self) -> list[PredicateNode]:
        if self._stack:
            return self._stack[-1][1]
        return self._nodes


def _combine(op: str, nodes: list[PredicateNode]) -> PredicateNode:
    if not nodes:
        raise ValueError("Cannot create an empty group")
    if op == "and":
        return nodes[0] if len(nodes) == 1 else AndPredicate(tuple(nodes))
    if op == "or":
        return nodes[0] if len(nodes) == 1 else OrPredicate(tuple(nodes))
    if op == "not":
        if len(nodes) != 1:
            raise ValueError("NOT group must contain exactly one condition")
        return NotPredicate(nodes[0])
    raise ValueError(f"Unknown group operator: {op}")
