"""
Inspectable predicate trees.

A predicate is a small tagged union::

    FieldPredicate(attr, op, value)     leaf test on one attribute path
    AndPredicate(operands)              all operands hold (empty → true)
    OrPredicate(operands)               any operand holds (empty → false)
    NotPredicate(operand)               operand does not hold

Nodes are frozen.  Backends consume the same tree in two separate ways:
the in-memory compiler turns it into a callable (see :mod:`.compiler`) and
translation layers (e.g. the SQLAlchemy adapter) turn it into a native
filter.  Nothing here collapses a tree into a closure.

The JSON form produced by ``to_dict()`` and read by
``predicate_from_dict()``::

    {"op": "and", "conditions": [
        {"op": "=", "attr": "status", "val": "active"},
        {"op": "not", "conditions": [{"op": "<", "attr": "age", "val": 18}]}
    ]}
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import OperatorNotFoundError, ValidationError
from .operators import LOGICAL_OPERATORS, SEQUENCE_OPERATORS, SpecificationOperator

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

# Pre-compute valid operator values for validation
_VALID_OPERATORS: frozenset[str] = frozenset(m.value for m in SpecificationOperator)
_LOGICAL_VALUES: frozenset[str] = frozenset(m.value for m in LOGICAL_OPERATORS)


class PredicateNode(ABC):
    """Base class of every predicate tree node."""

    @property
    @abstractmethod
    def op(self) -> SpecificationOperator: ...

    @property
    def children(self) -> tuple[PredicateNode, ...]:
        """Direct sub-trees; empty for leaves."""
        return ()

    @abstractmethod
    def to_dict(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class FieldPredicate(PredicateNode):
    """Leaf node: ``<attr> <op> <value>``."""

    attr: str
    operator: SpecificationOperator
    value: Any = None

    def __post_init__(self) -> None:
        if not self.attr:
            raise ValidationError("Field predicate requires a non-empty 'attr'")
        try:
            op = SpecificationOperator(self.operator)
        except ValueError as exc:
            raise OperatorNotFoundError(
                str(self.operator), sorted(_VALID_OPERATORS)
            ) from exc
        if op in LOGICAL_OPERATORS:
            raise ValidationError(
                f"Logical operator '{op.value}' cannot be used on a field",
                path=self.attr,
            )
        object.__setattr__(self, "operator", op)
        if op in SEQUENCE_OPERATORS and isinstance(self.value, list | set | frozenset):
            frozen = (
                tuple(sorted(self.value, key=repr))
                if isinstance(self.value, set | frozenset)
                else tuple(self.value)
            )
            object.__setattr__(self, "value", frozen)

    @property
    def op(self) -> SpecificationOperator:
        return self.operator

    def to_dict(self) -> dict[str, Any]:
        val = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"op": self.operator.value, "attr": self.attr, "val": val}


@dataclass(frozen=True)
class AndPredicate(PredicateNode):
    operands: tuple[PredicateNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))

    @property
    def op(self) -> SpecificationOperator:
        return SpecificationOperator.AND

    @property
    def children(self) -> tuple[PredicateNode, ...]:
        return self.operands

    def to_dict(self) -> dict[str, Any]:
        return {"op": "and", "conditions": [c.to_dict() for c in self.operands]}


@dataclass(frozen=True)
class OrPredicate(PredicateNode):
    operands: tuple[PredicateNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))

    @property
    def op(self) -> SpecificationOperator:
        return SpecificationOperator.OR

    @property
    def children(self) -> tuple[PredicateNode, ...]:
        return self.operands

    def to_dict(self) -> dict[str, Any]:
        return {"op": "or", "conditions": [c.to_dict() for c in self.operands]}


@dataclass(frozen=True)
class NotPredicate(PredicateNode):
    operand: PredicateNode

    @property
    def op(self) -> SpecificationOperator:
        return SpecificationOperator.NOT

    @property
    def children(self) -> tuple[PredicateNode, ...]:
        return (self.operand,)

    def to_dict(self) -> dict[str, Any]:
        return {"op": "not", "conditions": [self.operand.to_dict()]}


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def field(attr: str, op: SpecificationOperator | str, value: Any = None) -> FieldPredicate:
    """Shorthand for :class:`FieldPredicate`."""
    return FieldPredicate(attr, op, value)  # type: ignore[arg-type]


def and_all(predicates: Sequence[PredicateNode]) -> PredicateNode:
    """AND-fold *predicates*; a single predicate is returned unchanged."""
    if len(predicates) == 1:
        return predicates[0]
    return AndPredicate(tuple(predicates))


def iter_leaves(node: PredicateNode) -> Iterator[FieldPredicate]:
    """Yield every leaf of *node*, left to right."""
    if isinstance(node, FieldPredicate):
        yield node
        return
    for child in node.children:
        yield from iter_leaves(child)


# ---------------------------------------------------------------------------
# Dictionary / JSON factory
# ---------------------------------------------------------------------------


def predicate_from_dict(
    data: dict[str, Any],
    *,
    allowed_fields: Sequence[str] | None = None,
) -> PredicateNode:
    """
    Create a predicate tree from a dictionary.

    Parameters
    ----------
    data:
        The predicate dictionary (potentially nested).
    allowed_fields:
        Optional whitelist of valid attribute names.  If provided, any
        ``attr`` not in this list raises :class:`ValidationError`.
    """
    _validate_node(data, path="<root>", allowed_fields=allowed_fields)
    return _build(data)


def predicate_from_json(
    text: str,
    *,
    allowed_fields: Sequence[str] | None = None,
) -> PredicateNode:
    """Parse a JSON string and build a predicate tree."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc}", path="<root>") from exc

    if not isinstance(data, dict):
        raise ValidationError("Top-level JSON value must be an object", path="<root>")

    return predicate_from_dict(data, allowed_fields=allowed_fields)


def validate_predicate_dict(
    data: Any,
    *,
    allowed_fields: Sequence[str] | None = None,
) -> list[str]:
    """
    Validate a predicate dict and return a list of error messages.

    Returns an empty list when the structure is valid.
    """
    errors: list[str] = []
    _collect_errors(data, errors, path="<root>", allowed_fields=allowed_fields)
    return errors


def _build(data: dict[str, Any]) -> PredicateNode:
    op_str = data["op"].lower()

    if op_str in (SpecificationOperator.AND, SpecificationOperator.OR):
        operands = tuple(_build(c) for c in _conditions_of(data))
        if op_str == SpecificationOperator.AND:
            return AndPredicate(operands)
        return OrPredicate(operands)
    if op_str == SpecificationOperator.NOT:
        return NotPredicate(_build(_conditions_of(data)[0]))

    return FieldPredicate(data["attr"], SpecificationOperator(op_str), data.get("val"))


def _conditions_of(data: dict[str, Any]) -> list[dict[str, Any]]:
    if "conditions" in data:
        return list(data["conditions"])
    return [data["condition"]]


def _validate_node(
    data: Any,
    *,
    path: str,
    allowed_fields: Sequence[str] | None,
) -> None:
    """Raise on first validation error (fail-fast)."""
    errors: list[str] = []
    _collect_errors(data, errors, path=path, allowed_fields=allowed_fields, fail_fast=True)


def _collect_errors(
    data: Any,
    errors: list[str],
    *,
    path: str,
    allowed_fields: Sequence[str] | None,
    fail_fast: bool = False,
) -> None:
    def report(message: str, at: str) -> None:
        if fail_fast:
            raise ValidationError(message, path=at)
        errors.append(f"{at}: {message}")

    if not isinstance(data, dict):
        report(f"expected a dict, got {type(data).__name__}", path)
        return

    op_str = data.get("op")
    if not op_str or not isinstance(op_str, str):
        report("missing or empty 'op' key", path)
        return

    op_lower = op_str.lower()
    if op_lower in _LOGICAL_VALUES:
        _collect_logical_errors(
            data, op_lower, errors, report, path, allowed_fields, fail_fast
        )
        return

    if op_lower not in _VALID_OPERATORS:
        if fail_fast:
            raise OperatorNotFoundError(op_lower, sorted(_VALID_OPERATORS))
        report(f"unknown operator '{op_lower}'", path)

    attr = data.get("attr")
    if not attr or not isinstance(attr, str):
        report("leaf predicate missing 'attr'", path)
        return

    if allowed_fields is not None and attr not in allowed_fields:
        report(f"field '{attr}' is not in the allowed fields list", path)


def _collect_logical_errors(
    data: dict[str, Any],
    op_lower: str,
    errors: list[str],
    report: Callable[[str, str], None],
    path: str,
    allowed_fields: Sequence[str] | None,
    fail_fast: bool,
) -> None:
    if "conditions" in data:
        conditions = data["conditions"]
        if not isinstance(conditions, list):
            report("'conditions' must be a list", path)
            return
        children = [(c, f"{path}.conditions[{i}]") for i, c in enumerate(conditions)]
    elif "condition" in data:
        children = [(data["condition"], f"{path}.condition")]
    else:
        report(f"logical operator '{op_lower}' requires 'conditions'", path)
        return

    if op_lower == SpecificationOperator.NOT and len(children) != 1:
        report("'not' requires exactly one condition", path)
        return

    for child, child_path in children:
        _collect_errors(
            child,
            errors,
            path=child_path,
            allowed_fields=allowed_fields,
            fail_fast=fail_fast,
        )
