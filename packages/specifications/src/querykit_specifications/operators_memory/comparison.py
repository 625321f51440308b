"""
Comparison, set and null operators.

``None`` follows SQL semantics wherever ordering is involved: a ``None``
field or bound never satisfies ``>``, ``<``, ``>=``, ``<=`` or
``between``, so a keyset boundary never admits rows whose key is
missing.  Only ``=``/``!=`` against ``None`` and the explicit
``is_null``/``is_not_null`` checks observe it.
"""

from __future__ import annotations

import operator as op_module
from typing import TYPE_CHECKING, Any

from ..exceptions import ValidationError
from ..operators import SpecificationOperator
from .registry import MemoryOperator

if TYPE_CHECKING:
    from collections.abc import Callable


class EqualOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.EQ

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(field_value == condition_value)


class NotEqualOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.NE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(field_value != condition_value)


class _OrderingOperator(MemoryOperator):
    """Ordering comparison; a missing (``None``) field never matches,
    mirroring SQL's three-valued logic for ``NULL``."""

    _name: SpecificationOperator
    _compare: Callable[[Any, Any], Any]

    @property
    def name(self) -> SpecificationOperator:
        return self._name

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None or condition_value is None:
            return False
        return bool(type(self)._compare(field_value, condition_value))


class GreaterThanOperator(_OrderingOperator):
    _name = SpecificationOperator.GT
    _compare = op_module.gt


class LessThanOperator(_OrderingOperator):
    _name = SpecificationOperator.LT
    _compare = op_module.lt


class GreaterEqualOperator(_OrderingOperator):
    _name = SpecificationOperator.GE
    _compare = op_module.ge


class LessEqualOperator(_OrderingOperator):
    _name = SpecificationOperator.LE
    _compare = op_module.le


class InOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.IN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return field_value in _as_collection(condition_value, self.name)

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        values = _as_collection(condition_value, self.name)
        return lambda field_value: field_value in values


class NotInOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.NOT_IN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return field_value not in _as_collection(condition_value, self.name)

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        values = _as_collection(condition_value, self.name)
        return lambda field_value: field_value not in values


class BetweenOperator(MemoryOperator):
    """Inclusive range check against a ``(low, high)`` pair."""

    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.BETWEEN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return self.bind(condition_value)(field_value)

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        bounds = _as_collection(condition_value, self.name)
        if len(bounds) != 2:
            raise ValidationError(
                f"'between' expects exactly two bounds, got {len(bounds)}"
            )
        low, high = bounds

        def test(field_value: Any) -> bool:
            if field_value is None:
                return False
            return bool(low <= field_value <= high)

        return test


def _as_collection(value: Any, op: SpecificationOperator) -> tuple[Any, ...]:
    if isinstance(value, list | tuple | set | frozenset):
        return tuple(value)
    raise ValidationError(
        f"Operator '{op.value}' expects a list of values, got {type(value).__name__}"
    )


class _NullCheckOperator(MemoryOperator):
    """``is_null``/``is_not_null``; the condition value is ignored."""

    _name: SpecificationOperator
    _expect_null: bool

    @property
    def name(self) -> SpecificationOperator:
        return self._name

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return (field_value is None) is self._expect_null

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        expect_null = self._expect_null
        return lambda field_value: (field_value is None) is expect_null


class IsNullOperator(_NullCheckOperator):
    _name = SpecificationOperator.IS_NULL
    _expect_null = True


class IsNotNullOperator(_NullCheckOperator):
    _name = SpecificationOperator.IS_NOT_NULL
    _expect_null = False
