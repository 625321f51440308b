"""
In-memory operator evaluation strategy.

Provides the MemoryOperator interface and a registry that maps
SpecificationOperator → operator strategy.

Operators are *bound* to their condition value once, when a predicate
tree is compiled, and the resulting test is reused for every candidate.
New operators are added by subclassing MemoryOperator and registering via
``register()``, or from a plain two-argument function via
``register_func()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..exceptions import OperatorNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..operators import SpecificationOperator


class MemoryOperator(ABC):
    """
    Strategy interface for in-memory operator evaluation.

    Subclasses implement ``evaluate``; operators that benefit from
    pre-processing the condition value (regexes, sets) also override
    ``bind``.
    """

    @property
    @abstractmethod
    def name(self) -> SpecificationOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        """
        Evaluate the operator against concrete values.

        Args:
            field_value: The actual value resolved from the candidate object.
            condition_value: The value provided in the predicate.
        """
        ...

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        """Return a one-argument test with *condition_value* fixed."""

        def test(field_value: Any) -> bool:
            return self.evaluate(field_value, condition_value)

        return test


class FunctionOperator(MemoryOperator):
    """Adapter turning a ``(field_value, condition_value) -> bool`` function
    into a :class:`MemoryOperator`."""

    def __init__(
        self,
        name: SpecificationOperator,
        func: Callable[[Any, Any], bool],
    ) -> None:
        self._name = name
        self._func = func

    @property
    def name(self) -> SpecificationOperator:
        return self._name

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(self._func(field_value, condition_value))


class MemoryOperatorRegistry:
    """
    Registry of MemoryOperator instances keyed by SpecificationOperator.

    Usage::

        registry = MemoryOperatorRegistry()
        registry.register(EqualOperator())

        test = registry.bind(SpecificationOperator.EQ, "active")
        test("active")  # True
    """

    def __init__(self) -> None:
        self._operators: dict[SpecificationOperator, MemoryOperator] = {}

    # -- registration --------------------------------------------------------

    def register(self, operator: MemoryOperator) -> None:
        """Register an operator strategy instance."""
        self._operators[operator.name] = operator

    def register_all(self, *operators: MemoryOperator) -> None:
        for op in operators:
            self.register(op)

    def register_func(
        self,
        name: SpecificationOperator,
        func: Callable[[Any, Any], bool],
    ) -> None:
        """Register a plain function as the strategy for *name*."""
        self.register(FunctionOperator(name, func))

    def unregister(self, name: SpecificationOperator) -> None:
        self._operators.pop(name, None)

    # -- look-up -------------------------------------------------------------

    def get(self, name: SpecificationOperator) -> MemoryOperator | None:
        return self._operators.get(name)

    def has(self, name: SpecificationOperator) -> bool:
        return name in self._operators

    @property
    def supported_operators(self) -> set[SpecificationOperator]:
        return set(self._operators.keys())

    # -- evaluation ----------------------------------------------------------

    def bind(
        self,
        name: SpecificationOperator,
        condition_value: Any,
    ) -> Callable[[Any], bool]:
        """
        Look up the operator and bind it to *condition_value*.

        Raises:
            OperatorNotFoundError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise OperatorNotFoundError(
                str(getattr(name, "value", name)),
                sorted(o.value for o in self._operators),
            )
        return op.bind(condition_value)

    def evaluate(
        self,
        name: SpecificationOperator,
        field_value: Any,
        condition_value: Any,
    ) -> bool:
        """One-shot evaluation; prefer :meth:`bind` in loops."""
        return self.bind(name, condition_value)(field_value)
