"""
SQLAlchemy operator compilation strategy.

Provides the ``SQLAlchemyOperator`` interface and a registry, structured
in the same strategy pattern as the in-memory operators so both backends
agree on which operators exist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, cast

from querykit_specifications.exceptions import OperatorNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement

    from querykit_specifications.operators import SpecificationOperator


class SQLAlchemyOperator(ABC):
    """
    Strategy interface for compiling a specification operator
    into a SQLAlchemy ``ColumnElement[bool]``.
    """

    @property
    @abstractmethod
    def name(self) -> SpecificationOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        """
        Build a SQLAlchemy filter clause.

        Args:
            column: A SQLAlchemy column or instrumented attribute.
            value: The condition value from the predicate.
        """
        ...


class FunctionOperator(SQLAlchemyOperator):
    """Wraps a ``(column, value) -> ColumnElement[bool]`` function."""

    def __init__(
        self,
        name: SpecificationOperator,
        func: Callable[[Any, Any], Any],
    ) -> None:
        self._name = name
        self._func = func

    @property
    def name(self) -> SpecificationOperator:
        return self._name

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", self._func(column, value))


class SQLAlchemyOperatorRegistry:
    """
    Registry of ``SQLAlchemyOperator`` instances keyed by
    :class:`SpecificationOperator`.
    """

    def __init__(self) -> None:
        self._operators: dict[SpecificationOperator, SQLAlchemyOperator] = {}

    def register(self, operator: SQLAlchemyOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: SQLAlchemyOperator) -> None:
        for op in operators:
            self.register(op)

    def register_func(
        self,
        name: SpecificationOperator,
        func: Callable[[Any, Any], Any],
    ) -> None:
        """Register a plain ``(column, value)`` function for *name*."""
        self.register(FunctionOperator(name, func))

    def unregister(self, name: SpecificationOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: SpecificationOperator) -> SQLAlchemyOperator | None:
        return self._operators.get(name)

    def has(self, name: SpecificationOperator) -> bool:
        return name in self._operators

    @property
    def supported_operators(self) -> set[SpecificationOperator]:
        return set(self._operators.keys())

    def apply(
        self,
        name: SpecificationOperator,
        column: Any,
        value: Any,
    ) -> ColumnElement[bool]:
        """
        Look up the operator and apply.

        Raises:
            OperatorNotFoundError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise OperatorNotFoundError(
                str(getattr(name, "value", name)),
                sorted(o.value for o in self._operators),
            )
        return op.apply(column, value)
