"""String operators for SQLAlchemy.

``contains``, ``icontains``, ``startswith`` and ``endswith`` escape
``%`` and ``_`` in the condition value, so they match literally, as the
in-memory operators do.  ``like``/``ilike`` take the pattern as given.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from querykit_specifications.operators import SpecificationOperator

from ..strategy import SQLAlchemyOperator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class LikeOperator(SQLAlchemyOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.LIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.like(value))


class ILikeOperator(SQLAlchemyOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.ILIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.ilike(value))


class ContainsOperator(SQLAlchemyOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.CONTAINS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.contains(value, autoescape=True))


class IContainsOperator(SQLAlchemyOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.ICONTAINS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.icontains(value, autoescape=True))


class StartsWithOperator(SQLAlchemyOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.STARTSWITH

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.startswith(value, autoescape=True))


class EndsWithOperator(SQLAlchemyOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.ENDSWITH

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.endswith(value, autoescape=True))


class RegexOperator(SQLAlchemyOperator):
    """Backend regular-expression match (``~`` on PostgreSQL, ``REGEXP`` on MySQL)."""

    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.REGEX

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.regexp_match(str(value)))
