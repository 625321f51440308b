"""Exceptions for the SQLAlchemy persistence layer.

Driver and database failures are not wrapped: ``SQLAlchemyError`` reaches
the caller unchanged.
"""

from __future__ import annotations

from querykit_core.primitives.exceptions import PersistenceError


class SQLAlchemyPersistenceError(PersistenceError):
    """Base exception for all SQLAlchemy-specific persistence errors."""


class QueryableStateError(SQLAlchemyPersistenceError):
    """A queryable step was requested in an order SQL cannot express,
    e.g. filtering after ``take()`` or after ``select()``."""


class UnsupportedOrderingError(SQLAlchemyPersistenceError):
    """Ordering by a path that is not a plain column of the root model."""


__all__: list[str] = [
    "QueryableStateError",
    "SQLAlchemyPersistenceError",
    "UnsupportedOrderingError",
]
