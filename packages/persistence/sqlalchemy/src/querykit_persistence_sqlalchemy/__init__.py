"""SQLAlchemy persistence adapter: predicate push-down and a ``Select``-backed queryable."""

from __future__ import annotations

from .exceptions import (
    QueryableStateError,
    SQLAlchemyPersistenceError,
    UnsupportedOrderingError,
)
from .queryable import SQLAlchemyQueryable, fetch_keyset_page, fetch_offset_page
from .specifications import (
    DEFAULT_SQLA_REGISTRY,
    FunctionOperator,
    SQLAlchemyOperator,
    SQLAlchemyOperatorRegistry,
    build_default_sqla_registry,
    build_sqla_filter,
)

__all__ = [
    # Queryable
    "SQLAlchemyQueryable",
    "fetch_keyset_page",
    "fetch_offset_page",
    # Translation
    "build_sqla_filter",
    "build_default_sqla_registry",
    "DEFAULT_SQLA_REGISTRY",
    "FunctionOperator",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    # Exceptions
    "QueryableStateError",
    "SQLAlchemyPersistenceError",
    "UnsupportedOrderingError",
]
