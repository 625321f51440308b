"""Predicate-tree translation for SQLAlchemy."""

from .compiler import build_sqla_filter, resolve_column, resolve_relationship
from .operators import DEFAULT_SQLA_REGISTRY, build_default_sqla_registry
from .strategy import FunctionOperator, SQLAlchemyOperator, SQLAlchemyOperatorRegistry

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "FunctionOperator",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "build_default_sqla_registry",
    "build_sqla_filter",
    "resolve_column",
    "resolve_relationship",
]
