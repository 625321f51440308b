"""
SQLAlchemy operator implementations and default registry.

Usage::

    from querykit_persistence_sqlalchemy.specifications.operators import (
        DEFAULT_SQLA_REGISTRY,
    )

    expr = DEFAULT_SQLA_REGISTRY.apply(SpecificationOperator.EQ, column, value)
"""

from __future__ import annotations

from ..strategy import SQLAlchemyOperatorRegistry
from .comparison import (
    BetweenOperator,
    EqualOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    InOperator,
    IsNotNullOperator,
    IsNullOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualOperator,
    NotInOperator,
)
from .text import (
    ContainsOperator,
    EndsWithOperator,
    IContainsOperator,
    ILikeOperator,
    LikeOperator,
    RegexOperator,
    StartsWithOperator,
)


def build_default_sqla_registry() -> SQLAlchemyOperatorRegistry:
    """Create a registry with every built-in SQLAlchemy operator."""
    registry = SQLAlchemyOperatorRegistry()
    registry.register_all(
        # Comparison
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        GreaterEqualOperator(),
        LessEqualOperator(),
        # Set
        InOperator(),
        NotInOperator(),
        BetweenOperator(),
        # String
        LikeOperator(),
        ILikeOperator(),
        ContainsOperator(),
        IContainsOperator(),
        StartsWithOperator(),
        EndsWithOperator(),
        RegexOperator(),
        # Null
        IsNullOperator(),
        IsNotNullOperator(),
    )
    return registry


DEFAULT_SQLA_REGISTRY: SQLAlchemyOperatorRegistry = build_default_sqla_registry()

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "SQLAlchemyOperatorRegistry",
    "build_default_sqla_registry",
]
