"""
In-memory operator implementations.

Provides concrete MemoryOperator subclasses for each leaf
SpecificationOperator and a factory function to create registries.

Usage::

    from querykit_specifications.operators_memory import build_default_registry

    registry = build_default_registry()
    is_active = registry.bind(SpecificationOperator.EQ, "active")
"""

from __future__ import annotations

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
from .registry import FunctionOperator, MemoryOperator, MemoryOperatorRegistry
from .text import (
    ContainsOperator,
    EndsWithOperator,
    IContainsOperator,
    ILikeOperator,
    LikeOperator,
    RegexOperator,
    StartsWithOperator,
)


def build_default_registry() -> MemoryOperatorRegistry:
    """
    Create a fresh registry populated with every built-in operator.

    Example:
        >>> registry = build_default_registry()
        >>> registry.evaluate(SpecificationOperator.EQ, "active", "active")
        True
    """
    registry = MemoryOperatorRegistry()
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


__all__ = [
    "FunctionOperator",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "build_default_registry",
]
