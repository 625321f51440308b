"""querykit-core — Foundation package for the querykit toolkit.

Zero infrastructure dependencies: the error root, the specification protocol
and the queryable port that backend adapters implement.
"""

from __future__ import annotations

# ── Domain ───────────────────────────────────────────────────────
from .domain import ISpecification

# ── Ports ────────────────────────────────────────────────────────
from .ports import IQueryable, OrderKey

# ── Primitives ───────────────────────────────────────────────────
from .primitives import (
    InfrastructureError,
    PersistenceError,
    QueryKitError,
    ValidationError,
)

__all__ = [
    "IQueryable",
    "ISpecification",
    "InfrastructureError",
    "OrderKey",
    "PersistenceError",
    "QueryKitError",
    "ValidationError",
]
