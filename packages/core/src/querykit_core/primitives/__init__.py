from .exceptions import (
    InfrastructureError,
    PersistenceError,
    QueryKitError,
    ValidationError,
)

__all__ = [
    "InfrastructureError",
    "PersistenceError",
    "QueryKitError",
    "ValidationError",
]
