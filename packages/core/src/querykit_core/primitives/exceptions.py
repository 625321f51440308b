"""Root exceptions for the querykit toolkit."""

from __future__ import annotations


class QueryKitError(Exception):
    """Root exception for the entire querykit toolkit."""


class ValidationError(QueryKitError):
    """Raised when caller-supplied input is rejected.

    Carries structured errors: ``{field: [messages]}``.  API layers map this
    family to a client error (HTTP 400) rather than a server fault.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))


class InfrastructureError(QueryKitError):
    """Base class for all infrastructure-related errors."""


class PersistenceError(InfrastructureError):
    """Base class for errors raised by backend adapters."""
