"""Specification pattern primitives."""

from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T", contravariant=True)


@runtime_checkable
class ISpecification(Protocol[T]):
    """
    Protocol for the Specification pattern.
    Used to encapsulate filtering rules that stay translatable to a backend.
    """

    def is_satisfied_by(self, candidate: T) -> bool:
        """
        Check whether *candidate* satisfies the specification.
        Used primarily for in-memory filtering.
        """
        ...

    def to_dict(self) -> dict[str, Any]:
        """
        Return a dictionary representation of the specification.
        Useful for serializing criteria across process boundaries or to DB drivers.
        """
        ...
