"""Attribute-path resolution shared by in-memory evaluation and pagination."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def resolve_field(obj: Any, attr_path: str) -> Any:
    """
    Resolve a dot-separated attribute path on *obj*.

    Supports nested attribute access (``address.city``), mapping keys and
    implicit list traversal (``items.name`` where ``items`` is a list
    returns ``[item.name for item in items]``).  Missing segments resolve
    to ``None``.
    """
    return _resolve_parts(obj, attr_path.split("."))


def _resolve_parts(obj: Any, parts: list[str]) -> Any:
    for index, part in enumerate(parts):
        if obj is None:
            return None
        if isinstance(obj, list | tuple):
            rest = parts[index:]
            return [_resolve_parts(item, rest) for item in obj]
        obj = obj.get(part) if isinstance(obj, Mapping) else getattr(obj, part, None)
    return obj
