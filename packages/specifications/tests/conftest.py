"""Shared fixtures for specifications tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytest

from querykit_specifications.operators_memory import build_default_registry


@dataclass
class Customer:
    name: str
    tier: str = "standard"


@dataclass
class Order:
    id: int
    created_at: datetime
    status: str = "open"
    total: float = 0.0
    customer: Customer | None = None
    tags: list[str] = field(default_factory=list)


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def registry():
    """Default in-memory operator registry for building specs."""
    return build_default_registry()


@pytest.fixture
def orders() -> list[Order]:
    """Five orders; ``created_at`` repeats, so only (created_at, id) is total."""
    t0 = BASE_TIME
    t1 = BASE_TIME + timedelta(hours=1)
    t2 = BASE_TIME + timedelta(hours=2)
    return [
        Order(4, t2, "shipped", 40.0, Customer("Dana", "gold")),
        Order(1, t0, "open", 10.0, Customer("Alice")),
        Order(3, t1, "open", 30.0, Customer("Carol", "gold"), ["rush"]),
        Order(2, t0, "cancelled", 20.0, None),
        Order(5, t2, "open", 50.0, Customer("Eve"), ["gift", "rush"]),
    ]


@pytest.fixture
def make_orders():
    """Factory: ``count`` orders, three per timestamp, in scrambled insertion order."""

    def factory(count: int) -> list[Order]:
        rows = [
            Order(i, BASE_TIME + timedelta(minutes=i // 3), total=float(i))
            for i in range(1, count + 1)
        ]
        return rows[1::2] + rows[::2]

    return factory
