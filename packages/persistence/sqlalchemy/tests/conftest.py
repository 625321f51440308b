"""Models and an in-memory aiosqlite database shared by the SQLAlchemy tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest
from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class CustomerRecord(Base):
    __tablename__ = "customers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    tier: Mapped[str] = mapped_column(String, default="standard")
    orders: Mapped[list[OrderRecord]] = relationship(back_populates="customer")


class OrderRecord(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String)
    total: Mapped[float] = mapped_column(Float)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("customers.id"), nullable=True)
    customer: Mapped[CustomerRecord | None] = relationship(back_populates="orders")
    lines: Mapped[list[LineRecord]] = relationship(
        back_populates="order", order_by="LineRecord.id"
    )


class LineRecord(Base):
    __tablename__ = "order_lines"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"))
    sku: Mapped[str] = mapped_column(String)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    order: Mapped[OrderRecord] = relationship(back_populates="lines")


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def _seed_rows() -> list[object]:
    """Five orders; ``created_at`` repeats, so only (created_at, id) is unique."""
    t0 = BASE_TIME
    t1 = BASE_TIME + timedelta(hours=1)
    t2 = BASE_TIME + timedelta(hours=2)
    alice = CustomerRecord(id=1, name="Alice")
    carol = CustomerRecord(id=2, name="Carol", tier="gold")
    dana = CustomerRecord(id=3, name="Dana", tier="gold")
    eve = CustomerRecord(id=4, name="Eve")
    return [
        alice,
        carol,
        dana,
        eve,
        OrderRecord(id=4, created_at=t2, status="shipped", total=40.0, customer=dana,
                    lines=[LineRecord(id=40, sku="BX2")]),
        OrderRecord(id=1, created_at=t0, status="open", total=10.0, customer=alice),
        OrderRecord(id=3, created_at=t1, status="open", total=30.0, customer=carol,
                    lines=[LineRecord(id=30, sku="A-1", quantity=2)]),
        OrderRecord(id=2, created_at=t0, status="cancelled", total=20.0, customer=None),
        OrderRecord(id=5, created_at=t2, status="open", total=50.0, customer=eve,
                    lines=[LineRecord(id=50, sku="B_2"), LineRecord(id=51, sku="C-3")]),
    ]


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as sess:
        sess.add_all(_seed_rows())
        await sess.commit()
        # drop seeded instances so fetches load fresh rows
        sess.expunge_all()
        yield sess


@dataclass(frozen=True)
class Models:
    customer: type[CustomerRecord]
    order: type[OrderRecord]
    line: type[LineRecord]


@pytest.fixture
def models() -> Models:
    """The mapped classes, for test modules that cannot import this one."""
    return Models(customer=CustomerRecord, order=OrderRecord, line=LineRecord)
