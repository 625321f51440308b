"""
``IQueryable`` over a SQLAlchemy ``Select``.

Filtering, ordering and paging are pushed down into SQL; eager-load hints
become ``selectinload`` chains; a projection runs in Python on the fetched
rows.  Nothing executes until ``await fetch(session)``::

    source = SQLAlchemyQueryable(OrderModel)
    page = await fetch_keyset_page(session, source, spec)
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

from sqlalchemy import Select, asc, desc, func, select
from sqlalchemy.orm import selectinload

from querykit_specifications.base import Specification
from querykit_specifications.evaluator import SpecificationEvaluator
from querykit_specifications.pagination import KeysetPaginator, PagedResult
from querykit_specifications.predicates import AndPredicate, PredicateNode
from querykit_specifications.query import KeysetPaging, OffsetPaging

from .exceptions import QueryableStateError, UnsupportedOrderingError
from .specifications.compiler import (
    build_sqla_filter,
    resolve_column,
    resolve_relationship,
)
from .specifications.operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm.strategy_options import _AbstractLoad

    from querykit_core.ports.queryable import OrderKey
    from querykit_specifications.pagination import CursorPage
    from querykit_specifications.query import QuerySpecification

    from .specifications.strategy import SQLAlchemyOperatorRegistry

logger = logging.getLogger("querykit.sqlalchemy")

T = TypeVar("T")


class SQLAlchemyQueryable(Generic[T]):
    """
    Immutable query description over a mapped model.

    ``skip``/``take`` are tracked separately from the statement so that a
    ``take`` followed by ``skip`` narrows the window the same way an
    in-memory slice would.  Filtering or ordering after paging, or after
    ``select``, cannot be expressed as a single ``SELECT`` and raises
    :class:`QueryableStateError`.
    """

    def __init__(
        self,
        model: type[T],
        *,
        statement: Select[Any] | None = None,
        registry: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self._model = model
        self._base: Select[Any] = statement if statement is not None else select(model)
        self._registry = registry or DEFAULT_SQLA_REGISTRY
        self._loads: tuple[_AbstractLoad, ...] = ()
        self._offset = 0
        self._limit: int | None = None
        self._selector: Callable[[Any], Any] | None = None

    def _copy(self, **changes: Any) -> SQLAlchemyQueryable[Any]:
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, f"_{name}", value)
        return clone

    @property
    def model(self) -> type[T]:
        return self._model

    @property
    def statement(self) -> Select[Any]:
        """The full ``SELECT`` including eager loads and paging."""
        stmt = self._base
        if self._loads:
            stmt = stmt.options(*self._loads)
        if self._offset:
            stmt = stmt.offset(self._offset)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    # -- IQueryable ----------------------------------------------------------

    def where(self, predicate: PredicateNode | Specification[Any]) -> SQLAlchemyQueryable[T]:
        self._require_unpaged("where")
        node = predicate.predicate if isinstance(predicate, Specification) else predicate
        if not isinstance(node, PredicateNode):
            raise TypeError(
                f"where() expects a predicate tree, got {type(predicate).__name__}"
            )
        clause = build_sqla_filter(self._model, node, registry=self._registry)
        return self._copy(base=self._base.where(clause))

    def include(self, *paths: str) -> SQLAlchemyQueryable[T]:
        loads = tuple(self._load_chain(path) for path in paths)
        return self._copy(loads=self._loads + loads)

    def order_by(self, keys: Sequence[OrderKey]) -> SQLAlchemyQueryable[T]:
        self._require_unpaged("order_by")
        clauses = []
        for key in keys:
            if "." in key.field:
                raise UnsupportedOrderingError(
                    f"Cannot order by '{key.field}': only columns of "
                    f"{self._model.__name__} can be ordered on"
                )
            column = resolve_column(self._model, key.field)
            clauses.append(desc(column) if key.descending else asc(column))
        return self._copy(base=self._base.order_by(None).order_by(*clauses))

    def skip(self, count: int) -> SQLAlchemyQueryable[T]:
        if count < 0:
            raise ValueError(f"skip count must be >= 0, got {count}")
        limit = None if self._limit is None else max(self._limit - count, 0)
        return self._copy(offset=self._offset + count, limit=limit)

    def take(self, count: int) -> SQLAlchemyQueryable[T]:
        if count < 0:
            raise ValueError(f"take count must be >= 0, got {count}")
        limit = count if self._limit is None else min(self._limit, count)
        return self._copy(limit=limit)

    def select(self, selector: Callable[[T], Any]) -> SQLAlchemyQueryable[Any]:
        previous = self._selector
        if previous is None:
            return self._copy(selector=selector)
        return self._copy(selector=lambda row: selector(previous(row)))

    # -- execution -----------------------------------------------------------

    async def fetch(self, session: AsyncSession) -> list[Any]:
        """Execute the statement and return the (projected) rows."""
        stmt = self.statement
        logger.debug("Executing %s", stmt)
        result = await session.execute(stmt)
        rows = list(result.scalars().all())
        if self._selector is not None:
            return [self._selector(row) for row in rows]
        return rows

    async def count(self, session: AsyncSession) -> int:
        """Count rows matching the filters, ignoring ordering and paging."""
        counted = select(func.count()).select_from(self._base.order_by(None).subquery())
        result = await session.execute(counted)
        return int(result.scalar_one())

    # -- internals -----------------------------------------------------------

    def _require_unpaged(self, step: str) -> None:
        if self._selector is not None:
            raise QueryableStateError(f"{step}() cannot follow select()")
        if self._offset or self._limit is not None:
            raise QueryableStateError(f"{step}() cannot follow skip() or take()")

    def _load_chain(self, path: str) -> _AbstractLoad:
        model: type[Any] = self._model
        load: Any = None
        for name in path.split("."):
            relationship = resolve_relationship(model, name, full_path=path)
            attr = getattr(model, name)
            load = selectinload(attr) if load is None else load.selectinload(attr)
            model = relationship.mapper.class_
        return cast("_AbstractLoad", load)


async def fetch_keyset_page(
    session: AsyncSession,
    source: SQLAlchemyQueryable[Any],
    spec: QuerySpecification[Any],
    paginator: KeysetPaginator | None = None,
    *,
    with_total_count: bool = False,
) -> CursorPage[Any]:
    """Fetch one keyset page; ``total_count`` counts every row matching the criteria."""
    paginator = paginator or KeysetPaginator()
    rows = await paginator.prepare(source, spec).fetch(session)
    total = await _criteria_count(session, source, spec) if with_total_count else None
    return paginator.build_page(spec, rows, total_count=total)


async def fetch_offset_page(
    session: AsyncSession,
    source: SQLAlchemyQueryable[Any],
    spec: QuerySpecification[Any],
    evaluator: SpecificationEvaluator | None = None,
) -> PagedResult[Any]:
    """Fetch one offset page together with the total row count."""
    paging = spec.paging
    if isinstance(paging, KeysetPaging):
        raise QueryableStateError("fetch_offset_page() needs offset paging, got keyset paging")
    evaluator = evaluator or SpecificationEvaluator()
    items = await evaluator.evaluate(source, spec).fetch(session)
    total = await _criteria_count(session, source, spec)
    if isinstance(paging, OffsetPaging):
        return PagedResult.from_offset(items, paging.skip, paging.take, total)
    return PagedResult.from_offset(items, 0, None, total)


async def _criteria_count(
    session: AsyncSession,
    source: SQLAlchemyQueryable[Any],
    spec: QuerySpecification[Any],
) -> int:
    predicate = spec.predicate
    if isinstance(predicate, AndPredicate) and not predicate.operands:
        return await source.count(session)
    return await source.where(predicate).count(session)
