"""
Apply a :class:`QuerySpecification` to an :class:`IQueryable` source.

The evaluator only forwards inspectable predicate trees to the source;
whether they are compiled in memory or translated into SQL is the
backend's decision.  Steps always run in this order:

1. criteria (``where``)
2. eager-load hints (``include``)
3. ordering (``order_by``), reversed when paging backward by keyset
4. paging: ``skip`` then ``take`` for offset mode, or the keyset boundary
   predicate then ``take`` for keyset mode
5. projection (``select``), only in :meth:`evaluate_with_projection`
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .keyset import keyset_boundary
from .predicates import AndPredicate
from .query import KeysetPaging, OffsetPaging

if TYPE_CHECKING:
    from collections.abc import Callable

    from querykit_core.ports.queryable import IQueryable

    from .query import QuerySpecification

logger = logging.getLogger("querykit.specifications.evaluator")


class SpecificationEvaluator:
    def evaluate(
        self,
        source: IQueryable[Any],
        spec: QuerySpecification[Any],
        *,
        lookahead: int = 0,
    ) -> IQueryable[Any]:
        """
        Return *source* narrowed, ordered and paged by *spec*.

        ``lookahead`` extra rows are requested past the page size in keyset
        mode so the caller can tell whether a next page exists.
        """
        if lookahead < 0:
            raise ValueError(f"lookahead must be >= 0, got {lookahead}")

        query = source
        predicate = spec.predicate
        if not (isinstance(predicate, AndPredicate) and not predicate.operands):
            logger.debug("Applying criteria %s", predicate.to_dict())
            query = query.where(predicate)

        if spec.includes:
            logger.debug("Applying includes %s", sorted(spec.includes))
            query = query.include(*sorted(spec.includes))

        paging = spec.paging
        ordering = spec.ordering
        if isinstance(paging, KeysetPaging) and paging.backward:
            ordering = tuple(key.reversed() for key in ordering)
        if ordering:
            logger.debug("Applying ordering %s", [str(key) for key in ordering])
            query = query.order_by(ordering)

        if isinstance(paging, OffsetPaging):
            logger.debug("Applying offset paging skip=%d take=%s", paging.skip, paging.take)
            if paging.skip:
                query = query.skip(paging.skip)
            if paging.take is not None:
                query = query.take(paging.take)
        elif isinstance(paging, KeysetPaging):
            boundary = keyset_boundary(paging)
            if boundary is not None:
                logger.debug("Applying keyset boundary %s", boundary.to_dict())
                query = query.where(boundary)
            logger.debug(
                "Applying keyset take=%d (+%d lookahead, backward=%s)",
                paging.take,
                lookahead,
                paging.backward,
            )
            query = query.take(paging.take + lookahead)

        return query

    def evaluate_with_projection(
        self,
        source: IQueryable[Any],
        spec: QuerySpecification[Any],
        selector: Callable[[Any], Any],
        *,
        lookahead: int = 0,
    ) -> IQueryable[Any]:
        """Like :meth:`evaluate`, then project each row through *selector*."""
        query = self.evaluate(source, spec, lookahead=lookahead)
        logger.debug("Applying projection %r", selector)
        return query.select(selector)
