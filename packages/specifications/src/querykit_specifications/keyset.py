"""Seek-method boundary predicates for keyset paging."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .operators import SpecificationOperator
from .predicates import FieldPredicate, OrPredicate, PredicateNode, and_all

if TYPE_CHECKING:
    from .query import KeysetPaging


def keyset_boundary(paging: KeysetPaging) -> PredicateNode | None:
    """
    Return the predicate selecting rows strictly after the boundary.

    For keys ``(k1, k2)`` with values ``(v1, v2)``, ascending, forward::

        (k1 > v1) OR (k1 = v1 AND k2 > v2)

    Descending keys use ``<``.  Backward paging flips every comparison so
    the rows strictly *before* the boundary are selected.  ``None`` when no
    cursor was supplied.
    """
    if paging.last_value is None:
        return None

    disjuncts: list[PredicateNode] = []
    for index, key in enumerate(paging.keys):
        # descending XOR backward -> "less than"
        op = (
            SpecificationOperator.LT
            if key.descending != paging.backward
            else SpecificationOperator.GT
        )
        terms: list[PredicateNode] = [
            FieldPredicate(prev.field, SpecificationOperator.EQ, paging.last_value[j])
            for j, prev in enumerate(paging.keys[:index])
        ]
        terms.append(FieldPredicate(key.field, op, paging.last_value[index]))
        disjuncts.append(and_all(terms))

    if len(disjuncts) == 1:
        return disjuncts[0]
    return OrPredicate(tuple(disjuncts))
