"""Tests for SpecificationEvaluator step order."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from querykit_core import IQueryable, OrderKey
from querykit_specifications import (
    AndPredicate,
    FieldPredicate,
    InMemoryQueryable,
    OrPredicate,
    PredicateNode,
    QuerySpecificationBuilder,
    SpecificationEvaluator,
    field,
)


class RecordingQueryable:
    """Records every call so the evaluator's step order can be asserted."""

    def __init__(self, calls: list[tuple[str, Any]] | None = None) -> None:
        self.calls = calls if calls is not None else []

    def _record(self, name: str, arg: Any) -> RecordingQueryable:
        return RecordingQueryable([*self.calls, (name, arg)])

    def where(self, predicate):
        return self._record("where", predicate)

    def include(self, *paths):
        return self._record("include", paths)

    def order_by(self, keys):
        return self._record("order_by", tuple(keys))

    def skip(self, count):
        return self._record("skip", count)

    def take(self, count):
        return self._record("take", count)

    def select(self, selector):
        return self._record("select", selector)


@pytest.fixture
def evaluator() -> SpecificationEvaluator:
    return SpecificationEvaluator()


def test_recording_queryable_satisfies_port():
    assert isinstance(RecordingQueryable(), IQueryable)


def test_offset_steps_in_order(evaluator):
    criterion = field("status", "=", "open")
    spec = (
        QuerySpecificationBuilder()
        .add_criteria(criterion)
        .add_include("customer")
        .apply_order_by("created_at")
        .apply_paging(skip=4, take=2)
        .build()
    )
    result = evaluator.evaluate(RecordingQueryable(), spec)
    assert result.calls == [
        ("where", criterion),
        ("include", ("customer",)),
        ("order_by", (OrderKey("created_at"),)),
        ("skip", 4),
        ("take", 2),
    ]


def test_passes_predicate_trees_not_callables(evaluator):
    spec = (
        QuerySpecificationBuilder()
        .add_criteria(field("a", "=", 1))
        .add_criteria(field("b", "=", 2))
        .build()
    )
    calls = evaluator.evaluate(RecordingQueryable(), spec).calls
    assert isinstance(calls[0][1], PredicateNode)
    assert calls[0][1] == AndPredicate((field("a", "=", 1), field("b", "=", 2)))


def test_unfiltered_spec_skips_where(evaluator):
    spec = QuerySpecificationBuilder().apply_order_by("id").build()
    calls = evaluator.evaluate(RecordingQueryable(), spec).calls
    assert [name for name, _ in calls] == ["order_by"]


def test_zero_skip_and_no_take_are_omitted(evaluator):
    spec = QuerySpecificationBuilder().apply_paging().build()
    assert evaluator.evaluate(RecordingQueryable(), spec).calls == []


def test_keyset_first_page_uses_lookahead(evaluator):
    spec = QuerySpecificationBuilder().apply_keyset_paging("id", None, 3).build()
    calls = evaluator.evaluate(RecordingQueryable(), spec, lookahead=1).calls
    assert calls == [("order_by", (OrderKey("id"),)), ("take", 4)]


def test_keyset_boundary_after_ordering(evaluator):
    spec = (
        QuerySpecificationBuilder()
        .add_criteria(field("status", "=", "open"))
        .apply_keyset_paging(["created_at", "id"], {"created_at": 10, "id": 3}, 2)
        .build()
    )
    calls = evaluator.evaluate(RecordingQueryable(), spec).calls
    assert [name for name, _ in calls] == ["where", "order_by", "where", "take"]
    assert calls[2][1] == OrPredicate(
        (
            FieldPredicate("created_at", ">", 10),
            AndPredicate((FieldPredicate("created_at", "=", 10), FieldPredicate("id", ">", 3))),
        )
    )


def test_backward_keyset_reverses_ordering(evaluator):
    spec = (
        QuerySpecificationBuilder()
        .apply_order_by_descending("created_at")
        .apply_then_by("id")
        .apply_keyset_paging([OrderKey("created_at", True), OrderKey("id")], None, 2, backward=True)
        .build()
    )
    calls = evaluator.evaluate(RecordingQueryable(), spec).calls
    assert calls[0] == ("order_by", (OrderKey("created_at"), OrderKey("id", True)))


def test_projection_is_applied_last(evaluator):
    selector = str
    spec = (
        QuerySpecificationBuilder()
        .add_criteria(field("a", "=", 1))
        .apply_order_by("a")
        .apply_paging(skip=1, take=1)
        .build()
    )
    calls = evaluator.evaluate_with_projection(RecordingQueryable(), spec, selector).calls
    assert calls[-1] == ("select", selector)
    assert [name for name, _ in calls] == ["where", "order_by", "skip", "take", "select"]


def test_projection_in_memory(evaluator, orders):
    spec = (
        QuerySpecificationBuilder()
        .add_criteria(field("status", "=", "open"))
        .apply_order_by_descending("total")
        .apply_paging(take=2)
        .build()
    )
    source = InMemoryQueryable(orders)
    result = evaluator.evaluate_with_projection(source, spec, lambda o: o.id)
    assert result.to_list() == [5, 3]


def test_negative_lookahead_rejected(evaluator):
    spec = QuerySpecificationBuilder().build()
    with pytest.raises(ValueError):
        evaluator.evaluate(RecordingQueryable(), spec, lookahead=-1)


def test_logs_steps_at_debug(evaluator, caplog):
    spec = QuerySpecificationBuilder().add_criteria(field("a", "=", 1)).build()
    with caplog.at_level(logging.DEBUG, logger="querykit.specifications.evaluator"):
        evaluator.evaluate(RecordingQueryable(), spec)
    assert any("Applying criteria" in r.getMessage() for r in caplog.records)
