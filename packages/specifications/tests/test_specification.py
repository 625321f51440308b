"""Tests for Specification composition and evaluation."""

from __future__ import annotations

import itertools

import pytest

from querykit_specifications import (
    AndPredicate,
    NotPredicate,
    OrPredicate,
    Specification,
    SpecificationBuilder,
    field,
)


@pytest.fixture
def is_open(registry) -> Specification:
    return Specification(field("status", "=", "open"), registry=registry)


@pytest.fixture
def is_large(registry) -> Specification:
    return Specification(field("total", ">=", 30), registry=registry)


def test_is_satisfied_by(orders, is_open):
    assert [o.id for o in orders if is_open.is_satisfied_by(o)] == [1, 3, 5]


def test_and_or_not(orders, is_open, is_large):
    assert [o.id for o in orders if is_open.and_(is_large).is_satisfied_by(o)] == [3, 5]
    assert [o.id for o in orders if is_open.or_(is_large).is_satisfied_by(o)] == [4, 1, 3, 5]
    assert [o.id for o in orders if is_open.not_().is_satisfied_by(o)] == [4, 2]


def test_operator_forms_match_methods(is_open, is_large):
    assert (is_open & is_large).predicate == is_open.and_(is_large).predicate
    assert (is_open | is_large).predicate == is_open.or_(is_large).predicate
    assert (~is_open).predicate == is_open.not_().predicate


def test_merge_is_and(is_open, is_large):
    assert is_open.merge(is_large).predicate == AndPredicate(
        (is_open.predicate, is_large.predicate)
    )


def test_composition_keeps_operands_intact(is_open, is_large):
    before = (is_open.predicate, is_large.predicate)
    combined = is_open & ~is_large
    assert (is_open.predicate, is_large.predicate) == before
    assert combined.predicate == AndPredicate(
        (is_open.predicate, NotPredicate(is_large.predicate))
    )


def test_double_negation_structure_preserved(orders, is_open):
    twice = ~~is_open
    assert twice.predicate == NotPredicate(NotPredicate(is_open.predicate))
    for order in orders:
        assert twice.is_satisfied_by(order) is is_open.is_satisfied_by(order)


def test_de_morgan_holds_for_all_orders(orders, registry):
    specs = [
        Specification(field("status", "=", "open"), registry=registry),
        Specification(field("total", ">", 25), registry=registry),
        Specification(field("customer.tier", "=", "gold"), registry=registry),
    ]
    for a, b in itertools.permutations(specs, 2):
        for order in orders:
            assert (~(a & b)).is_satisfied_by(order) is (~a | ~b).is_satisfied_by(order)
            assert (~(a | b)).is_satisfied_by(order) is (~a & ~b).is_satisfied_by(order)


def test_nested_attribute_and_list_traversal(orders, registry):
    gold = Specification(field("customer.tier", "=", "gold"), registry=registry)
    assert [o.id for o in orders if gold.is_satisfied_by(o)] == [4, 3]

    rush = Specification(field("tags", "contains", "rush"), registry=registry)
    assert [o.id for o in orders if rush.is_satisfied_by(o)] == [3, 5]


def test_missing_relationship_resolves_to_none(orders, registry):
    no_customer = Specification(field("customer.name", "is_null"), registry=registry)
    assert [o.id for o in orders if no_customer.is_satisfied_by(o)] == [2]


def test_works_on_mappings(registry):
    spec = Specification(field("status", "=", "open"), registry=registry)
    assert spec.is_satisfied_by({"status": "open"}) is True
    assert spec.is_satisfied_by({}) is False


def test_empty_and_matches_everything_empty_or_nothing(registry):
    assert Specification(AndPredicate(), registry=registry).is_satisfied_by(object())
    assert not Specification(OrPredicate(), registry=registry).is_satisfied_by(object())


def test_compiled_callable_is_cached(is_open, orders):
    is_open.is_satisfied_by(orders[0])
    first = is_open._compiled
    is_open.is_satisfied_by(orders[1])
    assert is_open._compiled is first


def test_combining_with_non_specification_raises(is_open):
    with pytest.raises(TypeError):
        is_open.and_(lambda o: True)


def test_to_dict_delegates_to_predicate(is_open):
    assert is_open.to_dict() == {"op": "=", "attr": "status", "val": "open"}


# -- builder -----------------------------------------------------------------


def test_builder_ands_top_level(orders, registry):
    spec = (
        SpecificationBuilder(registry)
        .where("status", "=", "open")
        .where("total", ">", 15)
        .build()
    )
    assert isinstance(spec.predicate, AndPredicate)
    assert [o.id for o in orders if spec.is_satisfied_by(o)] == [3, 5]


def test_builder_groups(orders, registry):
    spec = (
        SpecificationBuilder(registry)
        .or_group()
        .where("status", "=", "cancelled")
        .where("status", "=", "shipped")
        .end_group()
        .not_group()
        .where("total", ">", 30)
        .end_group()
        .build()
    )
    assert [o.id for o in orders if spec.is_satisfied_by(o)] == [2]


def test_builder_single_condition_unwrapped(registry):
    spec = SpecificationBuilder(registry).where("status", "=", "open").build()
    assert spec.predicate == field("status", "=", "open")


def test_builder_add_existing_spec(is_open, registry):
    spec = SpecificationBuilder(registry).add(is_open).where("total", ">", 1).build()
    assert spec.predicate.children[0] == is_open.predicate


def test_builder_errors(registry):
    with pytest.raises(ValueError, match="No conditions"):
        SpecificationBuilder(registry).build()
    with pytest.raises(ValueError, match="still open"):
        SpecificationBuilder(registry).or_group().where("a", "=", 1).build()
    with pytest.raises(ValueError, match="No open group"):
        SpecificationBuilder(registry).end_group()
    with pytest.raises(ValueError, match="exactly one"):
        (
            SpecificationBuilder(registry)
            .not_group()
            .where("a", "=", 1)
            .where("b", "=", 2)
            .end_group()
        )


def test_builder_reset(registry):
    builder = SpecificationBuilder(registry).where("a", "=", 1)
    builder.reset()
    with pytest.raises(ValueError):
        builder.build()
