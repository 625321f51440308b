"""Tests for the in-memory operator registry and built-in operators."""

from __future__ import annotations

import pytest

from querykit_specifications import (
    MemoryOperatorRegistry,
    OperatorNotFoundError,
    SpecificationOperator,
    ValidationError,
)

Op = SpecificationOperator


@pytest.mark.parametrize(
    ("op", "field_value", "condition", "expected"),
    [
        (Op.EQ, "open", "open", True),
        (Op.NE, "open", "open", False),
        (Op.GT, 5, 3, True),
        (Op.LT, 5, 3, False),
        (Op.GE, 3, 3, True),
        (Op.LE, 4, 3, False),
        (Op.GT, None, 3, False),
        (Op.LT, None, 3, False),
        (Op.IN, "a", ("a", "b"), True),
        (Op.NOT_IN, "c", ["a", "b"], True),
        (Op.BETWEEN, 5, (1, 5), True),
        (Op.BETWEEN, 6, (1, 5), False),
        (Op.BETWEEN, None, (1, 5), False),
        (Op.LIKE, "Alice", "A%e", True),
        (Op.LIKE, "alice", "A%", False),
        (Op.LIKE, "Ali", "A_i", True),
        (Op.LIKE, "a.c", "a.c", True),
        (Op.LIKE, "abc", "a.c", False),
        (Op.ILIKE, "alice", "A%", True),
        (Op.CONTAINS, "hello world", "lo w", True),
        (Op.CONTAINS, ["gift", "rush"], "rush", True),
        (Op.CONTAINS, None, "x", False),
        (Op.ICONTAINS, "Hello", "ELL", True),
        (Op.STARTSWITH, "prefix-x", "prefix", True),
        (Op.ENDSWITH, "file.txt", ".txt", True),
        (Op.REGEX, "order-42", r"\d+", True),
        (Op.REGEX, None, r"\d+", False),
        (Op.IS_NULL, None, None, True),
        (Op.IS_NOT_NULL, 0, None, True),
    ],
)
def test_builtin_operators(registry, op, field_value, condition, expected):
    assert registry.evaluate(op, field_value, condition) is expected


def test_bind_compiles_once(registry):
    test = registry.bind(Op.ILIKE, "%ice")
    assert test("ALICE") is True
    assert test("bob") is False


def test_between_requires_two_bounds(registry):
    with pytest.raises(ValidationError):
        registry.bind(Op.BETWEEN, (1, 2, 3))


def test_in_requires_collection(registry):
    with pytest.raises(ValidationError):
        registry.bind(Op.IN, "abc")


def test_unregistered_operator_raises():
    registry = MemoryOperatorRegistry()
    with pytest.raises(OperatorNotFoundError):
        registry.bind(Op.EQ, 1)


def test_register_func_overrides_builtin(registry):
    registry.register_func(Op.EQ, lambda field, cond: str(field).lower() == str(cond).lower())
    assert registry.evaluate(Op.EQ, "OPEN", "open") is True


def test_unregister(registry):
    registry.unregister(Op.REGEX)
    assert not registry.has(Op.REGEX)
    assert Op.EQ in registry.supported_operators


@pytest.mark.parametrize("op", [Op.GT, Op.LT, Op.GE, Op.LE])
def test_ordering_against_none_never_matches(registry, op):
    assert registry.evaluate(op, 3, None) is False
    assert registry.evaluate(op, None, None) is False


def test_null_checks_ignore_condition(registry):
    is_null = registry.bind(Op.IS_NULL, "ignored")
    is_not_null = registry.bind(Op.IS_NOT_NULL, "ignored")
    assert [is_null(v) for v in (None, 0, "")] == [True, False, False]
    assert [is_not_null(v) for v in (None, 0, "")] == [False, True, True]
