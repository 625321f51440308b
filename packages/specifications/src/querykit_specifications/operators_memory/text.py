"""String operators: like, ilike, contains, icontains, startswith, endswith, regex.

Patterns are compiled once per bound predicate.  A ``None`` field never
matches.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ..operators import SpecificationOperator
from .registry import MemoryOperator

if TYPE_CHECKING:
    from collections.abc import Callable


def like_to_regex(pattern: str, *, ignore_case: bool = False) -> re.Pattern[str]:
    """Translate a SQL ``LIKE`` pattern (``%``, ``_``) into an anchored regex."""
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    flags = re.DOTALL | (re.IGNORECASE if ignore_case else 0)
    return re.compile("".join(parts) + r"\Z", flags)


class _PatternOperator(MemoryOperator):
    """Base for operators that pre-compile their condition into a regex."""

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return self.bind(condition_value)(field_value)

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        pattern = self._compile(str(condition_value))

        def test(field_value: Any) -> bool:
            if field_value is None:
                return False
            return pattern.match(str(field_value)) is not None

        return test

    def _compile(self, condition: str) -> re.Pattern[str]:
        raise NotImplementedError


class LikeOperator(_PatternOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.LIKE

    def _compile(self, condition: str) -> re.Pattern[str]:
        return like_to_regex(condition)


class ILikeOperator(_PatternOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.ILIKE

    def _compile(self, condition: str) -> re.Pattern[str]:
        return like_to_regex(condition, ignore_case=True)


class RegexOperator(_PatternOperator):
    """Unanchored regular-expression search."""

    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.REGEX

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        pattern = re.compile(str(condition_value))

        def test(field_value: Any) -> bool:
            if field_value is None:
                return False
            return pattern.search(str(field_value)) is not None

        return test


class ContainsOperator(MemoryOperator):
    """Substring test for strings, membership test for collections."""

    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.CONTAINS

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        if isinstance(field_value, str):
            return str(condition_value) in field_value
        return condition_value in field_value


class IContainsOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.ICONTAINS

    def bind(self, condition_value: Any) -> Callable[[Any], bool]:
        needle = str(condition_value).casefold()
        return lambda field_value: (
            field_value is not None and needle in str(field_value).casefold()
        )

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return self.bind(condition_value)(field_value)


class StartsWithOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.STARTSWITH

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(field_value).startswith(str(condition_value))


class EndsWithOperator(MemoryOperator):
    @property
    def name(self) -> SpecificationOperator:
        return SpecificationOperator.ENDSWITH

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(field_value).endswith(str(condition_value))
