"""FilterSyntax: turn a raw ``filter`` parameter into a predicate dictionary.

Two syntaxes are built in:

- ``JsonFilterSyntax`` (default) accepts the predicate JSON AST, either
  already decoded or as a JSON string, plus the shorthand
  ``{"and": [{"field": "x", "op": "eq", "value": 1}]}``;
- ``ColonSeparatedSyntax`` accepts ``status:eq:active,amount:gte:10``.

Operator aliases (``eq``, ``gte``, ``starts_with`` ...) are normalised to
:class:`SpecificationOperator` values.
"""

from __future__ import annotations

import json
from typing import Any

from querykit_specifications.operators import SpecificationOperator

from .exceptions import FilterParseError

OP_ALIASES: dict[str, SpecificationOperator] = {
    "eq": SpecificationOperator.EQ,
    "ne": SpecificationOperator.NE,
    "gt": SpecificationOperator.GT,
    "gte": SpecificationOperator.GE,
    "ge": SpecificationOperator.GE,
    "lt": SpecificationOperator.LT,
    "lte": SpecificationOperator.LE,
    "le": SpecificationOperator.LE,
    "starts_with": SpecificationOperator.STARTSWITH,
    "ends_with": SpecificationOperator.ENDSWITH,
    "null": SpecificationOperator.IS_NULL,
    "not_null": SpecificationOperator.IS_NOT_NULL,
}

_SEQUENCE_OPS = frozenset({"in", "not_in", "between"})


def normalise_operator(op: str) -> str:
    """Return the canonical operator value for *op* (an alias or a value)."""
    lowered = op.strip().lower()
    alias = OP_ALIASES.get(lowered)
    return alias.value if alias is not None else lowered


class FilterSyntax:
    """Base for filter syntax parsers."""

    def parse_filter(self, raw: Any) -> dict[str, Any]:
        """Parse raw input to a predicate dict; ``{}`` means "no filter"."""
        raise NotImplementedError


class JsonFilterSyntax(FilterSyntax):
    def parse_filter(self, raw: Any) -> dict[str, Any]:
        if raw is None or raw == "":
            return {}
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise FilterParseError(f"Filter is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise FilterParseError("Filter must be a JSON object")
        return self._normalise(raw)

    def _normalise(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise FilterParseError(f"Filter condition must be an object, got {data!r}")

        for group in ("and", "or"):
            if group in data and "op" not in data:
                return {"op": group, "conditions": [self._normalise(c) for c in data[group]]}
        if "not" in data and "op" not in data:
            return {"op": "not", "conditions": [self._normalise(data["not"])]}

        if "field" in data and "attr" not in data:
            data = {
                "op": data.get("op", "="),
                "attr": data["field"],
                "val": data.get("value", data.get("val")),
            }
        elif "value" in data and "val" not in data:
            data = {**data, "val": data["value"]}
            del data["value"]

        op = data.get("op")
        if not isinstance(op, str):
            raise FilterParseError(f"Filter condition is missing 'op': {data!r}")
        result = {**data, "op": normalise_operator(op)}
        if "conditions" in result:
            result["conditions"] = [self._normalise(c) for c in result["conditions"]]
        return result


class ColonSeparatedSyntax(FilterSyntax):
    """Parse ``field:op:value,field2:op2:value2`` (comma-separated clauses, AND).

    Values of ``in``/``not_in``/``between`` may themselves contain commas:
    a segment without two colons continues the previous clause's value.
    """

    def parse_filter(self, raw: Any) -> dict[str, Any]:
        if not raw:
            return {}
        if not isinstance(raw, str):
            raise FilterParseError("Colon-separated filter must be a string")

        clauses = []
        for part in self._split(raw):
            tokens = part.split(":", 2)
            if len(tokens) != 3:
                raise FilterParseError(f"Expected field:op:value, got: {part!r}")
            attr, op, value = (t.strip() for t in tokens)
            op_value = normalise_operator(op)
            clauses.append({"op": op_value, "attr": attr, "val": self._value(value, op_value)})

        if len(clauses) == 1:
            return clauses[0]
        return {"op": "and", "conditions": clauses}

    @staticmethod
    def _split(raw: str) -> list[str]:
        clauses: list[str] = []
        for segment in (s.strip() for s in raw.split(",")):
            if not segment:
                continue
            if segment.count(":") >= 2 or not clauses:
                clauses.append(segment)
            else:
                clauses[-1] += "," + segment
        return clauses

    def _value(self, text: str, op: str) -> Any:
        if op in _SEQUENCE_OPS:
            return [self._scalar(v.strip()) for v in text.split(",")]
        return self._scalar(text)

    @staticmethod
    def _scalar(text: str) -> Any:
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        if lowered == "null":
            return None
        for cast in (int, float):
            try:
                return cast(text)
            except ValueError:
                continue
        return text
