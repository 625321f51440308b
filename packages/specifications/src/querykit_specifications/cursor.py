"""
Opaque pagination cursors.

Wire format: canonical JSON (sorted keys, no whitespace, UTF-8, no
NaN/Infinity) encoded as base64url (RFC 4648 section 5) without padding.

Cursors come back from clients, so decoding is strict:

- only the base64url alphabet and a legal unpadded length are accepted;
- the payload must be the exact canonical form the encoder would have
  produced (re-encoding must give the same cursor string), which rejects
  hand-edited or re-padded tokens;
- the payload is validated against the requested type with pydantic in
  strict mode, so ``1.0``, ``true`` and ``"1"`` are never accepted where
  an ``int`` is expected.

Malformed input raises :class:`MalformedCursorError`; a well-formed cursor
of the wrong shape raises :class:`CursorPayloadMismatchError`.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from functools import lru_cache
from typing import TYPE_CHECKING, Any, TypeVar, get_origin

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python
from typing_extensions import TypedDict

from .exceptions import CursorPayloadMismatchError, MalformedCursorError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("querykit.specifications.cursor")

V = TypeVar("V")

DEFAULT_MAX_CURSOR_LENGTH = 1024

_CURSOR_ALPHABET = re.compile(r"[A-Za-z0-9_-]+")


class CursorCodec:
    """Encode keyset values into cursors and decode them back, strictly."""

    def __init__(self, *, max_length: int = DEFAULT_MAX_CURSOR_LENGTH) -> None:
        if max_length < 4:
            raise ValueError(f"max_length must be >= 4, got {max_length}")
        self._max_length = max_length

    @property
    def max_length(self) -> int:
        return self._max_length

    def encode(self, value: Any) -> str | None:
        """Return the cursor for *value*; ``None`` encodes to ``None``."""
        if value is None:
            return None
        text = _canonical_json(to_jsonable_python(value))
        return _b64encode(text.encode("utf-8"))

    def decode(self, cursor: str | None, cursor_type: type[V] | Any) -> V | None:
        """
        Decode *cursor* into an instance of *cursor_type*.

        ``None`` and ``""`` mean "no cursor" and return ``None``.

        Raises:
            MalformedCursorError: Not a token this codec could have produced.
            CursorPayloadMismatchError: Valid token, wrong payload shape.
        """
        if cursor is None or cursor == "":
            return None

        raw = self._raw_payload(cursor)
        try:
            return TypeAdapter(cursor_type).validate_json(raw, strict=True)
        except PydanticValidationError as exc:
            errors = exc.errors()
            if any(err["type"] == "json_invalid" for err in errors):
                raise self._malformed(cursor, "payload is not valid JSON") from exc
            details = [
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in errors
            ]
            expected = _type_name(cursor_type)
            logger.warning(
                "Rejected cursor: payload does not match %s (%d error(s))",
                expected,
                len(details),
            )
            raise CursorPayloadMismatchError(cursor, expected, details) from exc

    def _raw_payload(self, cursor: str) -> str:
        if not isinstance(cursor, str):
            raise self._malformed(repr(cursor), "cursor must be a string")
        if len(cursor) > self._max_length:
            raise self._malformed(
                cursor, f"longer than the maximum of {self._max_length} characters"
            )
        if not _CURSOR_ALPHABET.fullmatch(cursor):
            raise self._malformed(cursor, "contains characters outside the base64url alphabet")
        if len(cursor) % 4 == 1:
            raise self._malformed(cursor, "invalid base64url length")

        try:
            data = base64.urlsafe_b64decode(cursor + "=" * (-len(cursor) % 4))
            text = data.decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise self._malformed(cursor, "cannot be decoded") from exc

        if _b64encode(data) != cursor:
            raise self._malformed(cursor, "non-canonical base64url encoding")

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise self._malformed(cursor, "payload is not valid JSON") from exc
        try:
            canonical = _canonical_json(parsed)
        except ValueError as exc:
            raise self._malformed(cursor, "payload contains non-finite numbers") from exc
        if canonical != text:
            raise self._malformed(cursor, "payload is not in canonical form")
        return text

    @staticmethod
    def _malformed(cursor: str, reason: str) -> MalformedCursorError:
        error = MalformedCursorError(cursor, reason)
        logger.warning("Rejected malformed cursor %r: %s", error.cursor, reason)
        return error


def _canonical_json(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _type_name(tp: Any) -> str:
    if get_origin(tp) is None and isinstance(tp, type):
        return tp.__name__
    return str(tp).replace("typing.", "")


def keyset_cursor_type(fields: Sequence[tuple[str, Any]]) -> Any:
    """
    The type a keyset cursor over *fields* decodes into.

    *fields* pairs each keyset field path with its value type, in key
    order.  A single key decodes into its type directly; several keys
    decode into a ``TypedDict`` keyed by field path, which is the shape
    ``KeysetPaginator`` encodes.  Typed decoding is what turns an ISO
    string back into a ``datetime`` and rejects a payload of the wrong
    type before it reaches a comparison.
    """
    if not fields:
        raise ValueError("A keyset cursor needs at least one field")
    return _keyset_cursor_type(tuple(fields))


@lru_cache(maxsize=128)
def _keyset_cursor_type(fields: tuple[tuple[str, Any], ...]) -> Any:
    if len(fields) == 1:
        return fields[0][1]
    return TypedDict("KeysetCursor", dict(fields))  # type: ignore[misc]
