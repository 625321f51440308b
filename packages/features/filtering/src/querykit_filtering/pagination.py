"""PaginationParser: offset/limit and cursor paging from query params."""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

from querykit_specifications.cursor import CursorCodec
from querykit_specifications.exceptions import CursorError
from querykit_specifications.query import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

from .exceptions import FilterParseError, InvalidCursorError

logger = logging.getLogger("querykit.filtering")


class PageRequest(NamedTuple):
    """
    Paging requested by a client.

    ``cursor`` is the raw token as received; ``after`` is its boundary
    value, decoded only when the parser was given a cursor type.
    ``backward`` is set when the token came in the ``before`` parameter.
    """

    offset: int | None
    limit: int
    cursor: str | None
    after: Any
    backward: bool = False

    @property
    def is_keyset(self) -> bool:
        return self.cursor is not None


class PaginationParser:
    """Parse offset/limit and ``cursor``/``before`` tokens from query params."""

    def __init__(
        self,
        codec: CursorCodec | None = None,
        *,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> None:
        self._codec = codec or CursorCodec()
        self.default_limit = default_limit
        self.max_limit = max_limit

    def parse(
        self,
        query_params: dict[str, Any],
        *,
        cursor_type: Any = None,
        offset_key: str = "offset",
        limit_key: str = "limit",
        cursor_key: str = "cursor",
        before_key: str = "before",
    ) -> PageRequest:
        """
        ``cursor_type`` is the type the token decodes into.  Without one the
        token is only checked to be a string and left for
        :meth:`decode_cursor`, since its type follows the sort keys.

        Raises:
            FilterParseError: Non-integer offset/limit, or conflicting params.
            InvalidCursorError: The cursor token was rejected.
        """
        offset = self._int_param(query_params, offset_key)
        if offset is not None:
            offset = max(0, offset)

        limit = self._int_param(query_params, limit_key)
        limit = self.default_limit if limit is None else min(self.max_limit, max(1, limit))

        after_token = query_params.get(cursor_key) or None
        before_token = query_params.get(before_key) or None
        if after_token is not None and before_token is not None:
            raise FilterParseError(
                f"'{cursor_key}' and '{before_key}' cannot be used together"
            )
        token = after_token if after_token is not None else before_token
        if token is not None and offset is not None:
            raise FilterParseError(
                f"'{offset_key}' cannot be combined with cursor pagination"
            )

        after = None
        if token is not None:
            if cursor_type is None:
                self._check_token(token)
            else:
                after = self.decode_cursor(token, cursor_type)
        return PageRequest(
            offset=offset,
            limit=limit,
            cursor=token,
            after=after,
            backward=before_token is not None,
        )

    def decode_cursor(self, token: Any, cursor_type: Any) -> Any:
        self._check_token(token)
        try:
            return self._codec.decode(token, cursor_type)
        except CursorError as exc:
            logger.info("Rejected pagination cursor: %s", exc.code)
            raise InvalidCursorError(str(exc), exc.to_dict()) from exc

    @staticmethod
    def _check_token(token: Any) -> None:
        if not isinstance(token, str):
            raise InvalidCursorError("Cursor must be a string")

    def encode_cursor(self, value: Any) -> str | None:
        return self._codec.encode(value)

    @staticmethod
    def _int_param(query_params: dict[str, Any], key: str) -> int | None:
        raw = query_params.get(key)
        if raw is None or raw == "":
            return None
        if isinstance(raw, bool):
            raise FilterParseError({key: [f"'{key}' must be an integer"]})
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise FilterParseError({key: [f"'{key}' must be an integer, got {raw!r}"]}) from exc
