"""Tests for CursorCodec."""

from __future__ import annotations

import base64
import logging
from datetime import datetime
from typing import Any

import pytest
from pydantic import BaseModel
from typing_extensions import TypedDict

from querykit_specifications import (
    DEFAULT_MAX_CURSOR_LENGTH,
    CursorCodec,
    CursorError,
    CursorPayloadMismatchError,
    MalformedCursorError,
    keyset_cursor_type,
)


class OrderCursor(TypedDict):
    created_at: datetime
    id: int


class OrderCursorModel(BaseModel):
    created_at: datetime
    id: int


def _token(payload: bytes) -> str:
    return base64.urlsafe_b64encode(payload).rstrip(b"=").decode("ascii")


@pytest.fixture
def codec() -> CursorCodec:
    return CursorCodec()


class TestEncode:
    def test_none_encodes_to_none(self, codec):
        assert codec.encode(None) is None

    def test_is_unpadded_base64url_of_canonical_json(self, codec):
        assert codec.encode({"id": 1, "a": "x"}) == _token(b'{"a":"x","id":1}')

    def test_key_order_does_not_matter(self, codec):
        assert codec.encode({"b": 1, "a": 2}) == codec.encode({"a": 2, "b": 1})

    def test_datetime_encodes_as_iso_string(self, codec):
        cursor = codec.encode({"created_at": datetime(2024, 1, 1, 12), "id": 7})
        assert cursor == _token(b'{"created_at":"2024-01-01T12:00:00","id":7}')


class TestDecode:
    @pytest.mark.parametrize("value", [0, 42, -5])
    def test_int_round_trip(self, codec, value):
        assert codec.decode(codec.encode(value), int) == value

    def test_unicode_round_trip(self, codec):
        assert codec.decode(codec.encode("naïve ☃"), str) == "naïve ☃"

    @pytest.mark.parametrize("cursor", [None, ""])
    def test_absent_cursor_decodes_to_none(self, codec, cursor):
        assert codec.decode(cursor, int) is None

    def test_typed_dict_restores_datetimes(self, codec):
        value = {"created_at": datetime(2024, 1, 1, 12, 30), "id": 9}
        assert codec.decode(codec.encode(value), OrderCursor) == value

    def test_model_cursor_type(self, codec):
        value = OrderCursorModel(created_at=datetime(2024, 3, 1), id=2)
        decoded = codec.decode(codec.encode(value), OrderCursorModel)
        assert decoded == value

    def test_untyped_decode(self, codec):
        assert codec.decode(codec.encode([1, "a", None]), Any) == [1, "a", None]


class TestMalformed:
    @pytest.mark.parametrize(
        ("cursor", "reason"),
        [
            ("abc$", "alphabet"),
            ("eyJhIjoxfQ==", "alphabet"),
            ("ab cd", "alphabet"),
            ("abcde", "length"),
        ],
    )
    def test_shape_rejected(self, codec, cursor, reason):
        with pytest.raises(MalformedCursorError) as exc_info:
            codec.decode(cursor, Any)
        assert reason in exc_info.value.reason

    def test_non_canonical_base64(self, codec):
        # same bytes as "eyJhIjoxfQ" but with non-zero trailing bits
        with pytest.raises(MalformedCursorError, match="non-canonical"):
            codec.decode("eyJhIjoxfR", Any)

    def test_non_canonical_json(self, codec):
        with pytest.raises(MalformedCursorError, match="canonical form"):
            codec.decode(_token(b'{"a": 1}'), Any)

    def test_unsorted_keys(self, codec):
        with pytest.raises(MalformedCursorError, match="canonical form"):
            codec.decode(_token(b'{"b":1,"a":2}'), Any)

    def test_not_json(self, codec):
        with pytest.raises(MalformedCursorError, match="not valid JSON"):
            codec.decode(_token(b"not json"), Any)

    def test_not_utf8(self, codec):
        with pytest.raises(MalformedCursorError, match="cannot be decoded"):
            codec.decode(_token(b"\xff\xfe\xfd"), Any)

    def test_non_finite_number(self, codec):
        with pytest.raises(MalformedCursorError, match="non-finite"):
            codec.decode(_token(b"NaN"), Any)

    def test_too_long(self):
        codec = CursorCodec(max_length=8)
        with pytest.raises(MalformedCursorError, match="longer than"):
            codec.decode("A" * 12, Any)

    def test_default_max_length(self, codec):
        assert codec.max_length == DEFAULT_MAX_CURSOR_LENGTH

    def test_invalid_max_length(self):
        with pytest.raises(ValueError):
            CursorCodec(max_length=0)

    def test_long_cursor_is_truncated_in_error(self, codec):
        with pytest.raises(MalformedCursorError) as exc_info:
            codec.decode("A" * 2000, Any)
        assert exc_info.value.cursor == "A" * 64 + "..."

    def test_rejection_is_logged(self, codec, caplog):
        with caplog.at_level(logging.WARNING, logger="querykit.specifications.cursor"):
            with pytest.raises(MalformedCursorError):
                codec.decode("abc$", Any)
        assert any("Rejected malformed cursor" in r.getMessage() for r in caplog.records)


class TestPayloadMismatch:
    @pytest.mark.parametrize("value", [1.0, True, "1"])
    def test_int_is_strict(self, codec, value):
        with pytest.raises(CursorPayloadMismatchError) as exc_info:
            codec.decode(codec.encode(value), int)
        assert exc_info.value.expected_type == "int"

    def test_missing_field(self, codec):
        with pytest.raises(CursorPayloadMismatchError) as exc_info:
            codec.decode(codec.encode({"id": 1}), OrderCursor)
        assert any(d.startswith("created_at:") for d in exc_info.value.details)

    def test_wrong_field_type(self, codec):
        cursor = codec.encode({"created_at": "2024-01-01T00:00:00", "id": "x"})
        with pytest.raises(CursorPayloadMismatchError) as exc_info:
            codec.decode(cursor, OrderCursor)
        assert exc_info.value.details[0].startswith("id:")

    def test_generic_type_name(self, codec):
        with pytest.raises(CursorPayloadMismatchError) as exc_info:
            codec.decode(codec.encode([1]), dict[str, Any])
        assert exc_info.value.expected_type == "dict[str, Any]"

    def test_to_dict(self, codec):
        cursor = codec.encode("x")
        with pytest.raises(CursorPayloadMismatchError) as exc_info:
            codec.decode(cursor, int)
        data = exc_info.value.to_dict()
        assert data["error"] == "CURSOR_PAYLOAD_MISMATCH"
        assert data["cursor"] == cursor
        assert data["expected_type"] == "int"
        assert data["details"]

    def test_cursor_errors_share_a_base(self, codec):
        for bad in ("abc$", codec.encode("x")):
            with pytest.raises(CursorError):
                codec.decode(bad, int)


class TestTampering:
    """Any edit to a valid token is either rejected or decodes to a well-typed value."""

    REPLACEMENTS = "AQgwz09-_+/=."

    @pytest.fixture
    def token(self, codec) -> str:
        return codec.encode({"created_at": datetime(2024, 3, 9, 17, 45), "id": 1234})

    @staticmethod
    def _check(codec, cursor):
        try:
            value = codec.decode(cursor, OrderCursor)
        except (MalformedCursorError, CursorPayloadMismatchError):
            return
        assert isinstance(value["created_at"], datetime)
        assert type(value["id"]) is int

    def test_every_substitution(self, codec, token):
        for index, original in enumerate(token):
            for replacement in self.REPLACEMENTS:
                if replacement != original:
                    self._check(codec, token[:index] + replacement + token[index + 1 :])

    def test_every_deletion_and_truncation(self, codec, token):
        for index in range(len(token)):
            self._check(codec, token[:index] + token[index + 1 :])
            if index:
                self._check(codec, token[:index])

    def test_appended_characters(self, codec, token):
        for extra in self.REPLACEMENTS:
            self._check(codec, token + extra)
            self._check(codec, token + extra * 2)


class TestKeysetCursorType:
    def test_single_key_is_the_field_type(self):
        assert keyset_cursor_type([("id", int)]) is int

    def test_several_keys_decode_typed(self, codec):
        cursor_type = keyset_cursor_type([("created_at", datetime), ("id", int)])
        cursor = codec.encode({"created_at": datetime(2024, 1, 1, 12), "id": 7})
        assert codec.decode(cursor, cursor_type) == {
            "created_at": datetime(2024, 1, 1, 12),
            "id": 7,
        }
        with pytest.raises(CursorPayloadMismatchError):
            codec.decode(codec.encode({"created_at": "2024-01-01T12:00:00", "id": "7"}), cursor_type)

    def test_dotted_field_paths(self, codec):
        cursor_type = keyset_cursor_type([("customer.name", str), ("id", int)])
        cursor = codec.encode({"customer.name": "Ann", "id": 3})
        assert codec.decode(cursor, cursor_type) == {"customer.name": "Ann", "id": 3}

    def test_is_reused_for_the_same_fields(self):
        fields = [("created_at", datetime), ("id", int)]
        assert keyset_cursor_type(fields) is keyset_cursor_type(list(fields))

    def test_needs_a_field(self):
        with pytest.raises(ValueError):
            keyset_cursor_type([])


def test_malformed_to_dict(codec):
    with pytest.raises(MalformedCursorError) as exc_info:
        codec.decode("abcde", Any)
    data = exc_info.value.to_dict()
    assert data["error"] == "MALFORMED_CURSOR"
    assert data["cursor"] == "abcde"
