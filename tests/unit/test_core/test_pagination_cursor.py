"""Unit tests for cursor encoding and decoding."""
from __future__ import annotations

import base64
from datetime import UTC, date, datetime

import pytest

from relay_pager.core.exceptions import InvalidCursorError
from relay_pager.core.pagination.cursor import (
    CursorCodec,
    DecodedCursor,
    cast_value,
    read_field,
    to_epoch_millis,
)

EXAMPLE_ID = "5f29772ee3cfd20407c0d6de"
EXAMPLE_MS = 1596553006941
EXAMPLE_CURSOR = "NWYyOTc3MmVlM2NmZDIwNDA3YzBkNmRlXzE1OTY1NTMwMDY5NDE="


# ──────────────────────────────────────────────────────────────
# Test value helpers
# ──────────────────────────────────────────────────────────────


class TestEpochMillis:
    """Tests for date to epoch millisecond conversion."""

    def test_aware_datetime(self):
        """Aware datetimes convert exactly, keeping milliseconds."""
        ts = datetime(2020, 8, 4, 14, 56, 46, 941000, tzinfo=UTC)

        assert to_epoch_millis(ts) == EXAMPLE_MS

    def test_naive_datetime_is_utc(self):
        """Naive datetimes are read as UTC."""
        ts = datetime(2020, 8, 4, 14, 56, 46, 941000)

        assert to_epoch_millis(ts) == EXAMPLE_MS

    def test_date_is_midnight(self):
        """Plain dates map to midnight UTC."""
        assert to_epoch_millis(date(1970, 1, 2)) == 86_400_000


class TestReadField:
    """Tests for reading fields off records."""

    def test_mapping(self):
        assert read_field({"_id": "a"}, "_id") == "a"

    def test_object_attribute(self):
        class Row:
            id = 7

        assert read_field(Row(), "id") == 7

    def test_missing_is_none(self):
        assert read_field({}, "createdAt") is None
        assert read_field(object(), "createdAt") is None


class TestCastValue:
    """Tests for cursor value casting."""

    @pytest.mark.parametrize(
        ("raw", "field_type", "expected"),
        [
            ("abc_def", "string", "abc_def"),
            ("1596553006941", "date", 1596553006941),
            ("42", "number", 42),
            ("4.5", "number", 4.5),
        ],
    )
    def test_cast(self, raw, field_type, expected):
        value = cast_value(raw, field_type)

        assert value == expected
        assert type(value) is type(expected)

    def test_bad_number(self):
        with pytest.raises(ValueError):
            cast_value("nope", "number")


# ──────────────────────────────────────────────────────────────
# Test CursorCodec
# ──────────────────────────────────────────────────────────────


class TestCursorCodec:
    """Tests for CursorCodec encode/decode."""

    def test_encode_example(self):
        """Encoding the reference pair yields the reference cursor."""
        assert CursorCodec.encode(EXAMPLE_ID, EXAMPLE_MS) == EXAMPLE_CURSOR

    def test_encode_datetime_as_millis(self):
        """Datetime values are rendered as epoch milliseconds."""
        ts = datetime(2020, 8, 4, 14, 56, 46, 941000, tzinfo=UTC)

        assert CursorCodec.encode(EXAMPLE_ID, ts) == EXAMPLE_CURSOR

    def test_decode_example_as_date(self):
        """Date-typed fields decode to an integer value."""
        decoded = CursorCodec.decode(EXAMPLE_CURSOR, "createdAt", field_type="date")

        assert decoded == DecodedCursor(id=EXAMPLE_ID, field="createdAt", value=EXAMPLE_MS)

    def test_decode_defaults_to_string(self):
        """Without a field type the value stays textual."""
        decoded = CursorCodec.decode(EXAMPLE_CURSOR, "createdAt")

        assert decoded.value == str(EXAMPLE_MS)

    def test_decode_unpadded(self):
        """Cursors with stripped padding still decode."""
        decoded = CursorCodec.decode(EXAMPLE_CURSOR.rstrip("="), "createdAt", field_type="date")

        assert decoded.id == EXAMPLE_ID

    def test_value_may_contain_separator(self):
        """Only the first separator splits id from value."""
        cursor = CursorCodec.encode("abc", "snake_case_title")

        decoded = CursorCodec.decode(cursor, "title")

        assert decoded.id == "abc"
        assert decoded.value == "snake_case_title"

    def test_as_dict(self):
        decoded = CursorCodec.decode(EXAMPLE_CURSOR, "createdAt", field_type="date")

        assert decoded.as_dict() == {"_id": EXAMPLE_ID, "createdAt": EXAMPLE_MS}
        assert decoded.as_dict("id") == {"id": EXAMPLE_ID, "createdAt": EXAMPLE_MS}

    def test_roundtrip_number(self):
        """Decoding an encoded number returns the same pair."""
        cursor = CursorCodec.encode(12, 3.25)

        decoded = CursorCodec.decode(cursor, "score", field_type="number")

        assert (decoded.id, decoded.value) == ("12", 3.25)

    def test_create_cursor_from_record(self):
        """create_cursor reads the id and pagination field off the record."""
        doc = {
            "_id": EXAMPLE_ID,
            "createdAt": datetime(2020, 8, 4, 14, 56, 46, 941000, tzinfo=UTC),
        }

        assert CursorCodec.create_cursor(doc, "createdAt") == EXAMPLE_CURSOR

    def test_create_cursor_custom_id_field(self):
        class Row:
            id = 3
            title = "hello"

        cursor = CursorCodec.create_cursor(Row(), "title", id_field="id")

        assert base64.b64decode(cursor).decode() == "3_hello"


class TestMalformedCursors:
    """Malformed cursors raise InvalidCursorError."""

    @pytest.mark.parametrize(
        ("cursor", "reason"),
        [
            ("%%%not-base64%%%", "not valid base64"),
            (base64.b64encode(b"noseparator").decode(), "missing separator"),
            (base64.b64encode(b"_123").decode(), "empty id or value"),
            (base64.b64encode(b"abc_").decode(), "empty id or value"),
            (base64.b64encode(b"\xff\xfe_1").decode(), "not valid base64"),
        ],
    )
    def test_rejected(self, cursor, reason):
        with pytest.raises(InvalidCursorError) as exc_info:
            CursorCodec.decode(cursor, "createdAt")

        assert exc_info.value.reason == reason
        assert exc_info.value.cursor == cursor
        assert exc_info.value.status_code == 400

    def test_non_numeric_date_value(self):
        """A date field rejects a value that is not epoch milliseconds."""
        cursor = CursorCodec.encode("abc", "yesterday")

        with pytest.raises(InvalidCursorError, match="value is not a date"):
            CursorCodec.decode(cursor, "createdAt", field_type="date")
