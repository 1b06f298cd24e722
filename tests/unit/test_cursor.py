"""Tests for keyset cursors and UTC parsing."""

from datetime import UTC, datetime

from src.mp_common.cursor import cursor_decode, cursor_encode
from src.mp_common.datetime_utils import parse_utc


class TestCursor:
    def test_decode_recovers_timestamp_and_id(self) -> None:
        ts = datetime(2026, 3, 1, 12, 30, tzinfo=UTC)
        cursor_ts, cursor_id = cursor_decode(cursor_encode(ts, "123"))
        assert cursor_id == "123"
        assert cursor_ts is not None
        assert parse_utc(cursor_ts) == ts

    def test_none_and_empty(self) -> None:
        assert cursor_decode(None) == (None, None)
        assert cursor_decode("") == (None, None)

    def test_malformed_cursor_starts_from_first_page(self) -> None:
        assert cursor_decode("not-base64!!") == (None, None)
        assert cursor_decode("e30=") == (None, None)  # base64 of "{}"


class TestParseUtc:
    def test_z_suffix(self) -> None:
        assert parse_utc("2026-01-01T00:00:00Z") == datetime(2026, 1, 1, tzinfo=UTC)

    def test_naive_is_utc(self) -> None:
        assert parse_utc("2026-01-01T00:00:00").tzinfo is not None

    def test_offset_is_normalised(self) -> None:
        assert parse_utc("2026-01-01T02:00:00+02:00") == datetime(2026, 1, 1, tzinfo=UTC)
