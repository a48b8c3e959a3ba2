"""Tests for sticker_drive.utils.time module."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sticker_drive.utils.time import epoch_millis, isoformat_or_none, utcnow


class TestUtcnow:
    """Tests for utcnow function."""

    def test_returns_timezone_aware_datetime(self) -> None:
        result = utcnow()

        assert result.tzinfo == timezone.utc

    def test_returns_current_time(self) -> None:
        before = datetime.now(timezone.utc)
        result = utcnow()
        after = datetime.now(timezone.utc)

        assert before <= result <= after


class TestIsoformatOrNone:
    """Tests for isoformat_or_none function."""

    def test_none(self) -> None:
        assert isoformat_or_none(None) is None

    def test_naive_values_are_treated_as_utc(self) -> None:
        """SQLite hands back naive datetimes."""
        result = isoformat_or_none(datetime(2024, 1, 15, 10, 30))

        assert result == "2024-01-15T10:30:00+00:00"

    def test_aware_values_keep_offset(self) -> None:
        value = datetime(2024, 1, 15, 10, 30, tzinfo=timezone(timedelta(hours=2)))

        assert isoformat_or_none(value) == "2024-01-15T10:30:00+02:00"


class TestEpochMillis:
    """Tests for epoch_millis function."""

    def test_epoch(self) -> None:
        assert epoch_millis(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_millisecond_precision(self) -> None:
        value = datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=timezone.utc)

        assert epoch_millis(value) == 1500
