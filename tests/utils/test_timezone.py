"""Tests for utils/timezone.py - UTC-everywhere time handling."""

from datetime import date, datetime, timezone
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from utils.timezone import (
    now_utc, to_utc, to_local, today_local, current_year, format_display_date,
)


class TestNowUtc:
    """Tests for now_utc()."""

    def test_returns_timezone_aware(self):
        """Result must have tzinfo set (not naive)."""
        result = now_utc()
        assert result.tzinfo is not None

    def test_is_utc(self):
        """Result timezone must be specifically UTC."""
        result = now_utc()
        assert result.tzinfo == timezone.utc


class TestToUtc:
    """Tests for to_utc()."""

    def test_raises_on_naive(self):
        """Naive datetime must raise ValueError."""
        naive = datetime(2026, 1, 1, 12, 0, 0)
        with pytest.raises(ValueError, match="naive"):
            to_utc(naive)

    def test_converts_other_timezone(self):
        """Jerusalem 12:00 in January should become UTC 10:00."""
        # Israel is UTC+2 in January (no DST)
        local = datetime(2026, 1, 1, 12, 0, 0, tzinfo=ZoneInfo("Asia/Jerusalem"))
        result = to_utc(local)
        assert result.tzinfo == timezone.utc
        assert result.hour == 10


class TestToLocal:
    """Tests for to_local()."""

    def test_converts_correctly(self):
        """UTC 10:00 should become Jerusalem 12:00 in January."""
        utc_time = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        result = to_local(utc_time, "Asia/Jerusalem")
        assert result.hour == 12

    def test_raises_on_naive(self):
        """Naive datetime must raise ValueError."""
        naive = datetime(2026, 1, 1, 12, 0, 0)
        with pytest.raises(ValueError, match="naive"):
            to_local(naive, "Asia/Jerusalem")

    def test_raises_on_invalid_timezone(self):
        """Invalid timezone name must raise ValueError."""
        with pytest.raises(ValueError, match="Unknown timezone"):
            to_local(now_utc(), "Not/A/Timezone")


class TestCurrentYear:
    """Counter year follows the business calendar, not UTC."""

    def test_new_year_arrives_at_local_midnight(self):
        """23:30 UTC on Dec 31 is already January 1st in Jerusalem."""
        late_utc = datetime(2025, 12, 31, 23, 30, tzinfo=timezone.utc)
        with patch("utils.timezone.now_utc", return_value=late_utc):
            assert current_year("Asia/Jerusalem") == 2026
            assert current_year("UTC") == 2025

    def test_today_local_is_a_date(self):
        assert isinstance(today_local("Asia/Jerusalem"), date)


class TestFormatDisplayDate:
    """Dates printed on documents."""

    def test_day_month_year(self):
        assert format_display_date(date(2026, 3, 7)) == "07/03/2026"
