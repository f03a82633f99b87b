"""
Tests for the shared time and number helpers.
"""

from datetime import datetime
from decimal import Decimal

import pendulum
import pytest

from drivee.domain.time_utils import (
    coerce_number,
    days_between,
    duration_hours,
    overlaps,
    parse_datetime,
    percent_of_total,
)

TZ = "Europe/Dublin"


class TestCoerceNumber:
    """Tests for coerce_number."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (5, 5.0),
            (12.5, 12.5),
            ("12.5", 12.5),
            (" 7 ", 7.0),
            ("60.00", 60.0),
            (Decimal("2.50"), 2.5),
        ],
    )
    def test_numeric_values(self, value, expected):
        """Numbers and numeric strings are parsed."""
        assert coerce_number(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "abc", float("nan"), float("inf"), "-inf", True, [], {}, 10**400],
    )
    def test_unusable_values_fall_back(self, value):
        """Missing, non-numeric and non-finite values return the fallback."""
        assert coerce_number(value, fallback=-1.0) == -1.0

    def test_zero_is_kept(self):
        """An explicit zero is a real value, not a missing one."""
        assert coerce_number(0, fallback=30.0) == 0.0
        assert coerce_number("0", fallback=30.0) == 0.0


class TestOverlaps:
    """Tests for half-open interval overlap."""

    def _dt(self, hour, minute=0):
        return pendulum.datetime(2025, 3, 20, hour, minute, tz=TZ)

    def test_partial_overlap(self):
        assert overlaps(self._dt(9), self._dt(10), self._dt(9, 30), self._dt(11))
        assert overlaps(self._dt(9, 30), self._dt(11), self._dt(9), self._dt(10))

    def test_adjacent_windows_do_not_overlap(self):
        """Touching endpoints are not a conflict."""
        assert not overlaps(self._dt(9), self._dt(10), self._dt(10), self._dt(11))
        assert not overlaps(self._dt(10), self._dt(11), self._dt(9), self._dt(10))

    def test_containment_overlaps(self):
        assert overlaps(self._dt(8), self._dt(12), self._dt(9), self._dt(10))
        assert overlaps(self._dt(9), self._dt(10), self._dt(8), self._dt(12))


class TestDurationHours:
    """Tests for duration_hours."""

    def test_regular_window(self):
        start = pendulum.datetime(2025, 3, 20, 9, tz=TZ)
        assert duration_hours(start, start.add(minutes=90)) == pytest.approx(1.5)

    def test_degenerate_windows_count_as_one_hour(self):
        """Missing, zero-length and inverted windows count as one hour."""
        start = pendulum.datetime(2025, 3, 20, 9, tz=TZ)
        assert duration_hours(None, start) == 1.0
        assert duration_hours(start, None) == 1.0
        assert duration_hours(start, start) == 1.0
        assert duration_hours(start, start.subtract(hours=2)) == 1.0


class TestParseDatetime:
    """Tests for parse_datetime."""

    def test_naive_string_is_local_time(self):
        """Strings without an offset are read in the tenant timezone."""
        parsed = parse_datetime("2025-03-20T09:00:00", TZ)
        assert parsed.hour == 9
        assert parsed.timezone_name == TZ

    def test_offset_string_is_converted(self):
        """UTC timestamps are converted to local wall-clock time."""
        parsed = parse_datetime("2025-07-01T08:00:00Z", TZ)
        assert parsed.hour == 9  # Irish summer time is UTC+1

    def test_datetime_instances(self):
        parsed = parse_datetime(datetime(2025, 3, 20, 9, 0), TZ)
        assert parsed.hour == 9
        assert parsed.timezone_name == TZ

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345])
    def test_unusable_values_return_none(self, value):
        assert parse_datetime(value, TZ) is None


class TestDaysBetween:
    """Tests for days_between."""

    def test_whole_days(self):
        later = pendulum.datetime(2025, 4, 30, tz=TZ)
        earlier = pendulum.datetime(2025, 4, 20, tz=TZ)
        assert days_between(later, earlier) == 10
        assert days_between(earlier, later) == -10

    def test_truncates_toward_zero(self):
        """Partial days are dropped in both directions."""
        moment = pendulum.datetime(2025, 4, 20, 12, tz=TZ)
        assert days_between(moment.add(hours=12), moment) == 0
        assert days_between(moment.subtract(hours=12), moment) == 0
        assert days_between(moment.add(hours=36), moment) == 1
        assert days_between(moment.subtract(hours=36), moment) == -1


def test_percent_of_total():
    assert percent_of_total(25, 200) == pytest.approx(12.5)
    assert percent_of_total(5, 0) == 0.0
