"""
Tests for commit-time booking conflict validation.
"""

import logging

import pendulum
import pytest

from drivee.domain.conflicts import CONFLICT, validate_booking_window
from drivee.domain.models import Booking

TZ = "Europe/Dublin"


def _at(time):
    return pendulum.parse(f"2025-03-20 {time}", tz=TZ)


def _booking(booking_id, start, end, status="confirmed", instructor_id="ins-1"):
    return Booking.from_record(
        {
            "id": booking_id,
            "instructor_id": instructor_id,
            "start_datetime": f"2025-03-20T{start}:00",
            "end_datetime": f"2025-03-20T{end}:00",
            "status": status,
        },
        TZ,
    )


class TestValidateBookingWindow:
    """Tests for validate_booking_window."""

    def test_free_window_is_accepted(self):
        result = validate_booking_window("ins-1", _at("11:00"), _at("12:00"), [])

        assert result.ok
        assert result.reason is None
        assert result.conflicts == []

    def test_identical_window_conflicts(self):
        existing = _booking("bk-1", "09:00", "10:00")

        result = validate_booking_window("ins-1", _at("09:00"), _at("10:00"), [existing])

        assert not result.ok
        assert result.reason == CONFLICT
        assert [b.id for b in result.conflicts] == ["bk-1"]

    def test_partial_overlap_conflicts(self):
        existing = _booking("bk-1", "09:00", "10:00")

        result = validate_booking_window("ins-1", _at("09:30"), _at("10:30"), [existing])

        assert result.reason == CONFLICT

    def test_proposal_enclosing_a_booking_conflicts(self):
        """A longer proposal that swallows an existing booking is caught."""
        existing = _booking("bk-1", "10:00", "10:30")

        result = validate_booking_window("ins-1", _at("09:00"), _at("12:00"), [existing])

        assert result.reason == CONFLICT

    def test_adjacent_windows_are_accepted(self):
        bookings = [_booking("bk-1", "09:00", "10:00"), _booking("bk-2", "11:00", "12:00")]

        result = validate_booking_window("ins-1", _at("10:00"), _at("11:00"), bookings)

        assert result.ok

    def test_cancelled_bookings_are_ignored(self):
        existing = _booking("bk-1", "09:00", "10:00", status="cancelled")

        result = validate_booking_window("ins-1", _at("09:00"), _at("10:00"), [existing])

        assert result.ok

    @pytest.mark.parametrize("status", ["pending", "in_progress", "completed", "no_show"])
    def test_any_other_status_conflicts(self, status):
        existing = _booking("bk-1", "09:00", "10:00", status=status)

        result = validate_booking_window("ins-1", _at("09:00"), _at("10:00"), [existing])

        assert not result.ok

    def test_other_instructors_are_ignored(self):
        existing = _booking("bk-1", "09:00", "10:00", instructor_id="ins-2")

        result = validate_booking_window("ins-1", _at("09:00"), _at("10:00"), [existing])

        assert result.ok

    def test_excluded_booking_does_not_conflict_with_itself(self):
        """Moving a booking within its own window is allowed."""
        existing = _booking("bk-1", "09:00", "10:00")

        result = validate_booking_window(
            "ins-1", _at("09:30"), _at("10:30"), [existing], exclude_booking_id="bk-1"
        )

        assert result.ok

    def test_reports_every_conflict(self):
        bookings = [
            _booking("bk-1", "09:00", "10:00"),
            _booking("bk-2", "10:00", "11:00", status="in_progress"),
            _booking("bk-3", "12:00", "13:00"),
        ]

        result = validate_booking_window("ins-1", _at("09:30"), _at("10:30"), bookings)

        assert [b.id for b in result.conflicts] == ["bk-1", "bk-2"]

    def test_unusable_booking_window_is_logged(self, caplog):
        """A malformed record cannot block the commit, but it is reported."""
        broken = Booking.from_record(
            {"id": "bk-x", "instructor_id": "ins-1", "status": "confirmed"}, TZ
        )

        with caplog.at_level(logging.DEBUG, logger="drivee.domain.conflicts"):
            result = validate_booking_window("ins-1", _at("09:00"), _at("10:00"), [broken])

        assert result.ok
        assert "bk-x" in caplog.text

    def test_inverted_window_raises(self):
        with pytest.raises(ValueError):
            validate_booking_window("ins-1", _at("10:00"), _at("09:00"), [])
