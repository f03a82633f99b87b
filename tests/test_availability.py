"""
Tests for the availability engine.
"""

import pendulum

from drivee.domain.availability import AvailabilityEngine
from drivee.domain.models import Booking, WorkingHours

TZ = "Europe/Dublin"
DAY = "2025-03-20"


def _booking(booking_id, start, end, status="confirmed", instructor_id="ins-1", day=DAY):
    return Booking.from_record(
        {
            "id": booking_id,
            "instructor_id": instructor_id,
            "start_datetime": f"{day}T{start}:00",
            "end_datetime": f"{day}T{end}:00",
            "status": status,
            "price": 50,
        },
        TZ,
    )


def _start_times(slots):
    return [slot.time for slot in slots]


class TestAvailabilityEngine:
    """Tests for AvailabilityEngine."""

    def setup_method(self):
        self.engine = AvailabilityEngine(WorkingHours())
        self.date = pendulum.parse(DAY, tz=TZ)

    def test_empty_day_offers_every_hour(self):
        """With no bookings every hour from 08:00 to 19:00 is offered."""
        slots = self.engine.get_available_slots("ins-1", self.date, [])

        assert len(slots) == 12
        assert slots[0].time == "08:00"
        assert slots[-1].time == "19:00"
        assert all(slot.time_range.duration_minutes() == 60 for slot in slots)
        assert all(slot.instructor_id == "ins-1" for slot in slots)

    def test_confirmed_booking_blocks_its_hour(self):
        slots = self.engine.get_available_slots(
            "ins-1", self.date, [_booking("bk-1", "09:00", "10:00")]
        )

        assert len(slots) == 11
        assert "09:00" not in _start_times(slots)
        assert "10:00" in _start_times(slots)

    def test_partial_overlap_blocks_both_hours(self):
        """A booking straddling an hour boundary blocks both candidates."""
        slots = self.engine.get_available_slots(
            "ins-1", self.date, [_booking("bk-1", "10:30", "11:15", status="in_progress")]
        )

        times = _start_times(slots)
        assert "10:00" not in times
        assert "11:00" not in times
        assert len(slots) == 10

    def test_adjacent_booking_does_not_block_neighbours(self):
        slots = self.engine.get_available_slots(
            "ins-1", self.date, [_booking("bk-1", "12:00", "13:00")]
        )

        times = _start_times(slots)
        assert "11:00" in times
        assert "13:00" in times
        assert "12:00" not in times

    def test_no_offered_slot_overlaps_an_active_booking(self):
        bookings = [
            _booking("bk-1", "14:00", "16:30"),
            _booking("bk-2", "08:15", "08:45", status="in_progress"),
        ]
        slots = self.engine.get_available_slots("ins-1", self.date, bookings)

        for slot in slots:
            for booking in bookings:
                assert not slot.time_range.overlaps(booking.time_range)
        assert _start_times(slots)[0] == "09:00"
        assert {"14:00", "15:00", "16:00"}.isdisjoint(_start_times(slots))

    def test_non_active_bookings_do_not_block(self):
        """Pending, cancelled, completed and no-show bookings leave the slot open."""
        bookings = [
            _booking("bk-1", "09:00", "10:00", status="cancelled"),
            _booking("bk-2", "10:00", "11:00", status="pending"),
            _booking("bk-3", "11:00", "12:00", status="completed"),
            _booking("bk-4", "12:00", "13:00", status="no_show"),
        ]

        slots = self.engine.get_available_slots("ins-1", self.date, bookings)

        assert len(slots) == 12

    def test_cancelling_frees_the_slot(self):
        confirmed = [_booking("bk-1", "09:00", "10:00")]
        cancelled = [_booking("bk-1", "09:00", "10:00", status="cancelled")]

        before = self.engine.get_available_slots("ins-1", self.date, confirmed)
        after = self.engine.get_available_slots("ins-1", self.date, cancelled)

        assert "09:00" not in _start_times(before)
        assert "09:00" in _start_times(after)

    def test_other_instructors_bookings_are_ignored(self):
        slots = self.engine.get_available_slots(
            "ins-1", self.date, [_booking("bk-1", "09:00", "10:00", instructor_id="ins-2")]
        )

        assert len(slots) == 12

    def test_bookings_on_other_days_are_ignored(self):
        slots = self.engine.get_available_slots(
            "ins-1", self.date, [_booking("bk-1", "09:00", "10:00", day="2025-03-21")]
        )

        assert len(slots) == 12

    def test_unusable_booking_windows_are_skipped(self):
        """Bookings with missing or inverted timestamps never block anything."""
        broken = Booking.from_record(
            {"id": "bk-x", "instructor_id": "ins-1", "status": "confirmed"}, TZ
        )
        inverted = _booking("bk-y", "11:00", "10:00")

        slots = self.engine.get_available_slots("ins-1", self.date, [broken, inverted])

        assert len(slots) == 12

    def test_same_inputs_give_same_output(self):
        bookings = [_booking("bk-1", "09:00", "10:00")]

        first = self.engine.get_available_slots("ins-1", self.date, bookings)
        second = self.engine.get_available_slots("ins-1", self.date, bookings)

        assert first == second

    def test_custom_working_hours(self):
        engine = AvailabilityEngine(WorkingHours(start_hour=9, end_hour=11, slot_minutes=30))

        slots = engine.get_available_slots("ins-1", self.date, [])

        assert _start_times(slots) == ["09:00", "10:00"]
        assert all(slot.time_range.duration_minutes() == 30 for slot in slots)

    def test_slots_running_past_closing_are_not_offered(self):
        """A lesson longer than an hour must still finish inside working hours."""
        engine = AvailabilityEngine(WorkingHours(start_hour=9, end_hour=12, slot_minutes=90))

        slots = engine.get_available_slots("ins-1", self.date, [])

        assert _start_times(slots) == ["09:00", "10:00"]
        assert slots[-1].time_range.end == pendulum.datetime(2025, 3, 20, 11, 30, tz=TZ)

    def test_slots_use_wall_clock_hours_on_dst_change(self):
        """On the spring-forward day slots still start at 08:00 local time."""
        date = pendulum.parse("2025-03-30", tz=TZ)

        slots = self.engine.get_available_slots("ins-1", date, [])

        assert len(slots) == 12
        assert slots[0].time == "08:00"
        assert slots[0].time_range.start.day == 30
        assert slots[-1].time == "19:00"
