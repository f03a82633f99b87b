"""
Core business logic for offering lesson slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). Output for identical inputs is always identical.
"""

import logging
from typing import Iterable, List

from pendulum import DateTime

from .models import AvailableSlot, Booking, TimeRange, WorkingHours

logger = logging.getLogger(__name__)


class AvailabilityEngine:
    """
    Generates candidate lesson slots for an instructor on a given day.

    Algorithm:
    1. Step through the working-hours window one hour at a time
    2. Build a candidate slot of ``slot_minutes`` starting on each hour
    3. Drop candidates that overlap an active booking of the same instructor
    4. Return survivors in chronological order
    """

    def __init__(self, working_hours: WorkingHours):
        self.working_hours = working_hours

    def get_available_slots(
        self,
        instructor_id: str,
        date: DateTime,
        existing_bookings: Iterable[Booking],
    ) -> List[AvailableSlot]:
        """
        Find the free slots for one instructor on one day.

        Args:
            instructor_id: The instructor to offer slots for
            date: Any moment on the requested calendar day
            existing_bookings: Bookings to check against; other instructors'
                bookings and non-active statuses are ignored

        Returns:
            List of AvailableSlot objects in ascending start order
        """
        blocking = self._blocking_ranges(instructor_id, existing_bookings)

        slots: List[AvailableSlot] = []
        for candidate in self._candidate_ranges(date):
            if any(candidate.overlaps(busy) for busy in blocking):
                continue
            slots.append(AvailableSlot(instructor_id=instructor_id, time_range=candidate))

        return slots

    def _candidate_ranges(self, date: DateTime) -> List[TimeRange]:
        """
        Build one candidate per working hour.

        Hours are wall-clock hours in the tenant timezone. Candidates that
        would run past the end of the working day are not offered.
        """
        window = self.working_hours.get_working_hours_for_day(date)
        day = window.start.start_of("day")
        candidates: List[TimeRange] = []

        for hour in range(self.working_hours.start_hour, self.working_hours.end_hour):
            start = day.set(hour=hour)
            candidate = TimeRange(start=start, end=start.add(minutes=self.working_hours.slot_minutes))
            if not window.contains(candidate):
                logger.debug("Dropping slot %s, it ends after working hours", candidate)
                continue
            candidates.append(candidate)

        return candidates

    def _blocking_ranges(
        self,
        instructor_id: str,
        bookings: Iterable[Booking],
    ) -> List[TimeRange]:
        """Collect the windows of this instructor's active bookings."""
        ranges: List[TimeRange] = []

        for booking in bookings:
            if booking.instructor_id != instructor_id or not booking.is_active:
                continue

            time_range = booking.time_range
            if time_range is None:
                logger.debug("Skipping booking %s with unusable time window", booking.id)
                continue

            ranges.append(time_range)

        return ranges
