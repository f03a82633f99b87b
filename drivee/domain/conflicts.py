"""
Commit-time conflict validation for lesson bookings.

Slot lists go stale between display and confirmation, so this check runs
against the freshest booking snapshot right before a booking is written.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from pendulum import DateTime

from .models import Booking, BookingStatus, TimeRange

logger = logging.getLogger(__name__)

CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a booking-window check."""
    ok: bool
    reason: str | None = None
    conflicts: List[Booking] = field(default_factory=list)


def validate_booking_window(
    instructor_id: str,
    start: DateTime,
    end: DateTime,
    fresh_bookings: Iterable[Booking],
    exclude_booking_id: str | None = None,
) -> ValidationResult:
    """
    Check a proposed lesson window against existing bookings.

    Any booking of the same instructor that is not cancelled and overlaps the
    proposal is a conflict.

    Args:
        instructor_id: Instructor the lesson is proposed for
        start: Proposed start
        end: Proposed end
        fresh_bookings: Latest known bookings for the instructor
        exclude_booking_id: Booking to ignore, used when moving an existing booking

    Returns:
        ValidationResult with ok=True, or ok=False and reason "CONFLICT"

    Raises:
        ValueError: If end is not after start
    """
    proposal = TimeRange(start=start, end=end)
    conflicts: List[Booking] = []

    for booking in fresh_bookings:
        if booking.instructor_id != instructor_id:
            continue
        if booking.status == BookingStatus.CANCELLED:
            continue
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue

        existing = booking.time_range
        if existing is None:
            logger.debug("Skipping booking %s with unusable time window", booking.id)
            continue

        if proposal.overlaps(existing):
            conflicts.append(booking)

    if conflicts:
        logger.warning(
            "Found %d booking conflict(s) for instructor %s between %s",
            len(conflicts),
            instructor_id,
            proposal,
        )
        return ValidationResult(ok=False, reason=CONFLICT, conflicts=conflicts)

    return ValidationResult(ok=True)
