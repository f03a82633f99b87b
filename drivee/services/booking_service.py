"""
Application services for offering and committing lesson bookings.

The service fetches booking snapshots through an entity-store adapter and
delegates slot generation and conflict checks to the domain layer. The
store dependency is a simple protocol so tests can swap in the in-memory
store.

Slot display and booking commit are separate store round-trips. The commit
path re-reads the instructor's bookings right before writing and refuses to
create an overlapping booking, but without read-after-write consistency in
the store two racing commits can still both pass.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Protocol

from pendulum import DateTime

from ..domain.availability import AvailabilityEngine
from ..domain.conflicts import validate_booking_window
from ..domain.exceptions import (
    BookingConflictError,
    BookingNotFoundError,
    InvalidStatusTransitionError,
)
from ..domain.models import (
    AvailableSlot,
    Booking,
    BookingStatus,
    TERMINAL_BOOKING_STATUSES,
    bookings_from_records,
    can_transition,
)

logger = logging.getLogger(__name__)

BOOKING_ENTITY = "Booking"


class EntityStoreProtocol(Protocol):
    """Protocol describing the entity store behaviour needed by the services."""

    async def list(
        self,
        entity: str,
        sort: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Return all records of an entity type."""

    async def filter(
        self,
        entity: str,
        criteria: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Return records matching every field in ``criteria``."""

    async def create(self, entity: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a record."""

    async def update(
        self,
        entity: str,
        record_id: str,
        fields: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """Update a record."""


class BookingService:
    """
    Orchestrates booking reads, slot generation and validated writes.
    """

    def __init__(
        self,
        store: EntityStoreProtocol,
        availability_engine: AvailabilityEngine,
    ) -> None:
        self._store = store
        self._engine = availability_engine

    @property
    def timezone(self) -> str:
        return self._engine.working_hours.timezone

    async def fetch_instructor_bookings(self, instructor_id: str) -> List[Booking]:
        """Read the latest bookings for one instructor from the store."""
        records = await self._store.filter(BOOKING_ENTITY, {"instructor_id": instructor_id})
        return bookings_from_records(records, self.timezone)

    async def get_available_slots(self, instructor_id: str, date: DateTime) -> List[AvailableSlot]:
        """Fetch the instructor's bookings and compute the free slots for a day."""
        bookings = await self.fetch_instructor_bookings(instructor_id)
        return self._engine.get_available_slots(instructor_id, date, bookings)

    async def commit_booking(
        self,
        *,
        instructor_id: str,
        student_id: str,
        vehicle_id: str,
        start: DateTime,
        end: DateTime,
        price: float,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> Booking:
        """
        Validate a lesson window against fresh data and create the booking.

        Raises:
            BookingConflictError: If the window overlaps an existing booking
            ValueError: If end is not after start
        """
        fresh_bookings = await self.fetch_instructor_bookings(instructor_id)
        result = validate_booking_window(instructor_id, start, end, fresh_bookings)

        if not result.ok:
            raise BookingConflictError(conflicts=result.conflicts)

        fields: Dict[str, Any] = dict(extra_fields or {})
        fields.update(
            {
                "instructor_id": instructor_id,
                "student_id": student_id,
                "vehicle_id": vehicle_id,
                "start_datetime": start.to_iso8601_string(),
                "end_datetime": end.to_iso8601_string(),
                "status": BookingStatus.CONFIRMED,
                "price": price,
            }
        )

        record = await self._store.create(BOOKING_ENTITY, fields)
        logger.info(
            "Created booking %s for instructor %s at %s",
            record.get("id"),
            instructor_id,
            fields["start_datetime"],
        )
        return Booking.from_record(record, self.timezone)

    async def update_status(self, booking_id: str, status: str) -> Booking:
        """
        Move a booking to a new status.

        Raises:
            BookingNotFoundError: If the booking doesn't exist
            InvalidStatusTransitionError: If the change would go backwards
        """
        booking = await self._get_booking(booking_id)

        if not can_transition(booking.status, status):
            raise InvalidStatusTransitionError(
                f"Booking {booking_id} cannot move from '{booking.status}' to '{status}'"
            )

        record = await self._store.update(BOOKING_ENTITY, booking_id, {"status": status})
        logger.info("Booking %s status %s -> %s", booking_id, booking.status, status)
        return Booking.from_record(record, self.timezone)

    async def cancel_booking(self, booking_id: str) -> Booking:
        """Cancel a booking, freeing its slot immediately."""
        return await self.update_status(booking_id, BookingStatus.CANCELLED)

    async def reschedule(self, booking_id: str, start: DateTime, end: DateTime) -> Booking:
        """
        Move an open booking to a new window.

        Raises:
            BookingNotFoundError: If the booking doesn't exist
            InvalidStatusTransitionError: If the booking is already finished
            BookingConflictError: If the new window overlaps another booking
        """
        booking = await self._get_booking(booking_id)

        if booking.status in TERMINAL_BOOKING_STATUSES:
            raise InvalidStatusTransitionError(
                f"Booking {booking_id} is {booking.status}; its time window can no longer change"
            )

        fresh_bookings = await self.fetch_instructor_bookings(booking.instructor_id)
        result = validate_booking_window(
            booking.instructor_id,
            start,
            end,
            fresh_bookings,
            exclude_booking_id=booking_id,
        )
        if not result.ok:
            raise BookingConflictError(conflicts=result.conflicts)

        record = await self._store.update(
            BOOKING_ENTITY,
            booking_id,
            {
                "start_datetime": start.to_iso8601_string(),
                "end_datetime": end.to_iso8601_string(),
            },
        )
        return Booking.from_record(record, self.timezone)

    async def _get_booking(self, booking_id: str) -> Booking:
        records = await self._store.filter(BOOKING_ENTITY, {"id": booking_id}, limit=1)
        if not records:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return Booking.from_record(records[0], self.timezone)
