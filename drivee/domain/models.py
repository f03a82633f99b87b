"""
Domain models for bookings, payroll and tax inputs.

Records come from the entity store as plain mappings. Each model offers a
``from_record`` constructor that coerces missing or malformed fields to
documented defaults instead of raising.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from pendulum import DateTime

from .time_utils import coerce_number, duration_hours, overlaps, parse_datetime


class BookingStatus:
    """Booking status values as stored on records."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Bookings in these states block a slot from being offered.
ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS})

TERMINAL_BOOKING_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.NO_SHOW,
})

_STATUS_RANK = {
    BookingStatus.PENDING: 0,
    BookingStatus.CONFIRMED: 1,
    BookingStatus.IN_PROGRESS: 2,
    BookingStatus.COMPLETED: 3,
    BookingStatus.NO_SHOW: 3,
}


def can_transition(current: str, new: str) -> bool:
    """
    Check whether a booking may move from ``current`` to ``new`` status.

    Statuses only move forward. Cancellation is allowed from any state
    that has not already finished.
    """
    if current in TERMINAL_BOOKING_STATUSES:
        return False
    if new == BookingStatus.CANCELLED:
        return True
    if current not in _STATUS_RANK or new not in _STATUS_RANK:
        return False
    return _STATUS_RANK[new] > _STATUS_RANK[current]


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: "TimeRange") -> bool:
        """Check if ``other`` lies entirely within this range."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WorkingHours:
    """
    Daily window in which lesson slots are offered.
    """
    start_hour: int = 8
    end_hour: int = 20
    slot_minutes: int = 60
    timezone: str = "Europe/Dublin"

    def get_working_hours_for_day(self, date: DateTime) -> TimeRange:
        """Get the working hours range for a specific day, in local wall-clock time."""
        day = date.in_timezone(self.timezone).start_of("day")
        start = day.set(hour=self.start_hour)
        end = day.set(hour=self.end_hour) if self.end_hour < 24 else day.add(days=1)
        return TimeRange(start=start, end=end)


@dataclass(frozen=True)
class AvailableSlot:
    """
    A bookable lesson window for one instructor.
    """
    instructor_id: str
    time_range: TimeRange

    @property
    def time(self) -> str:
        """Start time as HH:mm."""
        return self.time_range.start.format("HH:mm")

    def format_display(self) -> str:
        """Format: Weekday, DD.MM.YYYY | HH:mm-HH:mm"""
        start = self.time_range.start
        end = self.time_range.end
        return f"{start.format('dddd, DD.MM.YYYY')} | {start.format('HH:mm')}-{end.format('HH:mm')}"


@dataclass
class Booking:
    """A lesson booking as read from the store."""
    id: str
    instructor_id: str
    student_id: str = ""
    vehicle_id: str = ""
    start: DateTime | None = None
    end: DateTime | None = None
    status: str = BookingStatus.PENDING
    price: float = 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any], timezone: str) -> "Booking":
        return cls(
            id=str(record.get("id") or ""),
            instructor_id=str(record.get("instructor_id") or ""),
            student_id=str(record.get("student_id") or ""),
            vehicle_id=str(record.get("vehicle_id") or ""),
            start=parse_datetime(record.get("start_datetime"), timezone),
            end=parse_datetime(record.get("end_datetime"), timezone),
            status=str(record.get("status") or BookingStatus.PENDING),
            price=coerce_number(record.get("price"), 0.0),
        )

    @property
    def time_range(self) -> TimeRange | None:
        """The booking window, or None when timestamps are missing or inverted."""
        if self.start is None or self.end is None or self.start >= self.end:
            return None
        return TimeRange(start=self.start, end=self.end)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def duration_hours(self) -> float:
        return duration_hours(self.start, self.end)


@dataclass
class Instructor:
    id: str
    full_name: str = ""
    email: str = ""
    rating: float = 0.0
    years_experience: float = 0.0
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Instructor":
        return cls(
            id=str(record.get("id") or ""),
            full_name=str(record.get("full_name") or ""),
            email=str(record.get("email") or ""),
            rating=coerce_number(record.get("rating"), 0.0),
            years_experience=coerce_number(record.get("years_experience"), 0.0),
            is_active=record.get("is_active", True) is True,
        )


@dataclass
class CommissionRule:
    instructor_id: str
    commission_rate: float | None = None  # percent, None when missing
    is_active: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CommissionRule":
        rate = coerce_number(record.get("commission_rate"), math.nan)
        return cls(
            instructor_id=str(record.get("instructor_id") or ""),
            commission_rate=None if math.isnan(rate) else rate,
            is_active=record.get("is_active") is True,
        )


@dataclass
class Payment:
    id: str
    amount: float = 0.0
    paid_at: DateTime | None = None
    status: str = "pending"
    payment_type: str = "other"
    payment_method: str = "unknown"

    @classmethod
    def from_record(cls, record: Mapping[str, Any], timezone: str) -> "Payment":
        return cls(
            id=str(record.get("id") or ""),
            amount=coerce_number(record.get("amount"), 0.0),
            paid_at=parse_datetime(
                record.get("payment_date") or record.get("created_date"), timezone
            ),
            status=str(record.get("status") or "pending"),
            payment_type=str(record.get("payment_type") or "other"),
            payment_method=str(record.get("payment_method") or "unknown"),
        )


@dataclass
class Expense:
    id: str
    amount: float = 0.0
    incurred_at: DateTime | None = None
    vat_deductible: bool = False
    category: str = "other"

    @classmethod
    def from_record(cls, record: Mapping[str, Any], timezone: str) -> "Expense":
        return cls(
            id=str(record.get("id") or ""),
            amount=coerce_number(record.get("amount"), 0.0),
            incurred_at=parse_datetime(
                record.get("expense_date") or record.get("created_date"), timezone
            ),
            vat_deductible=record.get("vat_deductible") is True,
            category=str(record.get("category") or "other"),
        )


@dataclass
class Invoice:
    id: str
    invoice_number: str = ""
    student_id: str = ""
    total_amount: float = 0.0
    amount_paid: float = 0.0
    due_date: DateTime | None = None
    status: str = "draft"

    @classmethod
    def from_record(cls, record: Mapping[str, Any], timezone: str) -> "Invoice":
        return cls(
            id=str(record.get("id") or ""),
            invoice_number=str(record.get("invoice_number") or ""),
            student_id=str(record.get("student_id") or ""),
            total_amount=coerce_number(record.get("total_amount"), 0.0),
            amount_paid=coerce_number(record.get("amount_paid"), 0.0),
            due_date=parse_datetime(record.get("due_date"), timezone),
            status=str(record.get("status") or "draft"),
        )


def bookings_from_records(records: List[Dict[str, Any]], timezone: str) -> List[Booking]:
    """Wrap raw booking records, preserving store order."""
    return [Booking.from_record(record, timezone) for record in records]
