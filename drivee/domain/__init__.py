"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityEngine
from .conflicts import ValidationResult, validate_booking_window
from .models import AvailableSlot, Booking, TimeRange, WorkingHours
from .payroll import PayrollCalculator, PayrollPolicy, summarize_payroll
from .tax import TaxAggregator, TaxPolicy, percent_change

__all__ = [
    "AvailabilityEngine",
    "AvailableSlot",
    "Booking",
    "PayrollCalculator",
    "PayrollPolicy",
    "TaxAggregator",
    "TaxPolicy",
    "TimeRange",
    "ValidationResult",
    "WorkingHours",
    "percent_change",
    "summarize_payroll",
    "validate_booking_window",
]
