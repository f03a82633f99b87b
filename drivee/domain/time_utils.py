"""
Time and number helpers shared by the scheduling and reporting engines.

Store records arrive with missing fields, numeric strings and the odd
malformed timestamp. These helpers turn them into something the engines can
aggregate without raising.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Any

import pendulum
from pendulum import DateTime

SECONDS_PER_DAY = 86400


def coerce_number(value: Any, fallback: float = 0.0) -> float:
    """
    Parse a value to a finite float.

    Args:
        value: Raw value from a record (number, numeric string, None, ...)
        fallback: Value returned when parsing fails

    Returns:
        The parsed float, or ``fallback`` for missing, non-numeric,
        NaN or infinite input.
    """
    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return fallback
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            number = float(text)
        except ValueError:
            return fallback
    else:
        return fallback

    if not math.isfinite(number):
        return fallback
    return number


def overlaps(a_start: DateTime, a_end: DateTime, b_start: DateTime, b_end: DateTime) -> bool:
    """Check whether half-open intervals [a_start, a_end) and [b_start, b_end) intersect."""
    return a_start < b_end and b_start < a_end


def duration_hours(start: DateTime | None, end: DateTime | None) -> float:
    """
    Return the length of a window in hours.

    Missing timestamps and zero or negative windows count as one hour so a
    malformed booking never contributes nothing to an aggregate.
    """
    if start is None or end is None:
        return 1.0

    hours = (end - start).total_seconds() / 3600
    if not math.isfinite(hours) or hours <= 0:
        return 1.0
    return hours


def parse_datetime(value: Any, timezone: str) -> DateTime | None:
    """
    Parse an ISO timestamp (or datetime) into a DateTime in ``timezone``.

    Naive strings are read as local time in ``timezone``. Returns None when
    the value is missing or cannot be parsed.
    """
    if value is None or value == "":
        return None

    if isinstance(value, DateTime):
        return value.in_timezone(timezone)

    if isinstance(value, datetime):
        return pendulum.instance(value, tz=timezone).in_timezone(timezone)

    if not isinstance(value, str):
        return None

    try:
        parsed = pendulum.parse(value, tz=timezone)
    except (ValueError, TypeError):
        return None

    if not isinstance(parsed, DateTime):
        return None
    return parsed.in_timezone(timezone)


def days_between(later: DateTime, earlier: DateTime) -> int:
    """Whole days from ``earlier`` to ``later``, truncated toward zero."""
    seconds = later.timestamp() - earlier.timestamp()
    return int(seconds / SECONDS_PER_DAY)


def percent_of_total(part: float, total: float) -> float:
    """Share of ``part`` in ``total`` as a percentage; 0 when total is 0."""
    if total == 0:
        return 0.0
    return part / total * 100
