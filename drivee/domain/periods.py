"""
Reporting periods used by the payroll and tax reports.
"""

from dataclasses import dataclass
from typing import Tuple

from pendulum import DateTime

PAYROLL_PRESETS = ("current", "last", "year", "custom")
TAX_PRESETS = ("current", "last", "year", "custom")


@dataclass(frozen=True)
class ReportPeriod:
    """
    Inclusive datetime window for a report.

    Invariant: start must not be after end.
    """
    start: DateTime
    end: DateTime
    label: str = ""

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} must not be after end {self.end}")

    def contains(self, moment: DateTime | None) -> bool:
        """Check whether a moment falls within the period, both ends included."""
        if moment is None:
            return False
        return self.start <= moment <= self.end

    def preceding(self) -> "ReportPeriod":
        """A period of the same length that ends where this one starts."""
        length = int(self.end.timestamp() - self.start.timestamp())
        return ReportPeriod(
            start=self.start.subtract(seconds=length),
            end=self.start,
            label="Previous Period",
        )


def _custom_period(start: DateTime | None, end: DateTime | None) -> ReportPeriod:
    if start is None or end is None:
        raise ValueError("A custom period needs both a start and an end date")
    period_start = start.start_of("day")
    period_end = end.end_of("day")
    return ReportPeriod(
        start=period_start,
        end=period_end,
        label=f"{period_start.format('MMM D')} - {period_end.format('MMM D, YYYY')}",
    )


def _month(moment: DateTime) -> ReportPeriod:
    return ReportPeriod(
        start=moment.start_of("month"),
        end=moment.end_of("month"),
        label=moment.format("MMMM YYYY"),
    )


def _quarter(moment: DateTime) -> ReportPeriod:
    first_month = 3 * ((moment.month - 1) // 3) + 1
    start = moment.start_of("month").set(month=first_month)
    end = start.add(months=2).end_of("month")
    return ReportPeriod(start=start, end=end, label=f"Q{(first_month - 1) // 3 + 1} {start.year}")


def _year(moment: DateTime) -> ReportPeriod:
    return ReportPeriod(
        start=moment.start_of("year"),
        end=moment.end_of("year"),
        label=str(moment.year),
    )


def resolve_payroll_period(
    preset: str,
    now: DateTime,
    start: DateTime | None = None,
    end: DateTime | None = None,
) -> ReportPeriod:
    """
    Resolve a payroll period preset relative to ``now``.

    Presets: ``current`` month, ``last`` month, ``year`` to date (through the
    end of the current month) and ``custom`` (requires start and end).
    """
    if preset == "current":
        return _month(now)
    if preset == "last":
        return _month(now.subtract(months=1))
    if preset == "year":
        return ReportPeriod(start=now.start_of("year"), end=now.end_of("month"), label=str(now.year))
    if preset == "custom":
        return _custom_period(start, end)
    raise ValueError(f"Unknown period '{preset}'. Choose from: {', '.join(PAYROLL_PRESETS)}")


def resolve_tax_periods(
    preset: str,
    now: DateTime,
    start: DateTime | None = None,
    end: DateTime | None = None,
) -> Tuple[ReportPeriod, ReportPeriod]:
    """
    Resolve a tax period preset and the period it is compared against.

    Returns:
        Tuple of (reporting period, comparison period)
    """
    if preset == "current":
        current = _quarter(now)
        return current, _quarter(current.start.subtract(months=3))
    if preset == "last":
        last = _quarter(now.start_of("month").subtract(months=3))
        return last, _quarter(last.start.subtract(months=3))
    if preset == "year":
        return _year(now), _year(now.start_of("year").subtract(years=1))
    if preset == "custom":
        period = _custom_period(start, end)
        return period, period.preceding()
    raise ValueError(f"Unknown period '{preset}'. Choose from: {', '.join(TAX_PRESETS)}")
