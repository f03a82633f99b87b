"""
VAT reporting: tax-inclusive decomposition, breakdowns, period deltas and
the filing-deadline state.

Payment amounts are VAT-inclusive. Net and tax are always derived as
``gross / (1 + rate)`` and ``gross - net``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List

from pendulum import DateTime

from .models import Expense, Payment
from .periods import ReportPeriod
from .time_utils import days_between, percent_of_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxPolicy:
    """Tenant-level VAT settings."""
    default_standard_rate: float = 20.0  # percent
    filing_offset_days: int = 30
    urgent_window_days: int = 7


@dataclass
class DailyTaxEntry:
    date: str  # YYYY-MM-DD, tenant-local
    gross: float = 0.0
    net: float = 0.0
    tax: float = 0.0


@dataclass
class TaxReport:
    """VAT figures for one period."""
    period: ReportPeriod
    tax_rate: float
    gross_sales: float = 0.0
    net_sales: float = 0.0
    tax_collected: float = 0.0
    expense_total: float = 0.0
    tax_deductible: float = 0.0
    net_tax_due: float = 0.0
    transaction_count: int = 0
    by_type: Dict[str, float] = field(default_factory=dict)
    by_payment_method: Dict[str, float] = field(default_factory=dict)
    daily_breakdown: List[DailyTaxEntry] = field(default_factory=list)

    @property
    def is_refundable(self) -> bool:
        return self.net_tax_due < 0

    def type_shares(self) -> Dict[str, float]:
        """Percentage of gross sales per payment type."""
        return {
            key: percent_of_total(amount, self.gross_sales)
            for key, amount in self.by_type.items()
        }


@dataclass
class TaxComparison:
    """Percent changes from a previous period's report."""
    gross_sales_change: float
    net_sales_change: float
    tax_collected_change: float
    net_tax_due_change: float


class FilingState(str, Enum):
    OVERDUE = "overdue"
    URGENT = "urgent"
    PENDING = "pending"
    CURRENT = "current"


@dataclass(frozen=True)
class FilingStatus:
    state: FilingState
    due_date: DateTime
    days_until_due: int
    message: str


def percent_change(current: float, previous: float) -> float:
    """
    Percent change from ``previous`` to ``current``.

    A rise from zero counts as +100; zero to zero is 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / abs(previous) * 100


def compare_reports(current: TaxReport, previous: TaxReport) -> TaxComparison:
    return TaxComparison(
        gross_sales_change=percent_change(current.gross_sales, previous.gross_sales),
        net_sales_change=percent_change(current.net_sales, previous.net_sales),
        tax_collected_change=percent_change(current.tax_collected, previous.tax_collected),
        net_tax_due_change=percent_change(current.net_tax_due, previous.net_tax_due),
    )


def filing_status(
    period_end: DateTime,
    net_tax_due: float,
    today: DateTime,
    policy: TaxPolicy | None = None,
) -> FilingStatus:
    """
    Derive the filing state for a period from today's date.

    The return is due ``filing_offset_days`` after the period ends.
    """
    policy = policy or TaxPolicy()
    due_date = period_end.add(days=policy.filing_offset_days)
    days = days_between(due_date, today)

    if days < 0:
        state, message = FilingState.OVERDUE, "Tax filing overdue"
    elif days <= policy.urgent_window_days:
        state, message = FilingState.URGENT, f"Filing due in {days} days"
    elif net_tax_due > 0:
        state, message = FilingState.PENDING, "Tax payment pending"
    else:
        state, message = FilingState.CURRENT, "All filings current"

    return FilingStatus(state=state, due_date=due_date, days_until_due=days, message=message)


class TaxAggregator:
    """
    Builds VAT reports from completed payments and deductible expenses.
    """

    def __init__(self, policy: TaxPolicy | None = None):
        self.policy = policy or TaxPolicy()

    def compute_tax_report(
        self,
        period: ReportPeriod,
        payments: Iterable[Payment],
        expenses: Iterable[Expense],
        standard_rate: float | None = None,
    ) -> TaxReport:
        """
        Compute the VAT position for a period.

        Args:
            period: Inclusive reporting window
            payments: Payments to consider; only completed ones in the period count
            expenses: Expenses; only VAT-deductible ones in the period count
            standard_rate: VAT rate in percent, or None to use the policy default

        Returns:
            TaxReport; ``net_tax_due`` is negative for a refund position
        """
        if standard_rate is None:
            logger.info(
                "No tax configuration found; using default rate of %s%%",
                self.policy.default_standard_rate,
            )
            standard_rate = self.policy.default_standard_rate

        rate = standard_rate / 100
        report = TaxReport(period=period, tax_rate=standard_rate)

        period_payments = [
            p for p in payments
            if p.status == "completed" and period.contains(p.paid_at)
        ]

        daily: Dict[str, DailyTaxEntry] = {}
        for payment in period_payments:
            gross = payment.amount
            report.gross_sales += gross
            report.by_type[payment.payment_type] = report.by_type.get(payment.payment_type, 0.0) + gross
            report.by_payment_method[payment.payment_method] = (
                report.by_payment_method.get(payment.payment_method, 0.0) + gross
            )

            day_key = payment.paid_at.format("YYYY-MM-DD")
            entry = daily.setdefault(day_key, DailyTaxEntry(date=day_key))
            net = gross / (1 + rate)
            entry.gross += gross
            entry.net += net
            entry.tax += gross - net

        report.transaction_count = len(period_payments)
        report.net_sales = report.gross_sales / (1 + rate)
        report.tax_collected = report.gross_sales - report.net_sales

        report.expense_total = sum(
            e.amount for e in expenses
            if e.vat_deductible and period.contains(e.incurred_at)
        )
        report.tax_deductible = report.expense_total * (rate / (1 + rate))
        report.net_tax_due = report.tax_collected - report.tax_deductible

        report.daily_breakdown = [daily[key] for key in sorted(daily)]
        return report
