"""
Application services for payroll, VAT and receivables reports.

Each report reads one snapshot of the records it needs from the entity store
and hands it to the domain calculators. Nothing is written back.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Tuple

from pendulum import DateTime

from ..domain.models import (
    Booking,
    CommissionRule,
    Expense,
    Instructor,
    Invoice,
    Payment,
)
from ..domain.payroll import PayrollCalculator, PayrollRow, PayrollSummary, summarize_payroll
from ..domain.periods import ReportPeriod
from ..domain.receivables import AgingReport, build_aging_report, outstanding_by_student
from ..domain.tax import (
    FilingStatus,
    TaxAggregator,
    TaxComparison,
    TaxReport,
    compare_reports,
    filing_status,
)
from ..domain.time_utils import coerce_number
from .booking_service import EntityStoreProtocol

logger = logging.getLogger(__name__)


@dataclass
class PayrollReport:
    period: ReportPeriod
    rows: List[PayrollRow]
    summary: PayrollSummary


@dataclass
class TaxComplianceReport:
    current: TaxReport
    previous: TaxReport
    comparison: TaxComparison
    filing: FilingStatus


@dataclass
class ReceivablesReport:
    aging: AgingReport
    by_student: List[Tuple[str, float]]


class ReportService:
    """
    Builds read-only reports from entity-store snapshots.
    """

    def __init__(
        self,
        store: EntityStoreProtocol,
        payroll_calculator: PayrollCalculator,
        tax_aggregator: TaxAggregator,
        timezone: str,
    ) -> None:
        self._store = store
        self._payroll = payroll_calculator
        self._tax = tax_aggregator
        self.timezone = timezone

    async def payroll_report(self, period: ReportPeriod) -> PayrollReport:
        """Compute instructor pay for a period."""
        instructor_records, booking_records, rule_records = await asyncio.gather(
            self._store.list("Instructor"),
            self._store.list("Booking"),
            self._store.list("CommissionRule"),
        )

        instructors = [Instructor.from_record(r) for r in instructor_records]
        bookings = [Booking.from_record(r, self.timezone) for r in booking_records]
        rules = [CommissionRule.from_record(r) for r in rule_records]

        rows = self._payroll.compute_instructor_payroll(period, instructors, bookings, rules)
        logger.debug("Computed payroll for %d instructors over %s", len(rows), period.label)
        return PayrollReport(period=period, rows=rows, summary=summarize_payroll(rows))

    async def standard_rate(self) -> float | None:
        """
        Read the tenant's standard VAT rate in percent.

        Returns None when no usable TaxConfig record exists.
        """
        configs = await self._store.list("TaxConfig", limit=1)
        if not configs:
            return None
        rate = coerce_number(configs[0].get("standard_rate"), -1.0)
        return rate if rate >= 0 else None

    async def tax_report(
        self,
        period: ReportPeriod,
        comparison_period: ReportPeriod,
        today: DateTime,
    ) -> TaxComplianceReport:
        """
        Compute the VAT position, the comparison period and the filing state.

        The filing state is derived from ``today`` on every call.
        """
        payment_records, expense_records, rate = await asyncio.gather(
            self._store.list("Payment"),
            self._store.list("Expense"),
            self.standard_rate(),
        )

        payments = [Payment.from_record(r, self.timezone) for r in payment_records]
        expenses = [Expense.from_record(r, self.timezone) for r in expense_records]

        current = self._tax.compute_tax_report(period, payments, expenses, rate)
        previous = self._tax.compute_tax_report(comparison_period, payments, expenses, rate)

        return TaxComplianceReport(
            current=current,
            previous=previous,
            comparison=compare_reports(current, previous),
            filing=filing_status(period.end, current.net_tax_due, today, self._tax.policy),
        )

    async def receivables_report(self, today: DateTime) -> ReceivablesReport:
        """Outstanding balances and aging buckets as of ``today``."""
        records = await self._store.list("Invoice")
        invoices = [Invoice.from_record(r, self.timezone) for r in records]
        return ReceivablesReport(
            aging=build_aging_report(invoices, today),
            by_student=outstanding_by_student(invoices),
        )
