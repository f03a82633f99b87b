"""
Outstanding invoice balances and aging buckets.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from pendulum import DateTime

from .models import Invoice
from .time_utils import days_between

CLOSED_INVOICE_STATUSES = frozenset({"paid", "void"})

AGING_BUCKETS: Tuple[Tuple[str, int | None], ...] = (
    ("0-30", 30),
    ("31-60", 60),
    ("61-90", 90),
    ("90+", None),
)


def outstanding_balance(invoice: Invoice) -> float:
    """Amount still owed on an invoice; 0 for paid or void invoices."""
    if invoice.status in CLOSED_INVOICE_STATUSES:
        return 0.0
    return max(0.0, invoice.total_amount - invoice.amount_paid)


@dataclass
class AgedInvoice:
    invoice: Invoice
    days_overdue: int
    amount_due: float


@dataclass
class AgingReport:
    buckets: Dict[str, List[AgedInvoice]] = field(
        default_factory=lambda: {name: [] for name, _ in AGING_BUCKETS}
    )
    totals: Dict[str, float] = field(
        default_factory=lambda: {name: 0.0 for name, _ in AGING_BUCKETS}
    )
    grand_total: float = 0.0
    overdue_count: int = 0
    total_outstanding: float = 0.0


def _bucket_for(days_overdue: int) -> str:
    for name, limit in AGING_BUCKETS:
        if limit is None or days_overdue <= limit:
            return name
    return AGING_BUCKETS[-1][0]


def build_aging_report(invoices: Iterable[Invoice], today: DateTime) -> AgingReport:
    """
    Group overdue open invoices by how long they have been past due.

    Invoices without a due date, not yet due, or with nothing left to pay are
    left out of the buckets; ``total_outstanding`` still counts every open
    balance.
    """
    report = AgingReport()

    for invoice in invoices:
        amount_due = outstanding_balance(invoice)
        report.total_outstanding += amount_due

        if amount_due <= 0 or invoice.due_date is None or invoice.due_date >= today:
            continue

        days_overdue = days_between(today, invoice.due_date)
        bucket = _bucket_for(days_overdue)
        report.buckets[bucket].append(
            AgedInvoice(invoice=invoice, days_overdue=days_overdue, amount_due=amount_due)
        )
        report.totals[bucket] += amount_due

    report.grand_total = sum(report.totals.values())
    report.overdue_count = sum(len(items) for items in report.buckets.values())
    return report


def outstanding_by_student(invoices: Iterable[Invoice]) -> List[Tuple[str, float]]:
    """Open balance per student, largest first."""
    balances: Dict[str, float] = defaultdict(float)
    for invoice in invoices:
        amount = outstanding_balance(invoice)
        if amount > 0:
            balances[invoice.student_id] += amount

    return sorted(balances.items(), key=lambda item: item[1], reverse=True)
