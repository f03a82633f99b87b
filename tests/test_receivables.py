"""
Tests for outstanding balances and invoice aging.
"""

import pendulum
import pytest

from drivee.domain.models import Invoice
from drivee.domain.receivables import (
    build_aging_report,
    outstanding_balance,
    outstanding_by_student,
)

TZ = "Europe/Dublin"
TODAY = pendulum.datetime(2025, 6, 1, tz=TZ)


def _invoice(invoice_id, total, paid=0, due="2025-05-20", status="sent", student="stu-1"):
    return Invoice.from_record(
        {
            "id": invoice_id,
            "invoice_number": invoice_id.upper(),
            "student_id": student,
            "total_amount": total,
            "amount_paid": paid,
            "due_date": due,
            "status": status,
        },
        TZ,
    )


class TestOutstandingBalance:
    """Tests for outstanding_balance."""

    def test_partially_paid(self):
        assert outstanding_balance(_invoice("a", 200, paid=50)) == pytest.approx(150)

    @pytest.mark.parametrize("status", ["paid", "void"])
    def test_closed_invoices_owe_nothing(self, status):
        assert outstanding_balance(_invoice("a", 200, status=status)) == 0

    def test_overpaid_is_zero(self):
        assert outstanding_balance(_invoice("a", 50, paid=70)) == 0


class TestAgingReport:
    """Tests for build_aging_report."""

    def setup_method(self):
        self.invoices = [
            _invoice("a", 200, paid=50, due="2025-05-20"),
            _invoice("b", 100, due="2025-04-01", student="stu-2"),
            _invoice("c", 300, due="2025-04-15", status="overdue", student="stu-3"),
            _invoice("d", 80, due="2025-01-01", student="stu-2"),
            _invoice("e", 90, status="paid"),
            _invoice("f", 60, status="void"),
            _invoice("g", 50, paid=70),
            _invoice("h", 40, due="2025-07-01"),
            _invoice("i", 25, due=None),
        ]

    def test_buckets(self):
        report = build_aging_report(self.invoices, TODAY)

        assert [item.invoice.id for item in report.buckets["0-30"]] == ["a"]
        assert [item.invoice.id for item in report.buckets["31-60"]] == ["c"]
        assert [item.invoice.id for item in report.buckets["61-90"]] == ["b"]
        assert [item.invoice.id for item in report.buckets["90+"]] == ["d"]
        assert report.buckets["0-30"][0].days_overdue == 12
        assert report.buckets["61-90"][0].days_overdue == 61

    def test_totals(self):
        report = build_aging_report(self.invoices, TODAY)

        assert report.totals == pytest.approx({"0-30": 150, "31-60": 300, "61-90": 100, "90+": 80})
        assert report.grand_total == pytest.approx(630)
        assert report.overdue_count == 4

    def test_total_outstanding_includes_not_yet_due(self):
        """Open balances that are not overdue still count as outstanding."""
        report = build_aging_report(self.invoices, TODAY)

        assert report.total_outstanding == pytest.approx(695)

    @pytest.mark.parametrize(
        "due, bucket",
        [
            ("2025-05-02", "0-30"),
            ("2025-05-01", "31-60"),
            ("2025-04-02", "31-60"),
            ("2025-04-01", "61-90"),
            ("2025-03-03", "61-90"),
            ("2025-02-28", "90+"),
        ],
    )
    def test_bucket_boundaries(self, due, bucket):
        report = build_aging_report([_invoice("x", 10, due=due)], TODAY)

        assert len(report.buckets[bucket]) == 1

    def test_empty(self):
        report = build_aging_report([], TODAY)

        assert report.grand_total == 0
        assert report.overdue_count == 0
        assert set(report.buckets) == {"0-30", "31-60", "61-90", "90+"}


def test_outstanding_by_student():
    invoices = [
        _invoice("a", 100, student="stu-1"),
        _invoice("b", 300, student="stu-2"),
        _invoice("c", 50, student="stu-1"),
        _invoice("d", 500, status="paid", student="stu-3"),
    ]

    assert outstanding_by_student(invoices) == [("stu-2", 300), ("stu-1", 150)]
