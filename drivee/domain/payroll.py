"""
Instructor commission, bonus and withholding calculations.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import Booking, BookingStatus, CommissionRule, Instructor
from .periods import ReportPeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayrollPolicy:
    """
    Tenant-level payroll constants.

    ``performance_tiers`` maps a revenue threshold to a bonus; revenue must
    strictly exceed the threshold and only the highest tier reached pays out.
    """
    default_commission_rate: float = 30.0
    hours_per_lesson: float = 1.5
    performance_tiers: Tuple[Tuple[float, float], ...] = (
        (10000.0, 200.0),
        (8000.0, 150.0),
        (5000.0, 100.0),
    )
    quality_rating_threshold: float = 4.8
    quality_bonus: float = 50.0
    tax_rate: float = 0.20
    ni_rate: float = 0.12

    def performance_bonus(self, revenue: float) -> float:
        """Bonus for the single highest tier whose threshold ``revenue`` exceeds."""
        for threshold, bonus in sorted(self.performance_tiers, reverse=True):
            if revenue > threshold:
                return bonus
        return 0.0

    def quality_bonus_for(self, rating: float) -> float:
        return self.quality_bonus if rating >= self.quality_rating_threshold else 0.0


@dataclass
class PayrollRow:
    """Pay breakdown for one instructor over a period."""
    instructor_id: str
    name: str
    email: str
    revenue: float
    lessons: int
    hours_worked: float
    commission_rate: float
    base_commission: float
    performance_bonus: float
    quality_bonus: float
    deductions: float
    gross_pay: float
    tax_withheld: float
    ni_contributions: float
    net_pay: float
    rating: float
    completion_rate: float
    avg_revenue_per_lesson: float

    @property
    def bonus(self) -> float:
        return self.performance_bonus + self.quality_bonus


@dataclass
class PayrollSummary:
    """Report footer; every figure is a sum or average of the rows."""
    total_revenue: float = 0.0
    total_lessons: int = 0
    total_commissions: float = 0.0
    total_bonuses: float = 0.0
    total_gross_pay: float = 0.0
    total_tax: float = 0.0
    total_ni: float = 0.0
    total_net_pay: float = 0.0
    average_commission: float = 0.0
    average_rating: float = 0.0
    active_instructors: int = 0


class PayrollCalculator:
    """
    Computes per-instructor pay from completed bookings.

    Revenue and lesson counts only include completed bookings starting inside
    the period. Completion rate looks at every booking the instructor has.
    """

    def __init__(self, policy: PayrollPolicy | None = None):
        self.policy = policy or PayrollPolicy()

    def compute_instructor_payroll(
        self,
        period: ReportPeriod,
        instructors: Iterable[Instructor],
        bookings: Iterable[Booking],
        commission_rules: Sequence[CommissionRule],
    ) -> List[PayrollRow]:
        """
        Build one payroll row per instructor.

        Returns:
            Rows sorted by gross pay, highest first
        """
        bookings_by_instructor: Dict[str, List[Booking]] = defaultdict(list)
        for booking in bookings:
            bookings_by_instructor[booking.instructor_id].append(booking)

        rows = [
            self._build_row(
                instructor,
                period,
                bookings_by_instructor.get(instructor.id, []),
                commission_rules,
            )
            for instructor in instructors
        ]

        return sorted(rows, key=lambda row: row.gross_pay, reverse=True)

    def commission_rate_for(
        self,
        instructor_id: str,
        commission_rules: Sequence[CommissionRule],
    ) -> float:
        """
        Look up the instructor's active commission rate.

        When several active rules exist the first one in list order wins.
        """
        matches = [
            rule for rule in commission_rules
            if rule.instructor_id == instructor_id and rule.is_active
        ]

        if len(matches) > 1:
            logger.warning(
                "Instructor %s has %d active commission rules; using the first",
                instructor_id,
                len(matches),
            )

        if not matches or matches[0].commission_rate is None:
            logger.info(
                "No active commission rate for instructor %s; defaulting to %s%%",
                instructor_id,
                self.policy.default_commission_rate,
            )
            return self.policy.default_commission_rate

        return matches[0].commission_rate

    def _build_row(
        self,
        instructor: Instructor,
        period: ReportPeriod,
        instructor_bookings: List[Booking],
        commission_rules: Sequence[CommissionRule],
    ) -> PayrollRow:
        policy = self.policy

        completed = [b for b in instructor_bookings if b.status == BookingStatus.COMPLETED]
        in_period = [b for b in completed if period.contains(b.start)]

        revenue = sum(b.price for b in in_period)
        lessons = len(in_period)

        rate = self.commission_rate_for(instructor.id, commission_rules)
        base_commission = revenue * rate / 100
        performance_bonus = policy.performance_bonus(revenue)
        quality_bonus = policy.quality_bonus_for(instructor.rating)

        deductions = 0.0
        gross_pay = base_commission + performance_bonus + quality_bonus - deductions
        tax_withheld = gross_pay * policy.tax_rate
        ni_contributions = gross_pay * policy.ni_rate

        completion_rate = (
            len(completed) / len(instructor_bookings) * 100 if instructor_bookings else 0.0
        )

        return PayrollRow(
            instructor_id=instructor.id,
            name=instructor.full_name,
            email=instructor.email,
            revenue=revenue,
            lessons=lessons,
            hours_worked=lessons * policy.hours_per_lesson,
            commission_rate=rate,
            base_commission=base_commission,
            performance_bonus=performance_bonus,
            quality_bonus=quality_bonus,
            deductions=deductions,
            gross_pay=gross_pay,
            tax_withheld=tax_withheld,
            ni_contributions=ni_contributions,
            net_pay=gross_pay - tax_withheld - ni_contributions,
            rating=instructor.rating,
            completion_rate=completion_rate,
            avg_revenue_per_lesson=revenue / lessons if lessons else 0.0,
        )


def summarize_payroll(rows: Sequence[PayrollRow]) -> PayrollSummary:
    """Total the rows without going back to raw bookings."""
    if not rows:
        return PayrollSummary()

    total_gross = sum(row.gross_pay for row in rows)

    return PayrollSummary(
        total_revenue=sum(row.revenue for row in rows),
        total_lessons=sum(row.lessons for row in rows),
        total_commissions=sum(row.base_commission for row in rows),
        total_bonuses=sum(row.bonus for row in rows),
        total_gross_pay=total_gross,
        total_tax=sum(row.tax_withheld for row in rows),
        total_ni=sum(row.ni_contributions for row in rows),
        total_net_pay=sum(row.net_pay for row in rows),
        average_commission=total_gross / len(rows),
        average_rating=sum(row.rating for row in rows) / len(rows),
        active_instructors=sum(1 for row in rows if row.lessons > 0),
    )
