from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local
from ..core.constants import MONEY_QUANT
from ..core.enums import InquiryStatus
from ..core.exceptions import ValidationError
from ..inquiries.repository import InquiryRepository
from ..payments.model import Payment
from ..payments.service import PaymentRecorder
from .cache import AggregateCache
from .model import AttendanceReport, StatsSnapshot
from .repository import ReportRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _checked_month(year: int, month: int) -> tuple[date, date]:
    try:
        return month_bounds(int(year), int(month))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid year/month: {year}/{month}") from exc


class RevenueAggregator:
    """Read-only dashboards over payments and attendance.

    Results are cached per organization; every monetary write invalidates
    the organization's entries through the shared AggregateCache.
    """

    def __init__(
        self,
        reports: ReportRepository,
        inquiries: InquiryRepository,
        payments: PaymentRecorder,
        *,
        cache: AggregateCache | None = None,
    ):
        self._reports = reports
        self._inquiries = inquiries
        self._payments = payments
        self._cache = cache or AggregateCache()

    def stats_snapshot(self, *, organization_id: int, today: Optional[date] = None) -> StatsSnapshot:
        organization_id = int(organization_id)
        today = today or now_local().date()

        def compute() -> StatsSnapshot:
            month_start, _ = month_bounds(today.year, today.month)
            return StatsSnapshot(
                as_of=today,
                total_children=self._reports.count_active_children(organization_id=organization_id),
                active_enrollments=self._reports.count_active_enrollments(organization_id=organization_id),
                new_inquiries=self._inquiries.count_by_status(
                    organization_id=organization_id, status=InquiryStatus.NEW
                ),
                currently_checked_in=self._reports.count_open_sessions(organization_id=organization_id),
                today_revenue=self._reports.sum_completed_between(
                    organization_id=organization_id, start_date=today, end_date=today
                ),
                month_revenue=self._reports.sum_completed_between(
                    organization_id=organization_id, start_date=month_start, end_date=today
                ),
                pending_payments=self._reports.count_pending_payments(organization_id=organization_id),
            )

        return self._cache.get_or_compute(organization_id, ("stats", today), compute)

    def monthly_revenue(self, *, organization_id: int, year: int, month: int) -> Decimal:
        organization_id = int(organization_id)
        first, last = _checked_month(year, month)
        return self._cache.get_or_compute(
            organization_id,
            ("monthly_revenue", first),
            lambda: self._reports.sum_completed_between(
                organization_id=organization_id, start_date=first, end_date=last
            ),
        )

    def attendance_report(self, *, organization_id: int, child_id: int, year: int, month: int) -> AttendanceReport:
        organization_id = int(organization_id)
        first, last = _checked_month(year, month)

        def compute() -> AttendanceReport:
            rows = list(
                self._reports.attendance_for_child(
                    organization_id=organization_id, child_id=int(child_id), start_date=first, end_date=last
                )
            )
            minutes = sum(r.duration_minutes or 0 for r in rows)
            charges = sum((r.calculated_charge or ZERO for r in rows), ZERO)
            return AttendanceReport(
                child_id=int(child_id),
                year=first.year,
                month=first.month,
                total_days=len({r.attendance_date for r in rows}),
                total_hours=(Decimal(minutes) / Decimal(60)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP),
                total_charges=charges.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP),
                attendances=rows,
            )

        return self._cache.get_or_compute(organization_id, ("attendance_report", int(child_id), first), compute)

    def conversion_rate(self, *, organization_id: int) -> Decimal:
        """Enrolled inquiries as a percentage of all inquiries; 0 when there are none."""

        organization_id = int(organization_id)
        total = self._inquiries.count_all(organization_id=organization_id)
        if total == 0:
            return ZERO
        enrolled = self._inquiries.count_by_status(organization_id=organization_id, status=InquiryStatus.ENROLLED)
        return (Decimal(enrolled) * 100 / Decimal(total)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)

    def pending_payments(self, *, organization_id: int) -> Sequence[Payment]:
        return self._payments.pending_payments(organization_id=organization_id)
