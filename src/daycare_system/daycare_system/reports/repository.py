from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence

from ..attendance.model import AttendanceRecord


class ReportRepository(Protocol):
    """Aggregate reads. Revenue sums only count completed payments."""

    def count_active_children(self, *, organization_id: int) -> int:
        raise NotImplementedError

    def count_active_enrollments(self, *, organization_id: int) -> int:
        raise NotImplementedError

    def count_open_sessions(self, *, organization_id: int) -> int:
        raise NotImplementedError

    def count_pending_payments(self, *, organization_id: int) -> int:
        raise NotImplementedError

    def sum_completed_between(self, *, organization_id: int, start_date: date, end_date: date) -> Decimal:
        """Sum of total_amount over completed payments with start_date <= payment_date <= end_date."""

        raise NotImplementedError

    def attendance_for_child(
        self, *, organization_id: int, child_id: int, start_date: date, end_date: date
    ) -> Sequence[AttendanceRecord]:
        """Sessions across all of the child's enrollments, by attendance_date."""

        raise NotImplementedError
