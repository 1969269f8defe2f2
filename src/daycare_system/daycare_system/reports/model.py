from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from ..attendance.model import AttendanceRecord


@dataclass(frozen=True)
class StatsSnapshot:
    as_of: date
    total_children: int
    active_enrollments: int
    new_inquiries: int
    currently_checked_in: int
    today_revenue: Decimal
    month_revenue: Decimal
    pending_payments: int

    def to_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat(),
            "total_children": self.total_children,
            "active_enrollments": self.active_enrollments,
            "new_inquiries": self.new_inquiries,
            "currently_checked_in": self.currently_checked_in,
            "today_revenue": str(self.today_revenue),
            "month_revenue": str(self.month_revenue),
            "pending_payments": self.pending_payments,
        }


@dataclass(frozen=True)
class AttendanceReport:
    child_id: int
    year: int
    month: int
    total_days: int
    total_hours: Decimal
    total_charges: Decimal
    attendances: list[AttendanceRecord] = field(default_factory=list)
