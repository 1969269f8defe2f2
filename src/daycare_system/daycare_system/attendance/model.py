from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import BillingType


@dataclass(frozen=True)
class SessionCharge:
    """Derived fields of a closed session; always written together."""

    duration_minutes: int
    billing_type: BillingType
    calculated_charge: Decimal


@dataclass(frozen=True)
class AttendanceRecord:
    """One physical presence session. Open while check_out_time is None."""

    attendance_id: int
    organization_id: int
    enrollment_id: int
    attendance_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    duration_minutes: Optional[int] = None
    billing_type: Optional[BillingType] = None
    calculated_charge: Optional[Decimal] = None
    checked_in_by: Optional[int] = None
    checked_out_by: Optional[int] = None
    notes: Optional[str] = None
    is_manual_edit: bool = False
    edited_by: Optional[int] = None
    edit_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None


@dataclass(frozen=True)
class AttendanceCorrection:
    """Fields an administrator may override; None means unchanged."""

    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def changes_times(self) -> bool:
        return self.check_in_time is not None or self.check_out_time is not None

    @property
    def is_empty(self) -> bool:
        return not self.changes_times and self.notes is None
