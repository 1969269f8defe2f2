from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, SessionCharge


class AttendanceRepository(Protocol):
    def get_by_id(self, *, organization_id: int, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_enrollment(self, *, organization_id: int, enrollment_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        attendance_date: date,
        check_in_time: datetime,
        checked_in_by: int,
        notes: Optional[str] = None,
    ) -> int:
        """Must raise ConflictError if the enrollment already has an open record."""

        raise NotImplementedError

    def write_checkout(
        self,
        *,
        organization_id: int,
        attendance_id: int,
        check_out_time: datetime,
        checked_out_by: int,
        charge: SessionCharge,
    ) -> bool:
        """Close an open record; False when it is already closed."""

        raise NotImplementedError

    def write_correction(
        self,
        *,
        organization_id: int,
        attendance_id: int,
        attendance_date: date,
        check_in_time: datetime,
        check_out_time: Optional[datetime],
        charge: Optional[SessionCharge],
        notes: Optional[str],
        edited_by: int,
        edit_reason: str,
    ) -> bool:
        raise NotImplementedError

    def list_for_date(self, *, organization_id: int, day: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open(self, *, organization_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_history(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
