from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import BillingType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone, to_decimal
from .model import AttendanceRecord, SessionCharge
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, organization_id, enrollment_id, attendance_date, check_in_time,
    check_out_time, duration_minutes, billing_type, calculated_charge, checked_in_by,
    checked_out_by, notes, is_manual_edit, edited_by, edit_reason
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        organization_id=int(r["organization_id"]),
        enrollment_id=int(r["enrollment_id"]),
        attendance_date=r["attendance_date"],
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        duration_minutes=int(r["duration_minutes"]) if r.get("duration_minutes") is not None else None,
        billing_type=BillingType(r["billing_type"]) if r.get("billing_type") else None,
        calculated_charge=to_decimal(r.get("calculated_charge")),
        checked_in_by=r.get("checked_in_by"),
        checked_out_by=r.get("checked_out_by"),
        notes=r.get("notes"),
        is_manual_edit=bool(r.get("is_manual_edit")),
        edited_by=r.get("edited_by"),
        edit_reason=r.get("edit_reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, order: str = "check_in_time DESC") -> list[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY {order}", params)
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_by_id(self, *, organization_id: int, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE organization_id=%s AND attendance_id=%s",
                (int(organization_id), int(attendance_id)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_open_for_enrollment(self, *, organization_id: int, enrollment_id: int) -> Optional[AttendanceRecord]:
        rows = self._select(
            "organization_id=%s AND enrollment_id=%s AND check_out_time IS NULL",
            (int(organization_id), int(enrollment_id)),
        )
        return rows[0] if rows else None

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
        # open_enrollment_id is generated (enrollment_id while check_out_time IS NULL)
        # and uniquely indexed: a second open record for the enrollment is rejected.
        with conflict_on_duplicate("Child is already checked in"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        organization_id, enrollment_id, attendance_date, check_in_time, checked_in_by, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(organization_id), int(enrollment_id), attendance_date, check_in_time, checked_in_by, notes),
                )
                return int(cur.lastrowid)

    def write_checkout(
        self,
        *,
        organization_id: int,
        attendance_id: int,
        check_out_time: datetime,
        checked_out_by: int,
        charge: SessionCharge,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, checked_out_by=%s,
                    duration_minutes=%s, billing_type=%s, calculated_charge=%s
                WHERE organization_id=%s AND attendance_id=%s AND check_out_time IS NULL
                """,
                (
                    check_out_time,
                    checked_out_by,
                    charge.duration_minutes,
                    charge.billing_type.value,
                    charge.calculated_charge,
                    int(organization_id),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET attendance_date=%s, check_in_time=%s, check_out_time=%s,
                    duration_minutes=%s, billing_type=%s, calculated_charge=%s,
                    notes=%s, is_manual_edit=1, edited_by=%s, edit_reason=%s
                WHERE organization_id=%s AND attendance_id=%s
                """,
                (
                    attendance_date,
                    check_in_time,
                    check_out_time,
                    charge.duration_minutes if charge else None,
                    charge.billing_type.value if charge else None,
                    charge.calculated_charge if charge else None,
                    notes,
                    edited_by,
                    edit_reason,
                    int(organization_id),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def list_for_date(self, *, organization_id: int, day: date) -> Sequence[AttendanceRecord]:
        return self._select("organization_id=%s AND attendance_date=%s", (int(organization_id), day))

    def list_open(self, *, organization_id: int) -> Sequence[AttendanceRecord]:
        return self._select(
            "organization_id=%s AND check_out_time IS NULL",
            (int(organization_id),),
            order="check_in_time ASC",
        )

    def list_history(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["organization_id=%s", "enrollment_id=%s"]
        params: list[object] = [int(organization_id), int(enrollment_id)]
        if start_date is not None:
            clauses.append("attendance_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("attendance_date <= %s")
            params.append(end_date)
        return self._select(" AND ".join(clauses), tuple(params))
