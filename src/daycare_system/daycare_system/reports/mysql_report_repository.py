from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.mysql_attendance_repository import _row_to_record
from ..core.enums import ChildLifecycle, EnrollmentStatus, PaymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal_or_zero
from .repository import ReportRepository


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _count(self, sql: str, params: tuple) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def count_active_children(self, *, organization_id: int) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM children WHERE organization_id=%s AND lifecycle=%s",
            (int(organization_id), ChildLifecycle.ACTIVE.value),
        )

    def count_active_enrollments(self, *, organization_id: int) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM enrollments WHERE organization_id=%s AND status=%s",
            (int(organization_id), EnrollmentStatus.ACTIVE.value),
        )

    def count_open_sessions(self, *, organization_id: int) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM attendance_records WHERE organization_id=%s AND check_out_time IS NULL",
            (int(organization_id),),
        )

    def count_pending_payments(self, *, organization_id: int) -> int:
        return self._count(
            "SELECT COUNT(*) AS n FROM payments WHERE organization_id=%s AND status=%s",
            (int(organization_id), PaymentStatus.PENDING.value),
        )

    def sum_completed_between(self, *, organization_id: int, start_date: date, end_date: date) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(total_amount), 0) AS total
                FROM payments
                WHERE organization_id=%s AND status=%s AND payment_date BETWEEN %s AND %s
                """,
                (int(organization_id), PaymentStatus.COMPLETED.value, start_date, end_date),
            )
            row = fetchone(cur)
            return to_decimal_or_zero(row["total"] if row else None)

    def attendance_for_child(
        self, *, organization_id: int, child_id: int, start_date: date, end_date: date
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.attendance_id, a.organization_id, a.enrollment_id, a.attendance_date,
                       a.check_in_time, a.check_out_time, a.duration_minutes, a.billing_type,
                       a.calculated_charge, a.checked_in_by, a.checked_out_by, a.notes,
                       a.is_manual_edit, a.edited_by, a.edit_reason
                FROM attendance_records a
                JOIN enrollments e
                  ON e.enrollment_id = a.enrollment_id AND e.organization_id = a.organization_id
                WHERE a.organization_id=%s AND e.child_id=%s AND a.attendance_date BETWEEN %s AND %s
                ORDER BY a.check_in_time ASC
                """,
                (int(organization_id), int(child_id), start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
