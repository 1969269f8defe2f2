from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import EnrollmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone, to_decimal
from .model import CustomRates, Enrollment
from .repository import EnrollmentRepository

_COLUMNS = """
    enrollment_id, organization_id, child_id, enrollment_number, enrollment_date,
    start_date, end_date, status, rate_schedule_id, custom_hourly_rate,
    custom_half_day_rate, custom_full_day_rate, custom_monthly_rate, notes, updated_at
"""


def _row_to_enrollment(r: dict) -> Enrollment:
    return Enrollment(
        enrollment_id=int(r["enrollment_id"]),
        organization_id=int(r["organization_id"]),
        child_id=int(r["child_id"]),
        enrollment_number=r["enrollment_number"],
        enrollment_date=r["enrollment_date"],
        start_date=r["start_date"],
        end_date=r.get("end_date"),
        status=EnrollmentStatus(r["status"]),
        rate_schedule_id=int(r["rate_schedule_id"]) if r.get("rate_schedule_id") is not None else None,
        custom_rates=CustomRates(
            hourly_rate=to_decimal(r.get("custom_hourly_rate")),
            half_day_rate=to_decimal(r.get("custom_half_day_rate")),
            full_day_rate=to_decimal(r.get("custom_full_day_rate")),
            monthly_rate=to_decimal(r.get("custom_monthly_rate")),
        ),
        notes=r.get("notes"),
        updated_at=r.get("updated_at"),
    )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, order: str = "enrollment_id DESC") -> list[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM enrollments WHERE {where} ORDER BY {order}", params)
            return [_row_to_enrollment(r) for r in fetchall(cur)]

    def get_by_id(self, *, organization_id: int, enrollment_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM enrollments WHERE organization_id=%s AND enrollment_id=%s",
                (int(organization_id), int(enrollment_id)),
            )
            r = fetchone(cur)
            return _row_to_enrollment(r) if r else None

    def get_live_for_child(self, *, organization_id: int, child_id: int) -> Optional[Enrollment]:
        rows = self._select(
            "organization_id=%s AND child_id=%s AND status IN (%s,%s)",
            (int(organization_id), int(child_id), EnrollmentStatus.ACTIVE.value, EnrollmentStatus.PAUSED.value),
        )
        return rows[0] if rows else None

    def list_for_child(self, *, organization_id: int, child_id: int) -> Sequence[Enrollment]:
        return self._select("organization_id=%s AND child_id=%s", (int(organization_id), int(child_id)))

    def list_all(self, *, organization_id: int, include_inactive: bool = False) -> Sequence[Enrollment]:
        if include_inactive:
            return self._select("organization_id=%s", (int(organization_id),))
        return self._select(
            "organization_id=%s AND status=%s",
            (int(organization_id), EnrollmentStatus.ACTIVE.value),
        )

    def create(
        self,
        *,
        organization_id: int,
        child_id: int,
        enrollment_number: str,
        enrollment_date: date,
        start_date: date,
        end_date: Optional[date],
        rate_schedule_id: Optional[int],
        custom_rates: CustomRates,
        notes: Optional[str] = None,
    ) -> int:
        # live_child_id is a generated column (child_id while active/paused,
        # NULL otherwise) with a unique index, so overlaps fail at the store.
        with conflict_on_duplicate("Child already has an active or paused enrollment"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO enrollments(
                        organization_id, child_id, enrollment_number, enrollment_date, start_date,
                        end_date, status, rate_schedule_id, custom_hourly_rate, custom_half_day_rate,
                        custom_full_day_rate, custom_monthly_rate, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(organization_id),
                        int(child_id),
                        enrollment_number,
                        enrollment_date,
                        start_date,
                        end_date,
                        EnrollmentStatus.ACTIVE.value,
                        rate_schedule_id,
                        custom_rates.hourly_rate,
                        custom_rates.half_day_rate,
                        custom_rates.full_day_rate,
                        custom_rates.monthly_rate,
                        notes,
                    ),
                )
                return int(cur.lastrowid)

    def transition(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        from_statuses: Iterable[EnrollmentStatus],
        to_status: EnrollmentStatus,
        end_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> bool:
        statuses = [s.value for s in from_statuses]
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE enrollments
                SET status=%s,
                    end_date=COALESCE(%s, end_date),
                    notes=COALESCE(%s, notes)
                WHERE organization_id=%s AND enrollment_id=%s AND status IN ({placeholders})
                """,
                (to_status.value, end_date, notes, int(organization_id), int(enrollment_id), *statuses),
            )
            return cur.rowcount > 0

    def update_rates(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        rate_schedule_id: Optional[int],
        custom_rates: CustomRates,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE enrollments
                SET rate_schedule_id=%s, custom_hourly_rate=%s, custom_half_day_rate=%s,
                    custom_full_day_rate=%s, custom_monthly_rate=%s
                WHERE organization_id=%s AND enrollment_id=%s
                """,
                (
                    rate_schedule_id,
                    custom_rates.hourly_rate,
                    custom_rates.half_day_rate,
                    custom_rates.full_day_rate,
                    custom_rates.monthly_rate,
                    int(organization_id),
                    int(enrollment_id),
                ),
            )
            return cur.rowcount > 0

    def list_active_ending_between(self, *, organization_id: int, after: date, until: date) -> Sequence[Enrollment]:
        return self._select(
            "organization_id=%s AND status=%s AND end_date > %s AND end_date <= %s",
            (int(organization_id), EnrollmentStatus.ACTIVE.value, after, until),
            order="end_date ASC, enrollment_id ASC",
        )

    def list_active_ended_by(self, *, organization_id: int, day: date) -> Sequence[Enrollment]:
        return self._select(
            "organization_id=%s AND status=%s AND end_date <= %s",
            (int(organization_id), EnrollmentStatus.ACTIVE.value, day),
            order="end_date ASC, enrollment_id ASC",
        )
