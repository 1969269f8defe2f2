from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import BillingPolicy
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal, to_decimal_or_zero
from .model import RateSchedule
from .repository import RateScheduleRepository

_COLUMNS = """
    schedule_id, organization_id, name, hourly_rate, min_chargeable_minutes,
    half_day_rate, half_day_hours, full_day_rate, full_day_hours,
    monthly_unlimited_rate, grace_period_minutes, late_pickup_rate_per_hour,
    registration_fee, security_deposit, billing_policy, is_active,
    effective_from, effective_until
"""


def _row_to_schedule(r: dict) -> RateSchedule:
    return RateSchedule(
        schedule_id=int(r["schedule_id"]),
        organization_id=int(r["organization_id"]),
        name=r["name"],
        hourly_rate=to_decimal_or_zero(r.get("hourly_rate")),
        min_chargeable_minutes=int(r.get("min_chargeable_minutes") or 0),
        half_day_rate=to_decimal_or_zero(r.get("half_day_rate")),
        half_day_hours=int(r["half_day_hours"]),
        full_day_rate=to_decimal_or_zero(r.get("full_day_rate")),
        full_day_hours=int(r["full_day_hours"]),
        monthly_unlimited_rate=to_decimal(r.get("monthly_unlimited_rate")),
        grace_period_minutes=int(r.get("grace_period_minutes") or 0),
        late_pickup_rate_per_hour=to_decimal(r.get("late_pickup_rate_per_hour")),
        registration_fee=to_decimal(r.get("registration_fee")),
        security_deposit=to_decimal(r.get("security_deposit")),
        billing_policy=BillingPolicy(r["billing_policy"]),
        is_active=bool(r["is_active"]),
        effective_from=r.get("effective_from"),
        effective_until=r.get("effective_until"),
    )


def _params(s: RateSchedule) -> tuple:
    return (
        s.name,
        s.hourly_rate,
        s.min_chargeable_minutes,
        s.half_day_rate,
        s.half_day_hours,
        s.full_day_rate,
        s.full_day_hours,
        s.monthly_unlimited_rate,
        s.grace_period_minutes,
        s.late_pickup_rate_per_hour,
        s.registration_fee,
        s.security_deposit,
        s.billing_policy.value,
        s.effective_from,
        s.effective_until,
    )


class MySQLRateScheduleRepository(RateScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, organization_id: int, schedule_id: int) -> Optional[RateSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM rate_schedules WHERE organization_id=%s AND schedule_id=%s",
                (int(organization_id), int(schedule_id)),
            )
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def get_active(self, *, organization_id: int) -> Optional[RateSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM rate_schedules WHERE organization_id=%s AND is_active=1 LIMIT 1",
                (int(organization_id),),
            )
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def list_all(self, *, organization_id: int) -> Sequence[RateSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM rate_schedules WHERE organization_id=%s ORDER BY schedule_id DESC",
                (int(organization_id),),
            )
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def create(self, schedule: RateSchedule) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO rate_schedules(
                    name, hourly_rate, min_chargeable_minutes, half_day_rate, half_day_hours,
                    full_day_rate, full_day_hours, monthly_unlimited_rate, grace_period_minutes,
                    late_pickup_rate_per_hour, registration_fee, security_deposit, billing_policy,
                    effective_from, effective_until, organization_id, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                _params(schedule) + (int(schedule.organization_id),),
            )
            return int(cur.lastrowid)

    def update(self, schedule: RateSchedule) -> bool:
        # is_active is only ever written by set_exclusive_active.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE rate_schedules
                SET name=%s, hourly_rate=%s, min_chargeable_minutes=%s, half_day_rate=%s,
                    half_day_hours=%s, full_day_rate=%s, full_day_hours=%s,
                    monthly_unlimited_rate=%s, grace_period_minutes=%s,
                    late_pickup_rate_per_hour=%s, registration_fee=%s, security_deposit=%s,
                    billing_policy=%s, effective_from=%s, effective_until=%s
                WHERE organization_id=%s AND schedule_id=%s
                """,
                _params(schedule) + (int(schedule.organization_id), int(schedule.schedule_id)),
            )
            return cur.rowcount > 0

    def set_exclusive_active(self, *, organization_id: int, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row locks serialize concurrent activations for the organization.
            cur.execute(
                "SELECT schedule_id FROM rate_schedules WHERE organization_id=%s FOR UPDATE",
                (int(organization_id),),
            )
            ids = {int(r["schedule_id"]) for r in fetchall(cur)}
            if int(schedule_id) not in ids:
                return False

            cur.execute(
                """
                UPDATE rate_schedules
                SET is_active = (schedule_id = %s)
                WHERE organization_id=%s
                """,
                (int(schedule_id), int(organization_id)),
            )
            return True
