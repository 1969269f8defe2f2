from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..core.enums import PaymentStatus, PaymentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone, to_decimal_or_zero
from .model import NewPayment, Payment, compute_total
from .repository import PaymentRepository

_COLUMNS = """
    payment_id, organization_id, payment_number, receipt_number, child_id, enrollment_id,
    attendance_id, payment_type, amount, discount, late_fee, total_amount, payment_date,
    payment_mode, status, collected_by, notes
"""


def _row_to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=int(r["payment_id"]),
        organization_id=int(r["organization_id"]),
        payment_number=r["payment_number"],
        receipt_number=r["receipt_number"],
        child_id=int(r["child_id"]),
        enrollment_id=r.get("enrollment_id"),
        attendance_id=r.get("attendance_id"),
        payment_type=PaymentType(r["payment_type"]),
        amount=to_decimal_or_zero(r["amount"]),
        discount=to_decimal_or_zero(r.get("discount")),
        late_fee=to_decimal_or_zero(r.get("late_fee")),
        total_amount=to_decimal_or_zero(r["total_amount"]),
        payment_date=r["payment_date"],
        payment_mode=r.get("payment_mode"),
        status=PaymentStatus(r["status"]),
        collected_by=r.get("collected_by"),
        notes=r.get("notes"),
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, order: str = "payment_date DESC, payment_id DESC") -> list[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payments WHERE {where} ORDER BY {order}", params)
            return [_row_to_payment(r) for r in fetchall(cur)]

    def get_by_id(self, *, organization_id: int, payment_id: int) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE organization_id=%s AND payment_id=%s",
                (int(organization_id), int(payment_id)),
            )
            r = fetchone(cur)
            return _row_to_payment(r) if r else None

    def get_for_attendance(self, *, organization_id: int, attendance_id: int) -> Optional[Payment]:
        rows = self._select("organization_id=%s AND attendance_id=%s", (int(organization_id), int(attendance_id)))
        return rows[0] if rows else None

    def create(
        self,
        *,
        organization_id: int,
        payment_number: str,
        receipt_number: str,
        payment_date: date,
        collected_by: int,
        data: NewPayment,
    ) -> int:
        with conflict_on_duplicate("Payment already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payments(
                        organization_id, payment_number, receipt_number, child_id, enrollment_id,
                        attendance_id, payment_type, amount, discount, late_fee, total_amount,
                        payment_date, payment_mode, status, collected_by, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(organization_id),
                        payment_number,
                        receipt_number,
                        int(data.child_id),
                        data.enrollment_id,
                        data.attendance_id,
                        data.payment_type.value,
                        data.amount,
                        data.discount,
                        data.late_fee,
                        data.total_amount,
                        payment_date,
                        data.payment_mode,
                        data.status.value,
                        collected_by,
                        data.notes,
                    ),
                )
                return int(cur.lastrowid)

    def update_amounts(
        self,
        *,
        organization_id: int,
        payment_id: int,
        amount: Decimal,
        discount: Decimal,
        late_fee: Decimal,
        notes: Optional[str],
        only_status: Optional[PaymentStatus] = None,
    ) -> bool:
        clauses = ["organization_id=%s", "payment_id=%s"]
        params: list[object] = [int(organization_id), int(payment_id)]
        if only_status is not None:
            clauses.append("status=%s")
            params.append(only_status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE payments
                SET amount=%s, discount=%s, late_fee=%s, total_amount=%s, notes=COALESCE(%s, notes)
                WHERE {" AND ".join(clauses)}
                """,
                (amount, discount, late_fee, compute_total(amount, discount, late_fee), notes, *params),
            )
            return cur.rowcount > 0

    def set_status(
        self,
        *,
        organization_id: int,
        payment_id: int,
        from_statuses: Iterable[PaymentStatus],
        to_status: PaymentStatus,
    ) -> bool:
        statuses = [s.value for s in from_statuses]
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE payments SET status=%s
                WHERE organization_id=%s AND payment_id=%s AND status IN ({placeholders})
                """,
                (to_status.value, int(organization_id), int(payment_id), *statuses),
            )
            return cur.rowcount > 0

    def list_for_child(self, *, organization_id: int, child_id: int) -> Sequence[Payment]:
        return self._select("organization_id=%s AND child_id=%s", (int(organization_id), int(child_id)))

    def list_between(self, *, organization_id: int, start_date: date, end_date: date) -> Sequence[Payment]:
        return self._select(
            "organization_id=%s AND payment_date BETWEEN %s AND %s",
            (int(organization_id), start_date, end_date),
        )

    def list_by_status(self, *, organization_id: int, status: PaymentStatus) -> Sequence[Payment]:
        return self._select(
            "organization_id=%s AND status=%s",
            (int(organization_id), status.value),
            order="payment_date ASC, payment_id ASC",
        )
