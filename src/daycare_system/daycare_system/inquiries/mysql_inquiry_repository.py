from __future__ import annotations

from typing import Optional

from ..core.enums import InquiryStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Inquiry
from .repository import InquiryRepository


class MySQLInquiryRepository(InquiryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, organization_id: int, inquiry_id: int) -> Optional[Inquiry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT inquiry_id, organization_id, child_name, guardian_name, guardian_phone,
                       guardian_email, status, converted_child_id, created_at
                FROM inquiries
                WHERE organization_id=%s AND inquiry_id=%s
                """,
                (int(organization_id), int(inquiry_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Inquiry(
                inquiry_id=int(r["inquiry_id"]),
                organization_id=int(r["organization_id"]),
                child_name=r["child_name"],
                guardian_name=r["guardian_name"],
                guardian_phone=r["guardian_phone"],
                guardian_email=r.get("guardian_email"),
                status=InquiryStatus(r["status"]),
                converted_child_id=int(r["converted_child_id"]) if r.get("converted_child_id") is not None else None,
                created_at=r.get("created_at"),
            )

    def count_all(self, *, organization_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM inquiries WHERE organization_id=%s", (int(organization_id),))
            return int(fetchone(cur)["n"])

    def count_by_status(self, *, organization_id: int, status: InquiryStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM inquiries WHERE organization_id=%s AND status=%s",
                (int(organization_id), status.value),
            )
            return int(fetchone(cur)["n"])

    def mark_converted(self, *, organization_id: int, inquiry_id: int, child_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE inquiries
                SET status=%s, converted_child_id=%s
                WHERE organization_id=%s AND inquiry_id=%s AND status NOT IN (%s, %s)
                """,
                (
                    InquiryStatus.ENROLLED.value,
                    int(child_id),
                    int(organization_id),
                    int(inquiry_id),
                    InquiryStatus.ENROLLED.value,
                    InquiryStatus.LOST.value,
                ),
            )
            return cur.rowcount == 1
