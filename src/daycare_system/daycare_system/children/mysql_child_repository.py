from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ChildLifecycle
from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone
from .model import Child, NewChild
from .repository import ChildRepository

_COLUMNS = """
    child_id, organization_id, child_code, child_name, guardian_name, guardian_phone,
    guardian_email, date_of_birth, allergies, medical_conditions, special_needs,
    lifecycle, tombstoned_at
"""


def _row_to_child(r: dict) -> Child:
    return Child(
        child_id=int(r["child_id"]),
        organization_id=int(r["organization_id"]),
        child_code=r["child_code"],
        child_name=r["child_name"],
        guardian_name=r["guardian_name"],
        guardian_phone=r["guardian_phone"],
        guardian_email=r.get("guardian_email"),
        date_of_birth=r.get("date_of_birth"),
        allergies=r.get("allergies"),
        medical_conditions=r.get("medical_conditions"),
        special_needs=r.get("special_needs"),
        lifecycle=ChildLifecycle(r["lifecycle"]),
        tombstoned_at=r.get("tombstoned_at"),
    )


class MySQLChildRepository(ChildRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, organization_id: int, child_id: int) -> Optional[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM children WHERE organization_id=%s AND child_id=%s",
                (int(organization_id), int(child_id)),
            )
            r = fetchone(cur)
            return _row_to_child(r) if r else None

    def create(self, *, organization_id: int, child_code: str, data: NewChild) -> int:
        with conflict_on_duplicate(f"Child code {child_code} already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO children(
                        organization_id, child_code, child_name, guardian_name, guardian_phone,
                        guardian_email, date_of_birth, allergies, medical_conditions, special_needs,
                        lifecycle
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(organization_id),
                        child_code,
                        data.child_name,
                        data.guardian_name,
                        data.guardian_phone,
                        data.guardian_email,
                        data.date_of_birth,
                        data.allergies,
                        data.medical_conditions,
                        data.special_needs,
                        ChildLifecycle.ACTIVE.value,
                    ),
                )
                return int(cur.lastrowid)

    def tombstone(self, *, organization_id: int, child_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE children
                SET lifecycle=%s, tombstoned_at=%s
                WHERE organization_id=%s AND child_id=%s AND lifecycle=%s
                """,
                (ChildLifecycle.TOMBSTONED.value, at, int(organization_id), int(child_id), ChildLifecycle.ACTIVE.value),
            )
            return cur.rowcount > 0

    def search(self, *, organization_id: int, query: str, limit: int) -> Sequence[Child]:
        pattern = f"%{query}%"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM children
                WHERE organization_id=%s AND lifecycle=%s
                  AND (child_name LIKE %s OR guardian_name LIKE %s OR guardian_phone LIKE %s)
                ORDER BY child_name
                LIMIT %s
                """,
                (int(organization_id), ChildLifecycle.ACTIVE.value, pattern, pattern, pattern, int(limit)),
            )
            return [_row_to_child(r) for r in fetchall(cur)]

    def list_active(self, *, organization_id: int) -> Sequence[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM children WHERE organization_id=%s AND lifecycle=%s ORDER BY child_name",
                (int(organization_id), ChildLifecycle.ACTIVE.value),
            )
            return [_row_to_child(r) for r in fetchall(cur)]
