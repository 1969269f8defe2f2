from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .repository import CodeSequenceRepository


class MySQLCodeSequenceRepository(CodeSequenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def next_value(self, *, organization_id: int, prefix: str, year: int) -> int:
        # LAST_INSERT_ID(expr) makes the incremented value readable on this
        # connection without a second round-trip race.
        with db_cursor(self._conn_factory, dictionary=False) as (_, cur):
            cur.execute(
                """
                INSERT INTO code_sequences(organization_id, prefix, seq_year, last_value)
                VALUES(%s,%s,%s,LAST_INSERT_ID(1))
                ON DUPLICATE KEY UPDATE last_value = LAST_INSERT_ID(last_value + 1)
                """,
                (int(organization_id), prefix, int(year)),
            )
            cur.execute("SELECT LAST_INSERT_ID()")
            (value,) = cur.fetchone()
            return int(value)
