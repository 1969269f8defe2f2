from __future__ import annotations

from typing import Sequence

from ..core.enums import NotificationPriority, NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import NotificationEvent
from .outbox import NotificationOutbox


class MySQLNotificationOutbox(NotificationOutbox):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def publish(self, event: NotificationEvent) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO notifications
                    (organization_id, notification_type, title, message, priority, target_entity_id, dedup_key)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(event.organization_id),
                    event.type.value,
                    event.title,
                    event.message,
                    event.priority.value,
                    int(event.target_entity_id),
                    event.dedup_key,
                ),
            )
            return cur.rowcount == 1

    def list_recent(self, *, organization_id: int, limit: int = 50) -> Sequence[NotificationEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT organization_id, notification_type, title, message, priority,
                       target_entity_id, dedup_key, created_at
                FROM notifications
                WHERE organization_id=%s
                ORDER BY notification_id DESC
                LIMIT %s
                """,
                (int(organization_id), int(limit)),
            )
            return [
                NotificationEvent(
                    organization_id=int(r["organization_id"]),
                    type=NotificationType(r["notification_type"]),
                    title=r["title"],
                    message=r["message"],
                    priority=NotificationPriority(r["priority"]),
                    target_entity_id=int(r["target_entity_id"]),
                    dedup_key=r["dedup_key"],
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
