from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import NotificationPriority, NotificationType


def dedup_key(notification_type: NotificationType, enrollment_id: int, sweep_date: date) -> str:
    return f"{notification_type.value}:{int(enrollment_id)}:{sweep_date.isoformat()}"


@dataclass(frozen=True)
class NotificationEvent:
    """Outbound notification. Delivery is handled outside this package."""

    organization_id: int
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    target_entity_id: int
    dedup_key: str
    created_at: Optional[datetime] = None
