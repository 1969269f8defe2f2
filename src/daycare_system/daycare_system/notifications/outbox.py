from __future__ import annotations

from typing import Protocol, Sequence

from .model import NotificationEvent


class NotificationOutbox(Protocol):
    def publish(self, event: NotificationEvent) -> bool:
        """Store an event. Returns False when its dedup_key was already stored."""

        raise NotImplementedError

    def list_recent(self, *, organization_id: int, limit: int = 50) -> Sequence[NotificationEvent]:
        raise NotImplementedError
