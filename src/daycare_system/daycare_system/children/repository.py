from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Child, NewChild


class ChildRepository(Protocol):
    def get_by_id(self, *, organization_id: int, child_id: int) -> Optional[Child]:
        """Returns tombstoned children too; callers decide whether they count."""

        raise NotImplementedError

    def create(self, *, organization_id: int, child_code: str, data: NewChild) -> int:
        raise NotImplementedError

    def tombstone(self, *, organization_id: int, child_id: int, at: datetime) -> bool:
        raise NotImplementedError

    def search(self, *, organization_id: int, query: str, limit: int) -> Sequence[Child]:
        raise NotImplementedError

    def list_active(self, *, organization_id: int) -> Sequence[Child]:
        raise NotImplementedError
