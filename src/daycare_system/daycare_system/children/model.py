from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ChildLifecycle


@dataclass(frozen=True)
class Child:
    """Identity record for an enrolled child. Never hard-deleted."""

    child_id: int
    organization_id: int
    child_code: str
    child_name: str
    guardian_name: str
    guardian_phone: str
    guardian_email: Optional[str] = None
    date_of_birth: Optional[date] = None
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    special_needs: Optional[str] = None
    lifecycle: ChildLifecycle = ChildLifecycle.ACTIVE
    tombstoned_at: Optional[datetime] = None

    @property
    def is_tombstoned(self) -> bool:
        return self.lifecycle == ChildLifecycle.TOMBSTONED


@dataclass(frozen=True)
class NewChild:
    child_name: str
    guardian_name: str
    guardian_phone: str
    guardian_email: Optional[str] = None
    date_of_birth: Optional[date] = None
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    special_needs: Optional[str] = None
