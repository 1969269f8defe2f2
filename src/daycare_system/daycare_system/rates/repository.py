from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import RateSchedule


class RateScheduleRepository(Protocol):
    def get_by_id(self, *, organization_id: int, schedule_id: int) -> Optional[RateSchedule]:
        raise NotImplementedError

    def get_active(self, *, organization_id: int) -> Optional[RateSchedule]:
        raise NotImplementedError

    def list_all(self, *, organization_id: int) -> Sequence[RateSchedule]:
        raise NotImplementedError

    def create(self, schedule: RateSchedule) -> int:
        raise NotImplementedError

    def update(self, schedule: RateSchedule) -> bool:
        raise NotImplementedError

    def set_exclusive_active(self, *, organization_id: int, schedule_id: int) -> bool:
        """Activate one schedule and deactivate every other one in a single step.

        Returns False when the schedule does not belong to the organization.
        """

        raise NotImplementedError
