from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import EnrollmentStatus
from .model import CustomRates, Enrollment


class EnrollmentRepository(Protocol):
    def get_by_id(self, *, organization_id: int, enrollment_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def get_live_for_child(self, *, organization_id: int, child_id: int) -> Optional[Enrollment]:
        """The child's active or paused enrollment, if any."""

        raise NotImplementedError

    def list_for_child(self, *, organization_id: int, child_id: int) -> Sequence[Enrollment]:
        raise NotImplementedError

    def list_all(self, *, organization_id: int, include_inactive: bool = False) -> Sequence[Enrollment]:
        raise NotImplementedError

    def create(
        self,
        *,
        organization_id: int,
        child_id: int,
        enrollment_number: str,
        enrollment_date: date,
        start_date: date,
        end_date: Optional[date],
        rate_schedule_id: Optional[int],
        custom_rates: CustomRates,
        notes: Optional[str] = None,
    ) -> int:
        """Must raise ConflictError if the child already has a live enrollment."""

        raise NotImplementedError

    def transition(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        from_statuses: Iterable[EnrollmentStatus],
        to_status: EnrollmentStatus,
        end_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Compare-and-set the status; False when the current status is not in `from_statuses`."""

        raise NotImplementedError

    def update_rates(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        rate_schedule_id: Optional[int],
        custom_rates: CustomRates,
    ) -> bool:
        raise NotImplementedError

    def list_active_ending_between(self, *, organization_id: int, after: date, until: date) -> Sequence[Enrollment]:
        """Active enrollments with after < end_date <= until."""

        raise NotImplementedError

    def list_active_ended_by(self, *, organization_id: int, day: date) -> Sequence[Enrollment]:
        """Active enrollments with end_date <= day."""

        raise NotImplementedError
