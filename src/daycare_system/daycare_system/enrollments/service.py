from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..children.repository import ChildRepository
from ..codes.generator import CodeGenerator
from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import SYSTEM_ACTOR_ID
from ..core.enums import EnrollmentStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..rates.repository import RateScheduleRepository
from ..reports.cache import AggregateCache
from .model import CustomRates, Enrollment
from .repository import EnrollmentRepository

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.ACTIVE: frozenset({EnrollmentStatus.PAUSED, EnrollmentStatus.CANCELLED, EnrollmentStatus.EXPIRED}),
    EnrollmentStatus.PAUSED: frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.CANCELLED}),
    EnrollmentStatus.CANCELLED: frozenset(),
    EnrollmentStatus.EXPIRED: frozenset(),
}


class OpenSessionCloser(Protocol):
    def force_close_open_session(
        self, *, organization_id: int, enrollment_id: int, at: datetime, reason: str
    ) -> bool:
        raise NotImplementedError


class RegistrationBiller(Protocol):
    def record_registration_fees(self, *, organization_id: int, enrollment: Enrollment, actor: int) -> None:
        raise NotImplementedError


class EnrollmentLifecycle:
    """State machine for enrollments.

    active -> paused -> active, active|paused -> cancelled, active -> expired.
    Cancelled and expired are terminal; a child re-enrolls with a new Enrollment.
    When an enrollment leaves `active` its open attendance session is closed
    with the system actor.
    """

    def __init__(
        self,
        enrollments: EnrollmentRepository,
        children: ChildRepository,
        schedules: RateScheduleRepository,
        codes: CodeGenerator,
        *,
        locks: KeyedLock | None = None,
        session_closer: OpenSessionCloser | None = None,
        registration_biller: RegistrationBiller | None = None,
        cache: AggregateCache | None = None,
    ):
        self._enrollments = enrollments
        self._children = children
        self._schedules = schedules
        self._codes = codes
        self._locks = locks or KeyedLock()
        self._session_closer = session_closer
        self._registration_biller = registration_biller
        self._cache = cache

    def _invalidate(self, organization_id: int) -> None:
        if self._cache:
            self._cache.invalidate(int(organization_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_enrollment(self, *, organization_id: int, enrollment_id: int) -> Enrollment:
        enrollment = self._enrollments.get_by_id(organization_id=int(organization_id), enrollment_id=int(enrollment_id))
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        return enrollment

    def list_for_child(self, *, organization_id: int, child_id: int) -> Sequence[Enrollment]:
        return self._enrollments.list_for_child(organization_id=int(organization_id), child_id=int(child_id))

    def list_enrollments(self, *, organization_id: int, include_inactive: bool = False) -> Sequence[Enrollment]:
        return self._enrollments.list_all(organization_id=int(organization_id), include_inactive=include_inactive)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _check_rate_source(self, *, organization_id: int, rate_schedule_id: Optional[int], custom_rates: CustomRates) -> None:
        if custom_rates.is_set and not custom_rates.has_all_tiers:
            raise ValidationError("Custom rates need hourly, half-day and full-day rates together")
        for value in (custom_rates.hourly_rate, custom_rates.half_day_rate, custom_rates.full_day_rate, custom_rates.monthly_rate):
            if value is not None and value < 0:
                raise ValidationError("Custom rates must not be negative")
        if rate_schedule_id is not None:
            if not self._schedules.get_by_id(organization_id=organization_id, schedule_id=int(rate_schedule_id)):
                raise NotFoundError("Rate schedule not found")

    def create_enrollment(
        self,
        *,
        organization_id: int,
        child_id: int,
        start_date: date,
        end_date: Optional[date] = None,
        rate_schedule_id: Optional[int] = None,
        custom_rates: Optional[CustomRates] = None,
        notes: Optional[str] = None,
        actor: int = SYSTEM_ACTOR_ID,
        collect_registration: bool = False,
    ) -> Enrollment:
        organization_id = require_positive_id(organization_id, "organization_id")
        child_id = require_positive_id(child_id, "child_id")
        custom_rates = custom_rates or CustomRates()
        today = now_local().date()

        if start_date is None:
            raise ValidationError("start_date is required")
        if end_date is not None and end_date < start_date:
            raise ValidationError("end_date must be on or after start_date")
        if end_date is not None and end_date <= today:
            raise ValidationError("end_date has already passed")

        self._check_rate_source(organization_id=organization_id, rate_schedule_id=rate_schedule_id, custom_rates=custom_rates)

        with self._locks.hold(("child", organization_id, child_id)):
            child = self._children.get_by_id(organization_id=organization_id, child_id=child_id)
            if not child or child.is_tombstoned:
                raise NotFoundError("Child not found")

            live = self._enrollments.get_live_for_child(organization_id=organization_id, child_id=child_id)
            if live:
                raise ConflictError(
                    f"Child already has a {live.status.value} enrollment ({live.enrollment_number})"
                )

            enrollment_number = self._codes.enrollment_number(organization_id=organization_id)
            enrollment_id = self._enrollments.create(
                organization_id=organization_id,
                child_id=child_id,
                enrollment_number=enrollment_number,
                enrollment_date=today,
                start_date=start_date,
                end_date=end_date,
                rate_schedule_id=int(rate_schedule_id) if rate_schedule_id is not None else None,
                custom_rates=custom_rates,
                notes=(notes or "").strip() or None,
            )
        self._invalidate(organization_id)

        enrollment = self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
        logger.info("Created enrollment %s for child %s", enrollment_number, child_id)

        if collect_registration and self._registration_biller:
            self._registration_biller.record_registration_fees(
                organization_id=organization_id, enrollment=enrollment, actor=actor
            )
        return enrollment

    def update_custom_rates(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        rate_schedule_id: Optional[int],
        custom_rates: CustomRates,
    ) -> Enrollment:
        enrollment = self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
        if enrollment.status.is_terminal:
            raise ConflictError(f"Enrollment is {enrollment.status.value}")
        self._check_rate_source(
            organization_id=int(organization_id), rate_schedule_id=rate_schedule_id, custom_rates=custom_rates
        )
        self._enrollments.update_rates(
            organization_id=int(organization_id),
            enrollment_id=int(enrollment_id),
            rate_schedule_id=int(rate_schedule_id) if rate_schedule_id is not None else None,
            custom_rates=custom_rates,
        )
        self._invalidate(organization_id)
        return self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        to_status: EnrollmentStatus,
        end_date: Optional[date] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Enrollment:
        organization_id = int(organization_id)
        with self._locks.hold(("enrollment", organization_id, int(enrollment_id))):
            enrollment = self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
            if to_status not in ALLOWED_TRANSITIONS[enrollment.status]:
                raise ConflictError(
                    f"Cannot move enrollment from {enrollment.status.value} to {to_status.value}"
                )

            if enrollment.status == EnrollmentStatus.ACTIVE and self._session_closer:
                self._session_closer.force_close_open_session(
                    organization_id=organization_id,
                    enrollment_id=enrollment.enrollment_id,
                    at=now or now_local(),
                    reason=f"Enrollment {to_status.value}",
                )

            ok = self._enrollments.transition(
                organization_id=organization_id,
                enrollment_id=enrollment.enrollment_id,
                from_statuses=[enrollment.status],
                to_status=to_status,
                end_date=end_date,
                notes=notes,
            )
            if not ok:
                raise ConflictError("Enrollment changed concurrently, reload and retry")
        self._invalidate(organization_id)

        logger.info(
            "Enrollment %s: %s -> %s", enrollment.enrollment_number, enrollment.status.value, to_status.value
        )
        return self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)

    def pause(self, *, organization_id: int, enrollment_id: int, reason: str) -> Enrollment:
        reason = require_non_empty(reason, "reason")
        return self._transition(
            organization_id=organization_id,
            enrollment_id=enrollment_id,
            to_status=EnrollmentStatus.PAUSED,
            notes=reason,
        )

    def resume(self, *, organization_id: int, enrollment_id: int) -> Enrollment:
        enrollment = self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
        if enrollment.status == EnrollmentStatus.PAUSED and enrollment.has_ended_by(now_local().date()):
            raise ConflictError("Enrollment end date has passed; create a new enrollment")
        return self._transition(
            organization_id=organization_id,
            enrollment_id=enrollment_id,
            to_status=EnrollmentStatus.ACTIVE,
        )

    def cancel(self, *, organization_id: int, enrollment_id: int, reason: str) -> Enrollment:
        reason = require_non_empty(reason, "reason")
        now = now_local()
        enrollment = self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
        end_date = enrollment.end_date if enrollment.end_date is not None else now.date()
        return self._transition(
            organization_id=organization_id,
            enrollment_id=enrollment_id,
            to_status=EnrollmentStatus.CANCELLED,
            end_date=end_date,
            notes=reason,
            now=now,
        )

    def expire(self, *, organization_id: int, enrollment_id: int, today: Optional[date] = None) -> Enrollment:
        today = today or now_local().date()
        enrollment = self.get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
        if not enrollment.has_ended_by(today):
            raise ConflictError("Enrollment has not reached its end date")
        return self._transition(
            organization_id=organization_id,
            enrollment_id=enrollment_id,
            to_status=EnrollmentStatus.EXPIRED,
        )
