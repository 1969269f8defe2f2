from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..billing.calculator.base import BillingCalculator
from ..billing.calculator.tiered_calculator import TieredBillingCalculator
from ..billing.resolver import RateResolver, ResolvedRates
from ..children.repository import ChildRepository
from ..common.datetime_utils import elapsed_minutes, now_local
from ..common.locks import KeyedLock
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import SYSTEM_ACTOR_ID
from ..core.enums import BillingPolicy, EnrollmentStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..enrollments.model import Enrollment
from ..enrollments.repository import EnrollmentRepository
from ..payments.service import PaymentRecorder
from ..rates.model import RateSchedule
from ..reports.cache import AggregateCache
from .model import AttendanceCorrection, AttendanceRecord, SessionCharge
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Check-in / check-out ledger for enrolled children.

    Duration, billing type and charge of a session are only ever derived in
    `_price`, and written together with the check-out time.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        enrollments: EnrollmentRepository,
        resolver: RateResolver,
        *,
        calculator: BillingCalculator | None = None,
        payments: PaymentRecorder | None = None,
        cache: AggregateCache | None = None,
        locks: KeyedLock | None = None,
        children: ChildRepository | None = None,
    ):
        self._attendance = attendance
        self._enrollments = enrollments
        self._resolver = resolver
        self._calculator = calculator or TieredBillingCalculator()
        self._payments = payments
        self._cache = cache
        self._locks = locks or KeyedLock()
        self._children = children

    def _lock(self, organization_id: int, enrollment_id: int):
        return self._locks.hold(("enrollment", int(organization_id), int(enrollment_id)))

    def _get_record(self, *, organization_id: int, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(organization_id=int(organization_id), attendance_id=int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _get_enrollment(self, *, organization_id: int, enrollment_id: int) -> Enrollment:
        enrollment = self._enrollments.get_by_id(organization_id=int(organization_id), enrollment_id=int(enrollment_id))
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        return enrollment

    def _price(self, *, check_in: datetime, check_out: datetime, schedule: RateSchedule) -> SessionCharge:
        if check_out <= check_in:
            raise ValidationError("Check-out time must be after check-in time")
        # Sub-minute sessions count as one minute.
        minutes = max(elapsed_minutes(check_in, check_out), 1)
        result = self._calculator.calculate_charge(minutes, schedule)
        return SessionCharge(
            duration_minutes=minutes,
            billing_type=result.billing_type,
            calculated_charge=result.amount,
        )

    def _bills_per_session(self, resolved: ResolvedRates) -> bool:
        return self._payments is not None and resolved.policy == BillingPolicy.PAY_PER_SESSION

    def _ensure_billable(self, *, organization_id: int, enrollment: Enrollment, resolved: ResolvedRates) -> None:
        # Runs before the session is written so a refused charge leaves it untouched.
        if self._bills_per_session(resolved):
            self._payments.ensure_billable(organization_id=organization_id, child_id=enrollment.child_id)

    def _after_charge(
        self,
        *,
        organization_id: int,
        enrollment: Enrollment,
        record: AttendanceRecord,
        resolved: ResolvedRates,
        actor: int,
    ) -> None:
        if self._cache:
            self._cache.invalidate(organization_id)
        if self._bills_per_session(resolved):
            self._payments.record_session_charge(
                organization_id=organization_id, enrollment=enrollment, record=record, actor=actor
            )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def check_in(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        actor: int,
        time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        organization_id = require_positive_id(organization_id, "organization_id")
        enrollment_id = require_positive_id(enrollment_id, "enrollment_id")
        at = time or now_local()

        with self._lock(organization_id, enrollment_id):
            enrollment = self._get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
            if enrollment.status != EnrollmentStatus.ACTIVE:
                raise ConflictError(f"Enrollment is {enrollment.status.value}; check-in refused")
            if enrollment.has_ended_by(at.date()):
                raise ConflictError("Enrollment has reached its end date; check-in refused")
            if at.date() < enrollment.start_date:
                raise ConflictError("Enrollment has not started yet")
            if self._children is not None:
                child = self._children.get_by_id(organization_id=organization_id, child_id=enrollment.child_id)
                if not child or child.is_tombstoned:
                    raise NotFoundError("Child not found")

            if self._attendance.get_open_for_enrollment(organization_id=organization_id, enrollment_id=enrollment_id):
                raise ConflictError("Child is already checked in")

            attendance_id = self._attendance.create_checkin(
                organization_id=organization_id,
                enrollment_id=enrollment_id,
                attendance_date=at.date(),
                check_in_time=at,
                checked_in_by=int(actor),
                notes=(notes or "").strip() or None,
            )
            if self._cache:
                self._cache.invalidate(organization_id)

        logger.info("Check-in %s for enrollment %s at %s", attendance_id, enrollment.enrollment_number, at)
        return self._get_record(organization_id=organization_id, attendance_id=attendance_id)

    def check_out(
        self,
        *,
        organization_id: int,
        attendance_id: int,
        actor: int,
        time: Optional[datetime] = None,
    ) -> AttendanceRecord:
        organization_id = require_positive_id(organization_id, "organization_id")
        at = time or now_local()
        record = self._get_record(organization_id=organization_id, attendance_id=attendance_id)

        with self._lock(organization_id, record.enrollment_id):
            record = self._get_record(organization_id=organization_id, attendance_id=attendance_id)
            if not record.is_open:
                raise ConflictError("Child is already checked out")

            enrollment = self._get_enrollment(organization_id=organization_id, enrollment_id=record.enrollment_id)
            if enrollment.status != EnrollmentStatus.ACTIVE:
                raise ConflictError(f"Enrollment is {enrollment.status.value}; check-out refused")
            if at <= record.check_in_time:
                raise ValidationError("Check-out time must be after check-in time")

            resolved = self._resolver.resolve(enrollment)
            charge = self._price(check_in=record.check_in_time, check_out=at, schedule=resolved.schedule)
            self._ensure_billable(organization_id=organization_id, enrollment=enrollment, resolved=resolved)
            if not self._attendance.write_checkout(
                organization_id=organization_id,
                attendance_id=record.attendance_id,
                check_out_time=at,
                checked_out_by=int(actor),
                charge=charge,
            ):
                raise ConflictError("Child is already checked out")

            closed = self._get_record(organization_id=organization_id, attendance_id=record.attendance_id)
            self._after_charge(
                organization_id=organization_id, enrollment=enrollment, record=closed, resolved=resolved, actor=actor
            )

        logger.info(
            "Check-out %s for enrollment %s: %s min, %s, %s",
            closed.attendance_id,
            enrollment.enrollment_number,
            charge.duration_minutes,
            charge.billing_type.value,
            charge.calculated_charge,
        )
        return closed

    def manual_correct(
        self,
        *,
        organization_id: int,
        attendance_id: int,
        correction: AttendanceCorrection,
        actor: int,
        reason: str,
    ) -> AttendanceRecord:
        """Administrative edit. Changing either time re-prices the session from scratch."""

        organization_id = require_positive_id(organization_id, "organization_id")
        reason = require_non_empty(reason, "reason")
        if correction.is_empty:
            raise ValidationError("Nothing to correct")

        record = self._get_record(organization_id=organization_id, attendance_id=attendance_id)
        with self._lock(organization_id, record.enrollment_id):
            record = self._get_record(organization_id=organization_id, attendance_id=attendance_id)
            check_in = correction.check_in_time or record.check_in_time
            check_out = correction.check_out_time or record.check_out_time
            if check_out is not None and check_out <= check_in:
                raise ValidationError("Check-out time must be after check-in time")

            enrollment = None
            resolved = None
            if check_out is None:
                charge = None
            elif correction.changes_times:
                enrollment = self._get_enrollment(organization_id=organization_id, enrollment_id=record.enrollment_id)
                resolved = self._resolver.resolve(enrollment)
                charge = self._price(check_in=check_in, check_out=check_out, schedule=resolved.schedule)
                self._ensure_billable(organization_id=organization_id, enrollment=enrollment, resolved=resolved)
            else:
                charge = SessionCharge(
                    duration_minutes=record.duration_minutes,
                    billing_type=record.billing_type,
                    calculated_charge=record.calculated_charge,
                )

            notes = correction.notes if correction.notes is not None else record.notes
            self._attendance.write_correction(
                organization_id=organization_id,
                attendance_id=record.attendance_id,
                attendance_date=check_in.date(),
                check_in_time=check_in,
                check_out_time=check_out,
                charge=charge,
                notes=notes,
                edited_by=int(actor),
                edit_reason=reason,
            )
            updated = self._get_record(organization_id=organization_id, attendance_id=record.attendance_id)

            if resolved is not None:
                self._after_charge(
                    organization_id=organization_id, enrollment=enrollment, record=updated, resolved=resolved, actor=actor
                )

        logger.info("Attendance %s corrected by %s: %s", record.attendance_id, actor, reason)
        return updated

    def force_close_open_session(self, *, organization_id: int, enrollment_id: int, at: datetime, reason: str) -> bool:
        """Close a dangling session with the system actor. Returns False when nothing was open."""

        with self._lock(organization_id, enrollment_id):
            record = self._attendance.get_open_for_enrollment(
                organization_id=int(organization_id), enrollment_id=int(enrollment_id)
            )
            if not record:
                return False

            enrollment = self._get_enrollment(organization_id=organization_id, enrollment_id=enrollment_id)
            check_out = max(at, record.check_in_time + timedelta(minutes=1))
            resolved = self._resolver.resolve(enrollment)
            charge = self._price(check_in=record.check_in_time, check_out=check_out, schedule=resolved.schedule)
            self._ensure_billable(organization_id=int(organization_id), enrollment=enrollment, resolved=resolved)
            if not self._attendance.write_checkout(
                organization_id=int(organization_id),
                attendance_id=record.attendance_id,
                check_out_time=check_out,
                checked_out_by=SYSTEM_ACTOR_ID,
                charge=charge,
            ):
                return False

            closed = self._get_record(organization_id=organization_id, attendance_id=record.attendance_id)
            self._after_charge(
                organization_id=int(organization_id),
                enrollment=enrollment,
                record=closed,
                resolved=resolved,
                actor=SYSTEM_ACTOR_ID,
            )

        logger.warning(
            "Force-closed attendance %s for enrollment %s (%s)", record.attendance_id, enrollment.enrollment_number, reason
        )
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_record(self, *, organization_id: int, attendance_id: int) -> AttendanceRecord:
        return self._get_record(organization_id=organization_id, attendance_id=attendance_id)

    def today_attendance(self, *, organization_id: int, day: Optional[date] = None) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_date(organization_id=int(organization_id), day=day or now_local().date())

    def currently_checked_in(self, *, organization_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_open(organization_id=int(organization_id))

    def attendance_history(
        self,
        *,
        organization_id: int,
        enrollment_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must be on or after start_date")
        return self._attendance.list_history(
            organization_id=int(organization_id),
            enrollment_id=int(enrollment_id),
            start_date=start_date,
            end_date=end_date,
        )
