import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.daycare_system.daycare_system.attendance.model import AttendanceCorrection
from src.daycare_system.daycare_system.core.constants import SYSTEM_ACTOR_ID
from src.daycare_system.daycare_system.core.enums import (
    BillingType,
    EnrollmentStatus,
    PaymentStatus,
    PaymentType,
)
from src.daycare_system.daycare_system.core.exceptions import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.daycare_system.daycare_system.enrollments.model import CustomRates
from tests.fakes import ORG, OTHER_ORG, World, standard_schedule

STAFF = 7
DAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute)


def _session(world: World, enrollment_id: int, start: datetime, end: datetime):
    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment_id, actor=STAFF, time=start)
    return world.ledger.check_out(organization_id=ORG, attendance_id=record.attendance_id, actor=STAFF, time=end)


def test_check_in_opens_record_without_charge():
    world = World()
    enrollment = world.enroll()

    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))

    assert record.is_open
    assert record.attendance_date == DAY
    assert record.checked_in_by == STAFF
    assert record.duration_minutes is None
    assert record.billing_type is None
    assert record.calculated_charge is None


@pytest.mark.parametrize(
    "end, billing_type, charge",
    [
        (at(9, 50), BillingType.HOURLY, Decimal("100.00")),
        (at(13, 30), BillingType.HALF_DAY, Decimal("350.00")),
        (at(17, 0), BillingType.FULL_DAY, Decimal("600.00")),
    ],
)
def test_check_out_prices_the_session(end, billing_type, charge):
    world = World()
    enrollment = world.enroll()
    start = at(8) if billing_type == BillingType.FULL_DAY else at(9)

    closed = _session(world, enrollment.enrollment_id, start, end)

    assert not closed.is_open
    assert closed.checked_out_by == STAFF
    assert closed.duration_minutes == int((end - start).total_seconds() // 60)
    assert closed.billing_type == billing_type
    assert closed.calculated_charge == charge


def test_second_check_in_without_check_out_conflicts():
    world = World()
    enrollment = world.enroll()
    world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))

    with pytest.raises(ConflictError):
        world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9, 5))


def test_concurrent_check_ins_only_one_succeeds():
    world = World()
    enrollment = world.enroll()
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    guard = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            world.ledger.check_in(
                organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9)
            )
            result = "ok"
        except ConflictError:
            result = "conflict"
        with guard:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 7
    assert len(world.attendance.list_open(organization_id=ORG)) == 1


def test_check_in_requires_existing_enrollment_in_same_organization():
    world = World()
    enrollment = world.enroll()

    with pytest.raises(NotFoundError):
        world.ledger.check_in(organization_id=ORG, enrollment_id=999, actor=STAFF, time=at(9))
    with pytest.raises(NotFoundError):
        world.ledger.check_in(
            organization_id=OTHER_ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9)
        )


@pytest.mark.parametrize("status", [EnrollmentStatus.PAUSED, EnrollmentStatus.CANCELLED, EnrollmentStatus.EXPIRED])
def test_check_in_refused_for_non_active_enrollment(status):
    world = World()
    enrollment = world.enroll(status=status)

    with pytest.raises(ConflictError):
        world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))


def test_check_in_refused_once_end_date_is_reached():
    world = World()
    enrollment = world.enroll(end_date=DAY)

    with pytest.raises(ConflictError):
        world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))


def test_check_out_twice_conflicts():
    world = World()
    enrollment = world.enroll()
    closed = _session(world, enrollment.enrollment_id, at(9), at(10))

    with pytest.raises(ConflictError):
        world.ledger.check_out(organization_id=ORG, attendance_id=closed.attendance_id, actor=STAFF, time=at(11))


def test_check_out_not_after_check_in_is_invalid():
    world = World()
    enrollment = world.enroll()
    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))

    with pytest.raises(ValidationError):
        world.ledger.check_out(organization_id=ORG, attendance_id=record.attendance_id, actor=STAFF, time=at(9))
    with pytest.raises(ValidationError):
        world.ledger.check_out(organization_id=ORG, attendance_id=record.attendance_id, actor=STAFF, time=at(8))
    assert world.attendance.get_by_id(organization_id=ORG, attendance_id=record.attendance_id).is_open


def test_check_out_unknown_record_is_not_found():
    with pytest.raises(NotFoundError):
        World().ledger.check_out(organization_id=ORG, attendance_id=42, actor=STAFF, time=at(9))


def test_check_out_without_rate_source_fails_and_keeps_session_open():
    world = World(standard_schedule(1, is_active=False))
    enrollment = world.enroll()
    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))

    with pytest.raises(ConfigurationError):
        world.ledger.check_out(organization_id=ORG, attendance_id=record.attendance_id, actor=STAFF, time=at(10))

    stored = world.attendance.get_by_id(organization_id=ORG, attendance_id=record.attendance_id)
    assert stored.is_open
    assert stored.calculated_charge is None
    assert world.payments.rows == {}


def test_check_in_refused_for_tombstoned_child():
    world = World()
    enrollment = world.enroll()
    world.children.tombstone(organization_id=ORG, child_id=enrollment.child_id, at=at(8))

    with pytest.raises(NotFoundError):
        world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))
    assert world.attendance.rows == {}


def test_unbillable_child_keeps_session_open_until_check_out_can_be_charged():
    world = World()
    enrollment = world.enroll()
    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))
    child = world.children.rows[enrollment.child_id]
    world.children.tombstone(organization_id=ORG, child_id=enrollment.child_id, at=at(9, 30))

    with pytest.raises(NotFoundError):
        world.ledger.check_out(organization_id=ORG, attendance_id=record.attendance_id, actor=STAFF, time=at(10))

    stored = world.attendance.get_by_id(organization_id=ORG, attendance_id=record.attendance_id)
    assert stored.is_open
    assert stored.calculated_charge is None
    assert world.payments.rows == {}

    world.children.rows[child.child_id] = child
    closed = world.ledger.check_out(organization_id=ORG, attendance_id=record.attendance_id, actor=STAFF, time=at(10))
    assert not closed.is_open
    assert world.payments.get_for_attendance(organization_id=ORG, attendance_id=closed.attendance_id) is not None


def test_pay_per_session_check_out_creates_pending_payment():
    world = World()
    enrollment = world.enroll()

    closed = _session(world, enrollment.enrollment_id, at(9), at(13, 30))

    payment = world.payments.get_for_attendance(organization_id=ORG, attendance_id=closed.attendance_id)
    assert payment is not None
    assert payment.status == PaymentStatus.PENDING
    assert payment.payment_type == PaymentType.SESSION
    assert payment.total_amount == Decimal("350.00")
    assert payment.child_id == enrollment.child_id
    assert payment.payment_number.startswith("PAY")
    assert payment.receipt_number.startswith("RCP")


def test_subscription_check_out_creates_no_payment():
    world = World()
    enrollment = world.enroll(
        custom_rates=CustomRates(
            hourly_rate=Decimal("90.00"),
            half_day_rate=Decimal("300.00"),
            full_day_rate=Decimal("500.00"),
            monthly_rate=Decimal("9000.00"),
        )
    )

    closed = _session(world, enrollment.enrollment_id, at(9), at(12))

    assert closed.calculated_charge == Decimal("270.00")
    assert world.payments.rows == {}


def test_manual_correction_recomputes_all_derived_fields():
    world = World()
    enrollment = world.enroll()
    closed = _session(world, enrollment.enrollment_id, at(9), at(9, 50))

    corrected = world.ledger.manual_correct(
        organization_id=ORG,
        attendance_id=closed.attendance_id,
        correction=AttendanceCorrection(check_out_time=at(17, 30)),
        actor=99,
        reason="Parent picked up late, desk forgot to scan",
    )

    assert corrected.duration_minutes == 510
    assert corrected.billing_type == BillingType.FULL_DAY
    assert corrected.calculated_charge == Decimal("600.00")
    assert corrected.is_manual_edit
    assert corrected.edited_by == 99
    assert corrected.edit_reason == "Parent picked up late, desk forgot to scan"

    payment = world.payments.get_for_attendance(organization_id=ORG, attendance_id=closed.attendance_id)
    assert payment.total_amount == Decimal("600.00")


def test_manual_correction_of_check_in_moves_attendance_date():
    world = World()
    enrollment = world.enroll()
    closed = _session(world, enrollment.enrollment_id, at(9), at(10))

    corrected = world.ledger.manual_correct(
        organization_id=ORG,
        attendance_id=closed.attendance_id,
        correction=AttendanceCorrection(check_in_time=datetime(2026, 3, 1, 23, 0)),
        actor=99,
        reason="Wrong date",
    )

    assert corrected.attendance_date == date(2026, 3, 1)
    assert corrected.billing_type == BillingType.FULL_DAY


def test_manual_correction_leaves_completed_payment_untouched():
    world = World()
    enrollment = world.enroll()
    closed = _session(world, enrollment.enrollment_id, at(9), at(9, 50))
    payment = world.payments.get_for_attendance(organization_id=ORG, attendance_id=closed.attendance_id)
    world.recorder.mark_completed(organization_id=ORG, payment_id=payment.payment_id)

    world.ledger.manual_correct(
        organization_id=ORG,
        attendance_id=closed.attendance_id,
        correction=AttendanceCorrection(check_out_time=at(17)),
        actor=99,
        reason="Late pickup",
    )

    after = world.payments.get_by_id(organization_id=ORG, payment_id=payment.payment_id)
    assert after.status == PaymentStatus.COMPLETED
    assert after.total_amount == Decimal("100.00")


def test_manual_correction_that_closes_open_session_bills_it():
    world = World()
    enrollment = world.enroll()
    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))

    corrected = world.ledger.manual_correct(
        organization_id=ORG,
        attendance_id=record.attendance_id,
        correction=AttendanceCorrection(check_out_time=at(13)),
        actor=99,
        reason="Missed check-out",
    )

    assert corrected.billing_type == BillingType.HALF_DAY
    assert world.payments.get_for_attendance(organization_id=ORG, attendance_id=record.attendance_id) is not None


def test_notes_only_correction_keeps_charge():
    world = World()
    enrollment = world.enroll()
    closed = _session(world, enrollment.enrollment_id, at(9), at(13, 30))

    corrected = world.ledger.manual_correct(
        organization_id=ORG,
        attendance_id=closed.attendance_id,
        correction=AttendanceCorrection(notes="Had a nap"),
        actor=99,
        reason="Add note",
    )

    assert corrected.notes == "Had a nap"
    assert corrected.calculated_charge == Decimal("350.00")
    assert corrected.is_manual_edit


def test_manual_correction_requires_reason_and_changes():
    world = World()
    enrollment = world.enroll()
    closed = _session(world, enrollment.enrollment_id, at(9), at(10))

    with pytest.raises(ValidationError):
        world.ledger.manual_correct(
            organization_id=ORG,
            attendance_id=closed.attendance_id,
            correction=AttendanceCorrection(check_out_time=at(11)),
            actor=99,
            reason="  ",
        )
    with pytest.raises(ValidationError):
        world.ledger.manual_correct(
            organization_id=ORG,
            attendance_id=closed.attendance_id,
            correction=AttendanceCorrection(),
            actor=99,
            reason="nothing",
        )
    with pytest.raises(ValidationError):
        world.ledger.manual_correct(
            organization_id=ORG,
            attendance_id=closed.attendance_id,
            correction=AttendanceCorrection(check_out_time=at(8)),
            actor=99,
            reason="typo",
        )


def test_force_close_uses_system_actor_and_bills_at_least_a_minute():
    world = World()
    enrollment = world.enroll()
    record = world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=at(9))

    closed = world.ledger.force_close_open_session(
        organization_id=ORG, enrollment_id=enrollment.enrollment_id, at=at(8), reason="Enrollment cancelled"
    )

    stored = world.attendance.get_by_id(organization_id=ORG, attendance_id=record.attendance_id)
    assert closed is True
    assert stored.checked_out_by == SYSTEM_ACTOR_ID
    assert stored.check_out_time == at(9, 1)
    assert stored.duration_minutes == 1
    assert stored.calculated_charge == Decimal("100.00")
    assert world.ledger.force_close_open_session(
        organization_id=ORG, enrollment_id=enrollment.enrollment_id, at=at(10), reason="again"
    ) is False


def test_queries_filter_by_day_open_and_range():
    world = World()
    first = world.enroll("Asha")
    second = world.enroll("Ben")
    _session(world, first.enrollment_id, at(9), at(10))
    world.ledger.check_in(organization_id=ORG, enrollment_id=second.enrollment_id, actor=STAFF, time=at(9, 30))

    assert len(world.ledger.today_attendance(organization_id=ORG, day=DAY)) == 2
    assert [r.enrollment_id for r in world.ledger.currently_checked_in(organization_id=ORG)] == [second.enrollment_id]
    history = world.ledger.attendance_history(
        organization_id=ORG, enrollment_id=first.enrollment_id, start_date=DAY, end_date=DAY
    )
    assert len(history) == 1
    with pytest.raises(ValidationError):
        world.ledger.attendance_history(
            organization_id=ORG, enrollment_id=first.enrollment_id, start_date=DAY, end_date=date(2026, 3, 1)
        )
