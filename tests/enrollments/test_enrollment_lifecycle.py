from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from src.daycare_system.daycare_system.core.constants import SYSTEM_ACTOR_ID
from src.daycare_system.daycare_system.core.enums import EnrollmentStatus, PaymentStatus, PaymentType
from src.daycare_system.daycare_system.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.daycare_system.daycare_system.enrollments.model import CustomRates
from tests.fakes import ORG, World

STAFF = 7


def _create(world: World, child_id: int, **kwargs):
    kwargs.setdefault("start_date", date.today())
    return world.lifecycle.create_enrollment(organization_id=ORG, child_id=child_id, **kwargs)


def test_create_enrollment_is_active_with_generated_number():
    world = World()
    child = world.children.add()

    enrollment = _create(world, child.child_id, end_date=date.today() + timedelta(days=30))

    assert enrollment.status == EnrollmentStatus.ACTIVE
    assert enrollment.enrollment_number == f"ENR{date.today().year}0001"
    assert enrollment.enrollment_date == date.today()


def test_second_live_enrollment_for_child_conflicts():
    world = World()
    child = world.children.add()
    first = _create(world, child.child_id)
    world.lifecycle.pause(organization_id=ORG, enrollment_id=first.enrollment_id, reason="Vacation")

    with pytest.raises(ConflictError):
        _create(world, child.child_id)


def test_child_can_re_enroll_after_cancellation():
    world = World()
    child = world.children.add()
    first = _create(world, child.child_id)
    world.lifecycle.cancel(organization_id=ORG, enrollment_id=first.enrollment_id, reason="Moving")

    second = _create(world, child.child_id)
    assert second.enrollment_id != first.enrollment_id


def test_create_enrollment_validates_input():
    world = World()
    child = world.children.add()
    today = date.today()

    with pytest.raises(ValidationError):
        _create(world, child.child_id, start_date=today, end_date=today - timedelta(days=1))
    with pytest.raises(ValidationError):
        _create(world, child.child_id, start_date=today - timedelta(days=10), end_date=today)
    with pytest.raises(ValidationError):
        _create(world, child.child_id, custom_rates=CustomRates(hourly_rate=Decimal("50.00")))
    with pytest.raises(NotFoundError):
        _create(world, 999)
    with pytest.raises(NotFoundError):
        _create(world, child.child_id, rate_schedule_id=999)


def test_monthly_only_custom_rate_is_rejected_but_accepted_with_all_tiers():
    world = World()
    child = world.children.add()
    monthly = Decimal("9000.00")

    with pytest.raises(ValidationError):
        _create(world, child.child_id, custom_rates=CustomRates(monthly_rate=monthly))

    enrollment = _create(
        world,
        child.child_id,
        custom_rates=CustomRates(
            hourly_rate=Decimal("80.00"),
            half_day_rate=Decimal("300.00"),
            full_day_rate=Decimal("500.00"),
            monthly_rate=monthly,
        ),
    )
    assert enrollment.custom_rates.monthly_rate == monthly


def test_tombstoned_child_cannot_be_enrolled():
    world = World()
    child = world.children.add()
    world.child_service.tombstone_child(organization_id=ORG, child_id=child.child_id)

    with pytest.raises(NotFoundError):
        _create(world, child.child_id)


def test_registration_fees_recorded_when_requested():
    world = World()
    child = world.children.add()

    enrollment = _create(world, child.child_id, collect_registration=True, actor=STAFF)

    [payment] = world.payments.list_for_child(organization_id=ORG, child_id=child.child_id)
    assert payment.payment_type == PaymentType.REGISTRATION
    assert payment.status == PaymentStatus.PENDING
    assert payment.total_amount == Decimal("3000.00")
    assert payment.enrollment_id == enrollment.enrollment_id
    assert payment.collected_by == STAFF


def test_pause_and_resume():
    world = World()
    enrollment = world.enroll()

    paused = world.lifecycle.pause(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="Holiday")
    assert paused.status == EnrollmentStatus.PAUSED
    assert paused.notes == "Holiday"

    resumed = world.lifecycle.resume(organization_id=ORG, enrollment_id=enrollment.enrollment_id)
    assert resumed.status == EnrollmentStatus.ACTIVE


def test_pause_and_cancel_require_reason():
    world = World()
    enrollment = world.enroll()

    with pytest.raises(ValidationError):
        world.lifecycle.pause(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="")
    with pytest.raises(ValidationError):
        world.lifecycle.cancel(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason=" ")


def test_cancel_sets_end_date_when_missing():
    world = World()
    enrollment = world.enroll()

    cancelled = world.lifecycle.cancel(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="Moving")

    assert cancelled.status == EnrollmentStatus.CANCELLED
    assert cancelled.end_date == date.today()


def test_cancel_keeps_existing_end_date():
    world = World()
    end = date.today() + timedelta(days=60)
    enrollment = world.enroll(end_date=end)

    cancelled = world.lifecycle.cancel(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="Moving")
    assert cancelled.end_date == end


@pytest.mark.parametrize(
    "status, action",
    [
        (EnrollmentStatus.ACTIVE, "resume"),
        (EnrollmentStatus.PAUSED, "pause"),
        (EnrollmentStatus.CANCELLED, "resume"),
        (EnrollmentStatus.CANCELLED, "pause"),
        (EnrollmentStatus.CANCELLED, "cancel"),
        (EnrollmentStatus.EXPIRED, "resume"),
        (EnrollmentStatus.EXPIRED, "cancel"),
    ],
)
def test_disallowed_transitions_conflict(status, action):
    world = World()
    enrollment = world.enroll(status=status)
    kwargs = {"organization_id": ORG, "enrollment_id": enrollment.enrollment_id}
    if action in ("pause", "cancel"):
        kwargs["reason"] = "because"

    with pytest.raises(ConflictError):
        getattr(world.lifecycle, action)(**kwargs)


def test_paused_enrollment_cannot_expire():
    world = World()
    enrollment = world.enroll(status=EnrollmentStatus.PAUSED, end_date=date(2026, 1, 31))

    with pytest.raises(ConflictError):
        world.lifecycle.expire(organization_id=ORG, enrollment_id=enrollment.enrollment_id, today=date(2026, 2, 1))


def test_expire_before_end_date_conflicts():
    world = World()
    enrollment = world.enroll(end_date=date(2026, 2, 10))

    with pytest.raises(ConflictError):
        world.lifecycle.expire(organization_id=ORG, enrollment_id=enrollment.enrollment_id, today=date(2026, 2, 9))


def test_cancelling_closes_open_session_with_system_actor():
    world = World()
    enrollment = world.enroll()
    record = world.ledger.check_in(
        organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF, time=datetime.now() - timedelta(hours=2)
    )

    world.lifecycle.cancel(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="Moving")

    closed = world.attendance.get_by_id(organization_id=ORG, attendance_id=record.attendance_id)
    assert not closed.is_open
    assert closed.checked_out_by == SYSTEM_ACTOR_ID
    assert closed.calculated_charge is not None
    assert world.ledger.currently_checked_in(organization_id=ORG) == []


def test_no_check_in_after_cancellation():
    world = World()
    enrollment = world.enroll()
    world.lifecycle.cancel(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="Moving")

    with pytest.raises(ConflictError):
        world.ledger.check_in(organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=STAFF)


def test_update_custom_rates_switches_pricing_source():
    world = World()
    enrollment = world.enroll()
    custom = CustomRates(hourly_rate=Decimal("70.00"), half_day_rate=Decimal("250.00"), full_day_rate=Decimal("450.00"))

    updated = world.lifecycle.update_custom_rates(
        organization_id=ORG, enrollment_id=enrollment.enrollment_id, rate_schedule_id=None, custom_rates=custom
    )

    assert updated.custom_rates == custom
    assert world.resolver.resolve(updated).schedule.hourly_rate == Decimal("70.00")


def test_update_custom_rates_refused_on_terminal_enrollment():
    world = World()
    enrollment = world.enroll(status=EnrollmentStatus.EXPIRED)

    with pytest.raises(ConflictError):
        world.lifecycle.update_custom_rates(
            organization_id=ORG, enrollment_id=enrollment.enrollment_id, rate_schedule_id=None, custom_rates=CustomRates()
        )


def test_listing_enrollments():
    world = World()
    active = world.enroll("Asha")
    world.enroll("Ben", status=EnrollmentStatus.CANCELLED)

    assert [e.enrollment_id for e in world.lifecycle.list_enrollments(organization_id=ORG)] == [active.enrollment_id]
    assert len(world.lifecycle.list_enrollments(organization_id=ORG, include_inactive=True)) == 2
    assert world.lifecycle.list_for_child(organization_id=ORG, child_id=active.child_id) == [active]
