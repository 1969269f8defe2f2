from datetime import date, datetime
from decimal import Decimal

import pytest

from src.daycare_system.daycare_system.children.model import NewChild
from src.daycare_system.daycare_system.core.enums import InquiryStatus, PaymentStatus, PaymentType
from src.daycare_system.daycare_system.core.exceptions import ValidationError
from src.daycare_system.daycare_system.payments.model import NewPayment
from tests.fakes import ORG, OTHER_ORG, World


def _pay(world: World, child_id: int, amount: str, on: date, status=PaymentStatus.COMPLETED, **kwargs):
    return world.recorder.create_payment(
        organization_id=kwargs.pop("organization_id", ORG),
        data=NewPayment(
            child_id=child_id,
            amount=Decimal(amount),
            payment_type=PaymentType.OTHER,
            status=status,
            payment_date=on,
            **kwargs,
        ),
        actor=1,
    )


def test_empty_organization_reports_zeros():
    world = World()

    snapshot = world.aggregator.stats_snapshot(organization_id=ORG, today=date(2026, 5, 10))

    assert snapshot.total_children == 0
    assert snapshot.active_enrollments == 0
    assert snapshot.currently_checked_in == 0
    assert snapshot.today_revenue == Decimal("0.00")
    assert snapshot.month_revenue == Decimal("0.00")
    assert snapshot.pending_payments == 0
    assert world.aggregator.monthly_revenue(organization_id=ORG, year=2026, month=5) == Decimal("0.00")
    assert world.aggregator.conversion_rate(organization_id=ORG) == Decimal("0.00")
    report = world.aggregator.attendance_report(organization_id=ORG, child_id=1, year=2026, month=5)
    assert (report.total_days, report.total_hours, report.total_charges, report.attendances) == (
        0,
        Decimal("0.00"),
        Decimal("0.00"),
        [],
    )


def test_monthly_revenue_counts_completed_payments_inside_month_boundaries():
    world = World()
    child = world.children.add()
    _pay(world, child.child_id, "100", date(2026, 1, 31))
    _pay(world, child.child_id, "200", date(2026, 2, 1))
    _pay(world, child.child_id, "300", date(2026, 2, 28))
    _pay(world, child.child_id, "400", date(2026, 3, 1))
    _pay(world, child.child_id, "50", date(2026, 2, 10), status=PaymentStatus.PENDING)
    _pay(world, child.child_id, "70", date(2026, 2, 11), status=PaymentStatus.FAILED)

    assert world.aggregator.monthly_revenue(organization_id=ORG, year=2026, month=2) == Decimal("500.00")


def test_monthly_revenue_uses_total_after_discount_and_late_fee():
    world = World()
    child = world.children.add()
    _pay(world, child.child_id, "1000", date(2026, 4, 5), discount=Decimal("100.00"), late_fee=Decimal("25.00"))

    assert world.aggregator.monthly_revenue(organization_id=ORG, year=2026, month=4) == Decimal("925.00")


def test_invalid_month_is_rejected():
    with pytest.raises(ValidationError):
        World().aggregator.monthly_revenue(organization_id=ORG, year=2026, month=13)


def test_stats_snapshot_counts_everything():
    world = World()
    a = world.enroll("Asha")
    world.enroll("Ben")
    world.inquiries.add(InquiryStatus.NEW)
    world.inquiries.add(InquiryStatus.CONTACTED)
    world.ledger.check_in(organization_id=ORG, enrollment_id=a.enrollment_id, actor=1, time=datetime(2026, 5, 10, 9))
    _pay(world, a.child_id, "100", date(2026, 5, 10))
    _pay(world, a.child_id, "250", date(2026, 5, 2))
    _pay(world, a.child_id, "999", date(2026, 4, 30))
    _pay(world, a.child_id, "80", date(2026, 5, 10), status=PaymentStatus.PENDING)

    snapshot = world.aggregator.stats_snapshot(organization_id=ORG, today=date(2026, 5, 10))

    assert snapshot.total_children == 2
    assert snapshot.active_enrollments == 2
    assert snapshot.new_inquiries == 1
    assert snapshot.currently_checked_in == 1
    assert snapshot.today_revenue == Decimal("100.00")
    assert snapshot.month_revenue == Decimal("350.00")
    assert snapshot.pending_payments == 1


def test_cached_totals_are_invalidated_by_payment_writes():
    world = World()
    child = world.children.add()
    first = _pay(world, child.child_id, "100", date(2026, 7, 1), status=PaymentStatus.PENDING)

    assert world.aggregator.monthly_revenue(organization_id=ORG, year=2026, month=7) == Decimal("0.00")
    calls = world.reports.calls
    assert world.aggregator.monthly_revenue(organization_id=ORG, year=2026, month=7) == Decimal("0.00")
    assert world.reports.calls == calls

    world.recorder.mark_completed(organization_id=ORG, payment_id=first.payment_id)
    assert world.aggregator.monthly_revenue(organization_id=ORG, year=2026, month=7) == Decimal("100.00")


def test_cached_snapshot_follows_attendance_and_enrollment_writes():
    world = World()
    today = date(2026, 5, 10)
    enrollment = world.enroll()
    assert world.aggregator.stats_snapshot(organization_id=ORG, today=today).currently_checked_in == 0

    world.ledger.check_in(
        organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=1, time=datetime(2026, 5, 10, 9)
    )
    snapshot = world.aggregator.stats_snapshot(organization_id=ORG, today=today)
    assert snapshot.currently_checked_in == 1
    assert snapshot.active_enrollments == 1

    world.lifecycle.pause(organization_id=ORG, enrollment_id=enrollment.enrollment_id, reason="holiday")
    snapshot = world.aggregator.stats_snapshot(organization_id=ORG, today=today)
    assert snapshot.currently_checked_in == 0
    assert snapshot.active_enrollments == 0

    child = world.child_service.create_child(
        organization_id=ORG, data=NewChild(child_name="Ben", guardian_name="Ravi", guardian_phone="555-0101")
    )
    assert world.aggregator.stats_snapshot(organization_id=ORG, today=today).total_children == 2
    world.lifecycle.create_enrollment(organization_id=ORG, child_id=child.child_id, start_date=today)
    assert world.aggregator.stats_snapshot(organization_id=ORG, today=today).active_enrollments == 1


def test_tombstoned_child_leaves_cached_snapshot():
    world = World()
    today = date(2026, 5, 10)
    child = world.child_service.create_child(
        organization_id=ORG, data=NewChild(child_name="Ben", guardian_name="Ravi", guardian_phone="555-0101")
    )
    assert world.aggregator.stats_snapshot(organization_id=ORG, today=today).total_children == 1

    world.child_service.tombstone_child(organization_id=ORG, child_id=child.child_id)

    assert world.aggregator.stats_snapshot(organization_id=ORG, today=today).total_children == 0


def test_check_out_invalidates_cached_attendance_report():
    world = World()
    enrollment = world.enroll()
    record = world.ledger.check_in(
        organization_id=ORG, enrollment_id=enrollment.enrollment_id, actor=1, time=datetime(2026, 3, 2, 9)
    )
    before = world.aggregator.attendance_report(organization_id=ORG, child_id=enrollment.child_id, year=2026, month=3)
    assert before.total_charges == Decimal("0.00")

    world.ledger.check_out(
        organization_id=ORG, attendance_id=record.attendance_id, actor=1, time=datetime(2026, 3, 2, 13, 30)
    )
    after = world.aggregator.attendance_report(organization_id=ORG, child_id=enrollment.child_id, year=2026, month=3)
    assert after.total_charges == Decimal("350.00")


def test_attendance_report_spans_all_enrollments_of_child():
    world = World()
    old = world.enroll("Asha")
    ledger = world.ledger

    def session(enrollment_id, day, start_hour, end_hour):
        r = ledger.check_in(
            organization_id=ORG, enrollment_id=enrollment_id, actor=1, time=datetime(2026, 3, day, start_hour)
        )
        ledger.check_out(
            organization_id=ORG, attendance_id=r.attendance_id, actor=1, time=datetime(2026, 3, day, end_hour)
        )

    session(old.enrollment_id, 2, 9, 10)
    session(old.enrollment_id, 2, 14, 16)
    world.lifecycle.cancel(organization_id=ORG, enrollment_id=old.enrollment_id, reason="Switching plan")
    new = world.enrollments.add(old.child_id)
    session(new.enrollment_id, 3, 8, 17)
    session(new.enrollment_id, 31, 9, 13)
    r = ledger.check_in(organization_id=ORG, enrollment_id=new.enrollment_id, actor=1, time=datetime(2026, 4, 1, 9))
    ledger.check_out(organization_id=ORG, attendance_id=r.attendance_id, actor=1, time=datetime(2026, 4, 1, 10))

    report = world.aggregator.attendance_report(organization_id=ORG, child_id=old.child_id, year=2026, month=3)

    assert report.total_days == 3
    assert len(report.attendances) == 4
    assert report.total_hours == Decimal("16.00")
    assert report.total_charges == Decimal("100.00") + Decimal("200.00") + Decimal("600.00") + Decimal("350.00")


def test_conversion_rate_is_percentage_of_enrolled_inquiries():
    world = World()
    world.inquiries.add(InquiryStatus.ENROLLED)
    world.inquiries.add(InquiryStatus.NEW)
    world.inquiries.add(InquiryStatus.LOST)
    world.inquiries.add(InquiryStatus.ENROLLED, organization_id=OTHER_ORG)

    assert world.aggregator.conversion_rate(organization_id=ORG) == Decimal("33.33")
    assert world.aggregator.conversion_rate(organization_id=OTHER_ORG) == Decimal("100.00")


def test_pending_payments_lists_queue():
    world = World()
    child = world.children.add()
    pending = _pay(world, child.child_id, "100", date(2026, 7, 1), status=PaymentStatus.PENDING)
    _pay(world, child.child_id, "100", date(2026, 7, 1))

    assert world.aggregator.pending_payments(organization_id=ORG) == [pending]
