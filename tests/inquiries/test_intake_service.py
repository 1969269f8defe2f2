from datetime import timedelta
from decimal import Decimal

import pytest

from src.daycare_system.daycare_system.children.model import NewChild
from src.daycare_system.daycare_system.common.datetime_utils import now_local
from src.daycare_system.daycare_system.core.enums import EnrollmentStatus, InquiryStatus, PaymentType
from src.daycare_system.daycare_system.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.daycare_system.daycare_system.inquiries.model import EnrollmentTerms
from tests.fakes import ORG, OTHER_ORG, World

CHILD = NewChild(child_name="Ira", guardian_name="Dev", guardian_phone="555-0142")


def _terms(**kwargs):
    return EnrollmentTerms(start_date=now_local().date(), **kwargs)


def test_conversion_creates_child_and_active_enrollment():
    world = World()
    inquiry = world.inquiries.add(InquiryStatus.CONTACTED)

    enrollment = world.intake.convert_to_enrollment(
        organization_id=ORG, inquiry_id=inquiry.inquiry_id, child_data=CHILD, enrollment_data=_terms(), actor=3
    )

    assert enrollment.status == EnrollmentStatus.ACTIVE
    child = world.child_service.get_child(organization_id=ORG, child_id=enrollment.child_id)
    assert child.child_name == "Ira"
    converted = world.inquiries.get_by_id(organization_id=ORG, inquiry_id=inquiry.inquiry_id)
    assert converted.status == InquiryStatus.ENROLLED
    assert converted.converted_child_id == child.child_id
    assert world.aggregator.conversion_rate(organization_id=ORG) == Decimal("100.00")


def test_conversion_can_bill_registration():
    world = World()
    inquiry = world.inquiries.add()

    enrollment = world.intake.convert_to_enrollment(
        organization_id=ORG,
        inquiry_id=inquiry.inquiry_id,
        child_data=CHILD,
        enrollment_data=_terms(collect_registration=True),
    )

    payments = world.recorder.payments_for_child(organization_id=ORG, child_id=enrollment.child_id)
    assert [p.payment_type for p in payments] == [PaymentType.REGISTRATION]


@pytest.mark.parametrize("status", [InquiryStatus.ENROLLED, InquiryStatus.LOST])
def test_closed_inquiry_cannot_be_converted(status):
    world = World()
    inquiry = world.inquiries.add(status)

    with pytest.raises(ConflictError):
        world.intake.convert_to_enrollment(
            organization_id=ORG, inquiry_id=inquiry.inquiry_id, child_data=CHILD, enrollment_data=_terms()
        )
    assert world.children.rows == {}


def test_unknown_inquiry_is_not_found():
    world = World()
    inquiry = world.inquiries.add(organization_id=OTHER_ORG)

    with pytest.raises(NotFoundError):
        world.intake.convert_to_enrollment(
            organization_id=ORG, inquiry_id=inquiry.inquiry_id, child_data=CHILD, enrollment_data=_terms()
        )


def test_failed_enrollment_tombstones_new_child_and_keeps_inquiry_open():
    world = World()
    inquiry = world.inquiries.add()
    bad_terms = _terms(end_date=now_local().date() - timedelta(days=3))

    with pytest.raises(ValidationError):
        world.intake.convert_to_enrollment(
            organization_id=ORG, inquiry_id=inquiry.inquiry_id, child_data=CHILD, enrollment_data=bad_terms
        )

    assert [c.is_tombstoned for c in world.children.rows.values()] == [True]
    assert world.inquiries.get_by_id(organization_id=ORG, inquiry_id=inquiry.inquiry_id).status == InquiryStatus.NEW
    assert world.child_service.list_active_children(organization_id=ORG) == []
