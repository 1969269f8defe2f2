from decimal import Decimal

import pytest

from src.daycare_system.daycare_system.core.enums import BillingPolicy
from src.daycare_system.daycare_system.core.exceptions import NotFoundError, ValidationError
from src.daycare_system.daycare_system.rates.service import RateScheduleService
from tests.fakes import ORG, OTHER_ORG, InMemoryRateSchedules, standard_schedule


@pytest.fixture()
def store():
    return InMemoryRateSchedules(
        standard_schedule(1, is_active=True),
        standard_schedule(2, organization_id=OTHER_ORG, is_active=True),
    )


@pytest.fixture()
def service(store):
    return RateScheduleService(store)


def test_create_schedule_applies_defaults_and_starts_inactive(service):
    schedule_id = service.create_schedule(
        organization_id=ORG,
        data={"name": " Weekend ", "hourly_rate": "120", "half_day_rate": 400, "full_day_rate": "700.5"},
    )

    schedule = service.get_schedule(organization_id=ORG, schedule_id=schedule_id)
    assert schedule.name == "Weekend"
    assert schedule.hourly_rate == Decimal("120.00")
    assert schedule.full_day_rate == Decimal("700.50")
    assert (schedule.min_chargeable_minutes, schedule.half_day_hours, schedule.full_day_hours) == (60, 4, 8)
    assert schedule.grace_period_minutes == 15
    assert schedule.billing_policy == BillingPolicy.PAY_PER_SESSION
    assert schedule.is_active is False


@pytest.mark.parametrize(
    "data",
    [
        {"hourly_rate": 100},
        {"name": "X", "hourly_rate": -1},
        {"name": "X", "hourly_rate": "abc"},
        {"name": "X", "half_day_hours": 0},
        {"name": "X", "half_day_hours": 6, "full_day_hours": 5},
        {"name": "X", "min_chargeable_minutes": "lots"},
        {"name": "X", "billing_policy": "weekly"},
    ],
)
def test_create_schedule_rejects_invalid_input(service, data):
    with pytest.raises(ValidationError):
        service.create_schedule(organization_id=ORG, data=data)


def test_update_schedule_keeps_active_flag(service):
    updated = service.update_schedule(
        organization_id=ORG, schedule_id=1, data={"hourly_rate": "150", "billing_policy": "subscription"}
    )

    assert updated.hourly_rate == Decimal("150.00")
    assert updated.billing_policy == BillingPolicy.SUBSCRIPTION
    stored = service.get_schedule(organization_id=ORG, schedule_id=1)
    assert stored.hourly_rate == Decimal("150.00")
    assert stored.is_active is True


def test_update_rejects_inconsistent_tiers(service):
    with pytest.raises(ValidationError):
        service.update_schedule(organization_id=ORG, schedule_id=1, data={"full_day_hours": 2})


def test_activating_one_schedule_deactivates_the_previous_one(service):
    new_id = service.create_schedule(organization_id=ORG, data={"name": "Summer", "hourly_rate": 90})

    activated = service.activate(organization_id=ORG, schedule_id=new_id)

    assert activated.is_active is True
    assert service.get_active(organization_id=ORG).schedule_id == new_id
    assert service.get_schedule(organization_id=ORG, schedule_id=1).is_active is False
    assert [s.schedule_id for s in service.list_schedules(organization_id=ORG) if s.is_active] == [new_id]
    # other organizations keep their own active schedule
    assert service.get_active(organization_id=OTHER_ORG).schedule_id == 2


def test_schedules_are_scoped_to_organization(service):
    with pytest.raises(NotFoundError):
        service.get_schedule(organization_id=ORG, schedule_id=2)
    with pytest.raises(NotFoundError):
        service.activate(organization_id=ORG, schedule_id=2)
    assert service.get_active(organization_id=OTHER_ORG).is_active is True


def test_get_active_is_none_when_nothing_active():
    service = RateScheduleService(InMemoryRateSchedules(standard_schedule(1)))

    assert service.get_active(organization_id=ORG) is None
