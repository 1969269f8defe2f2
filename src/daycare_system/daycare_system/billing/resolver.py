from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..core.enums import BillingPolicy
from ..core.exceptions import ConfigurationError
from ..enrollments.model import Enrollment
from ..rates.model import RateSchedule
from ..rates.repository import RateScheduleRepository


class RateSource(str, Enum):
    CUSTOM = "custom"
    ASSIGNED = "assigned"
    ORGANIZATION_DEFAULT = "organization_default"


@dataclass(frozen=True)
class ResolvedRates:
    schedule: RateSchedule
    source: RateSource

    @property
    def policy(self) -> BillingPolicy:
        return self.schedule.billing_policy


class RateResolver:
    """Resolve the schedule that prices an enrollment's sessions.

    Order: custom rate fields on the enrollment, then the enrollment's
    assigned schedule, then the organization's active schedule.
    """

    def __init__(self, schedules: RateScheduleRepository):
        self._schedules = schedules

    def resolve(self, enrollment: Enrollment) -> ResolvedRates:
        custom = enrollment.custom_rates
        if custom.is_set:
            if not custom.has_all_tiers:
                raise ConfigurationError(
                    f"Enrollment {enrollment.enrollment_number} has incomplete custom rates"
                )
            schedule = RateSchedule(
                schedule_id=None,
                organization_id=enrollment.organization_id,
                name=f"Custom rates ({enrollment.enrollment_number})",
                hourly_rate=custom.hourly_rate,
                half_day_rate=custom.half_day_rate,
                full_day_rate=custom.full_day_rate,
                monthly_unlimited_rate=custom.monthly_rate,
                billing_policy=(
                    BillingPolicy.SUBSCRIPTION if custom.monthly_rate is not None else BillingPolicy.PAY_PER_SESSION
                ),
            )
            return ResolvedRates(schedule=schedule, source=RateSource.CUSTOM)

        if enrollment.rate_schedule_id is not None:
            schedule = self._schedules.get_by_id(
                organization_id=enrollment.organization_id,
                schedule_id=enrollment.rate_schedule_id,
            )
            if not schedule:
                raise ConfigurationError(
                    f"Rate schedule {enrollment.rate_schedule_id} assigned to "
                    f"enrollment {enrollment.enrollment_number} does not exist"
                )
            return ResolvedRates(schedule=schedule, source=RateSource.ASSIGNED)

        schedule = self._schedules.get_active(organization_id=enrollment.organization_id)
        if not schedule:
            raise ConfigurationError(
                f"No rate schedule resolves for enrollment {enrollment.enrollment_number}"
            )
        return ResolvedRates(schedule=schedule, source=RateSource.ORGANIZATION_DEFAULT)
