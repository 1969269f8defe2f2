from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import require_non_empty, require_positive_id, to_money, to_optional_money
from ..core.constants import (
    DEFAULT_FULL_DAY_HOURS,
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_HALF_DAY_HOURS,
    DEFAULT_MIN_CHARGEABLE_MINUTES,
)
from ..core.enums import BillingPolicy
from ..core.exceptions import NotFoundError, ValidationError
from .model import RateSchedule
from .repository import RateScheduleRepository

logger = logging.getLogger(__name__)

_MONEY_FIELDS = ("hourly_rate", "half_day_rate", "full_day_rate")
_OPTIONAL_MONEY_FIELDS = (
    "monthly_unlimited_rate",
    "late_pickup_rate_per_hour",
    "registration_fee",
    "security_deposit",
)
_INT_FIELDS = ("min_chargeable_minutes", "half_day_hours", "full_day_hours", "grace_period_minutes")


def _parse_fields(data: dict) -> dict:
    out: dict = {}
    for key in _MONEY_FIELDS:
        if key in data:
            out[key] = to_money(data[key], key)
    for key in _OPTIONAL_MONEY_FIELDS:
        if key in data:
            out[key] = to_optional_money(data[key], key)
    for key in _INT_FIELDS:
        if key in data:
            try:
                out[key] = int(data[key])
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be a whole number")
    if "billing_policy" in data:
        try:
            out["billing_policy"] = BillingPolicy(data["billing_policy"])
        except ValueError:
            raise ValidationError("billing_policy is invalid")
    if "name" in data:
        out["name"] = require_non_empty(data["name"], "name")
    for key in ("effective_from", "effective_until"):
        if key in data:
            out[key] = data[key]
    return out


class RateScheduleService:
    """Use case: manage an organization's rate schedules."""

    def __init__(self, schedules: RateScheduleRepository):
        self._schedules = schedules

    def create_schedule(self, *, organization_id: int, data: dict) -> int:
        organization_id = require_positive_id(organization_id, "organization_id")
        fields = _parse_fields(data)
        if "name" not in fields:
            raise ValidationError("name is required")

        schedule = RateSchedule(
            schedule_id=None,
            organization_id=organization_id,
            name=fields.pop("name"),
            **{
                "min_chargeable_minutes": DEFAULT_MIN_CHARGEABLE_MINUTES,
                "half_day_hours": DEFAULT_HALF_DAY_HOURS,
                "full_day_hours": DEFAULT_FULL_DAY_HOURS,
                "grace_period_minutes": DEFAULT_GRACE_PERIOD_MINUTES,
                **fields,
            },
        ).validate()
        return self._schedules.create(schedule)

    def update_schedule(self, *, organization_id: int, schedule_id: int, data: dict) -> RateSchedule:
        current = self.get_schedule(organization_id=organization_id, schedule_id=schedule_id)
        updated = current.with_changes(**_parse_fields(data))
        if not self._schedules.update(updated):
            raise NotFoundError("Rate schedule not found")
        return updated

    def activate(self, *, organization_id: int, schedule_id: int) -> RateSchedule:
        organization_id = require_positive_id(organization_id, "organization_id")
        if not self._schedules.set_exclusive_active(organization_id=organization_id, schedule_id=int(schedule_id)):
            raise NotFoundError("Rate schedule not found")
        logger.info("Activated rate schedule %s for organization %s", schedule_id, organization_id)
        return self.get_schedule(organization_id=organization_id, schedule_id=schedule_id)

    def get_schedule(self, *, organization_id: int, schedule_id: int) -> RateSchedule:
        schedule = self._schedules.get_by_id(organization_id=int(organization_id), schedule_id=int(schedule_id))
        if not schedule:
            raise NotFoundError("Rate schedule not found")
        return schedule

    def get_active(self, *, organization_id: int) -> Optional[RateSchedule]:
        return self._schedules.get_active(organization_id=int(organization_id))

    def list_schedules(self, *, organization_id: int) -> Sequence[RateSchedule]:
        return self._schedules.list_all(organization_id=int(organization_id))
