from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.constants import (
    DEFAULT_FULL_DAY_HOURS,
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_HALF_DAY_HOURS,
    DEFAULT_MIN_CHARGEABLE_MINUTES,
)
from ..core.enums import BillingPolicy
from ..core.exceptions import ValidationError

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class RateSchedule:
    """Immutable snapshot of tiered pricing.

    `schedule_id` is None for the synthetic schedule built from an
    enrollment's custom rate fields.
    """

    schedule_id: Optional[int]
    organization_id: int
    name: str
    hourly_rate: Decimal = ZERO
    min_chargeable_minutes: int = DEFAULT_MIN_CHARGEABLE_MINUTES
    half_day_rate: Decimal = ZERO
    half_day_hours: int = DEFAULT_HALF_DAY_HOURS
    full_day_rate: Decimal = ZERO
    full_day_hours: int = DEFAULT_FULL_DAY_HOURS
    monthly_unlimited_rate: Optional[Decimal] = None
    grace_period_minutes: int = DEFAULT_GRACE_PERIOD_MINUTES
    late_pickup_rate_per_hour: Optional[Decimal] = None
    registration_fee: Optional[Decimal] = None
    security_deposit: Optional[Decimal] = None
    billing_policy: BillingPolicy = BillingPolicy.PAY_PER_SESSION
    is_active: bool = False
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None

    def validate(self) -> "RateSchedule":
        if self.half_day_hours <= 0:
            raise ValidationError("half_day_hours must be greater than 0")
        if self.full_day_hours < self.half_day_hours:
            raise ValidationError("full_day_hours must be >= half_day_hours")
        if self.min_chargeable_minutes < 0:
            raise ValidationError("min_chargeable_minutes must not be negative")
        if self.grace_period_minutes < 0:
            raise ValidationError("grace_period_minutes must not be negative")
        for field_name in (
            "hourly_rate",
            "half_day_rate",
            "full_day_rate",
            "monthly_unlimited_rate",
            "late_pickup_rate_per_hour",
            "registration_fee",
            "security_deposit",
        ):
            value = getattr(self, field_name)
            if value is not None and value < 0:
                raise ValidationError(f"{field_name} must not be negative")
        if self.effective_from and self.effective_until and self.effective_until < self.effective_from:
            raise ValidationError("effective_until must be >= effective_from")
        return self

    def with_changes(self, **changes) -> "RateSchedule":
        return replace(self, **changes).validate()

    @property
    def one_time_fees(self) -> Decimal:
        return (self.registration_fee or ZERO) + (self.security_deposit or ZERO)
