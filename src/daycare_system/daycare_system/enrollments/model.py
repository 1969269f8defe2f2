from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import EnrollmentStatus


@dataclass(frozen=True)
class CustomRates:
    """Per-enrollment pricing that supersedes any schedule when present."""

    hourly_rate: Optional[Decimal] = None
    half_day_rate: Optional[Decimal] = None
    full_day_rate: Optional[Decimal] = None
    monthly_rate: Optional[Decimal] = None

    @property
    def is_set(self) -> bool:
        return any(
            v is not None for v in (self.hourly_rate, self.half_day_rate, self.full_day_rate, self.monthly_rate)
        )

    @property
    def has_all_tiers(self) -> bool:
        return all(v is not None for v in (self.hourly_rate, self.half_day_rate, self.full_day_rate))


@dataclass(frozen=True)
class Enrollment:
    enrollment_id: int
    organization_id: int
    child_id: int
    enrollment_number: str
    enrollment_date: date
    start_date: date
    end_date: Optional[date]
    status: EnrollmentStatus
    rate_schedule_id: Optional[int] = None
    custom_rates: CustomRates = CustomRates()
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    def has_ended_by(self, today: date) -> bool:
        return self.end_date is not None and self.end_date <= today
