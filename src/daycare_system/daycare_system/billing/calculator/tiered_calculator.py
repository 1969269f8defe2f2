from __future__ import annotations

from decimal import ROUND_HALF_UP

from ...core.constants import MONEY_QUANT
from ...core.enums import BillingType
from ...core.exceptions import ValidationError
from ...rates.model import RateSchedule
from .base import BillingCalculator, ChargeResult


class TieredBillingCalculator(BillingCalculator):
    """Highest tier wins: full-day, then half-day, then hourly.

    Thresholds are inclusive lower bounds. Hourly time is the larger of the
    session and the minimum chargeable minutes, rounded up to whole hours.
    """

    def calculate_charge(self, duration_minutes: int, schedule: RateSchedule) -> ChargeResult:
        if duration_minutes is None or int(duration_minutes) <= 0:
            raise ValidationError("Duration must be greater than 0 minutes")
        minutes = int(duration_minutes)

        if minutes >= schedule.full_day_hours * 60:
            return ChargeResult(BillingType.FULL_DAY, schedule.full_day_rate.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP))

        if minutes >= schedule.half_day_hours * 60:
            return ChargeResult(BillingType.HALF_DAY, schedule.half_day_rate.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP))

        chargeable_minutes = max(minutes, int(schedule.min_chargeable_minutes))
        chargeable_hours = -(-chargeable_minutes // 60)
        amount = (schedule.hourly_rate * chargeable_hours).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)
        return ChargeResult(BillingType.HOURLY, amount)
