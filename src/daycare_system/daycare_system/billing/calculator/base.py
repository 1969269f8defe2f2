from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...core.enums import BillingType
from ...rates.model import RateSchedule


@dataclass(frozen=True)
class ChargeResult:
    billing_type: BillingType
    amount: Decimal


class BillingCalculator(ABC):
    """Calculator interface (Strategy Pattern for session pricing)."""

    @abstractmethod
    def calculate_charge(self, duration_minutes: int, schedule: RateSchedule) -> ChargeResult:
        raise NotImplementedError
