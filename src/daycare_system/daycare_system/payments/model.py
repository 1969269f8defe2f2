from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..core.constants import MONEY_QUANT
from ..core.enums import PaymentStatus, PaymentType


def compute_total(amount: Decimal, discount: Decimal, late_fee: Decimal) -> Decimal:
    return (amount - discount + late_fee).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Payment:
    payment_id: int
    organization_id: int
    payment_number: str
    receipt_number: str
    child_id: int
    amount: Decimal
    discount: Decimal
    late_fee: Decimal
    total_amount: Decimal
    payment_date: date
    status: PaymentStatus
    payment_type: PaymentType = PaymentType.OTHER
    enrollment_id: Optional[int] = None
    attendance_id: Optional[int] = None
    payment_mode: Optional[str] = None
    collected_by: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class NewPayment:
    child_id: int
    amount: Decimal
    payment_type: PaymentType
    discount: Decimal = Decimal("0.00")
    late_fee: Decimal = Decimal("0.00")
    status: PaymentStatus = PaymentStatus.PENDING
    payment_date: Optional[date] = None
    enrollment_id: Optional[int] = None
    attendance_id: Optional[int] = None
    payment_mode: Optional[str] = None
    notes: Optional[str] = None

    @property
    def total_amount(self) -> Decimal:
        return compute_total(self.amount, self.discount, self.late_fee)
