from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import PaymentStatus
from .model import NewPayment, Payment


class PaymentRepository(Protocol):
    def get_by_id(self, *, organization_id: int, payment_id: int) -> Optional[Payment]:
        raise NotImplementedError

    def get_for_attendance(self, *, organization_id: int, attendance_id: int) -> Optional[Payment]:
        raise NotImplementedError

    def create(
        self,
        *,
        organization_id: int,
        payment_number: str,
        receipt_number: str,
        payment_date: date,
        collected_by: int,
        data: NewPayment,
    ) -> int:
        raise NotImplementedError

    def update_amounts(
        self,
        *,
        organization_id: int,
        payment_id: int,
        amount: Decimal,
        discount: Decimal,
        late_fee: Decimal,
        notes: Optional[str],
        only_status: Optional[PaymentStatus] = None,
    ) -> bool:
        """Rewrite amount/discount/late_fee and the derived total together."""

        raise NotImplementedError

    def set_status(
        self,
        *,
        organization_id: int,
        payment_id: int,
        from_statuses: Iterable[PaymentStatus],
        to_status: PaymentStatus,
    ) -> bool:
        raise NotImplementedError

    def list_for_child(self, *, organization_id: int, child_id: int) -> Sequence[Payment]:
        raise NotImplementedError

    def list_between(self, *, organization_id: int, start_date: date, end_date: date) -> Sequence[Payment]:
        raise NotImplementedError

    def list_by_status(self, *, organization_id: int, status: PaymentStatus) -> Sequence[Payment]:
        raise NotImplementedError
