from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..billing.resolver import RateResolver
from ..children.repository import ChildRepository
from ..codes.generator import CodeGenerator
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_positive_id, to_money
from ..core.enums import PaymentStatus, PaymentType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..enrollments.model import Enrollment
from ..reports.cache import AggregateCache
from .model import NewPayment, Payment, compute_total
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class PaymentRecorder:
    """Creates and maintains payment records.

    Completed payments are immutable except through `admin_correct`.
    """

    def __init__(
        self,
        payments: PaymentRepository,
        children: ChildRepository,
        codes: CodeGenerator,
        *,
        cache: AggregateCache,
        resolver: RateResolver | None = None,
    ):
        self._payments = payments
        self._children = children
        self._codes = codes
        self._cache = cache
        self._resolver = resolver

    def get_payment(self, *, organization_id: int, payment_id: int) -> Payment:
        payment = self._payments.get_by_id(organization_id=int(organization_id), payment_id=int(payment_id))
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def ensure_billable(self, *, organization_id: int, child_id: int) -> None:
        """Raise NotFoundError unless payments can be recorded for the child."""

        child = self._children.get_by_id(organization_id=int(organization_id), child_id=int(child_id))
        if not child or child.is_tombstoned:
            raise NotFoundError("Child not found")

    def create_payment(self, *, organization_id: int, data: NewPayment, actor: int) -> Payment:
        organization_id = require_positive_id(organization_id, "organization_id")
        if data.amount < 0 or data.discount < 0 or data.late_fee < 0:
            raise ValidationError("Payment amounts must not be negative")
        if data.total_amount < 0:
            raise ValidationError("Discount cannot exceed amount plus late fee")
        self.ensure_billable(organization_id=organization_id, child_id=data.child_id)

        payment_id = self._payments.create(
            organization_id=organization_id,
            payment_number=self._codes.payment_number(organization_id=organization_id),
            receipt_number=self._codes.receipt_number(organization_id=organization_id),
            payment_date=data.payment_date or now_local().date(),
            collected_by=int(actor),
            data=data,
        )
        self._cache.invalidate(organization_id)
        payment = self.get_payment(organization_id=organization_id, payment_id=payment_id)
        logger.info(
            "Recorded %s payment %s for child %s: %s (%s)",
            payment.payment_type.value,
            payment.payment_number,
            payment.child_id,
            payment.total_amount,
            payment.status.value,
        )
        return payment

    def record_payment(
        self,
        *,
        organization_id: int,
        child_id: int,
        amount,
        payment_mode: str,
        actor: int,
        payment_type: PaymentType = PaymentType.OTHER,
        enrollment_id: Optional[int] = None,
        status: PaymentStatus = PaymentStatus.COMPLETED,
    ) -> Payment:
        """Ad-hoc collection at the front desk."""

        return self.create_payment(
            organization_id=organization_id,
            data=NewPayment(
                child_id=require_positive_id(child_id, "child_id"),
                amount=to_money(amount, "amount"),
                payment_type=payment_type,
                status=status,
                enrollment_id=enrollment_id,
                payment_mode=require_non_empty(payment_mode, "payment_mode"),
            ),
            actor=actor,
        )

    def record_session_charge(
        self,
        *,
        organization_id: int,
        enrollment: Enrollment,
        record: AttendanceRecord,
        actor: int,
    ) -> Optional[Payment]:
        """Create, or re-price while still pending, the payment owed for a closed session."""

        if record.is_open or record.calculated_charge is None:
            return None

        existing = self._payments.get_for_attendance(
            organization_id=int(organization_id), attendance_id=record.attendance_id
        )
        if existing is None:
            if record.calculated_charge <= ZERO:
                return None
            return self.create_payment(
                organization_id=organization_id,
                data=NewPayment(
                    child_id=enrollment.child_id,
                    enrollment_id=enrollment.enrollment_id,
                    attendance_id=record.attendance_id,
                    amount=record.calculated_charge,
                    payment_type=PaymentType.SESSION,
                    status=PaymentStatus.PENDING,
                    notes=f"{record.billing_type.value} session on {record.attendance_date.isoformat()}",
                ),
                actor=actor,
            )

        if existing.amount == record.calculated_charge:
            return existing
        if existing.status != PaymentStatus.PENDING:
            logger.warning(
                "Session %s re-priced to %s but payment %s is %s; left unchanged",
                record.attendance_id,
                record.calculated_charge,
                existing.payment_number,
                existing.status.value,
            )
            return existing

        self._payments.update_amounts(
            organization_id=int(organization_id),
            payment_id=existing.payment_id,
            amount=record.calculated_charge,
            discount=existing.discount,
            late_fee=existing.late_fee,
            notes=None,
            only_status=PaymentStatus.PENDING,
        )
        self._cache.invalidate(int(organization_id))
        return self.get_payment(organization_id=organization_id, payment_id=existing.payment_id)

    def record_registration_fees(self, *, organization_id: int, enrollment: Enrollment, actor: int) -> Optional[Payment]:
        if self._resolver is None:
            return None
        schedule = self._resolver.resolve(enrollment).schedule
        fees = schedule.one_time_fees
        if fees <= ZERO:
            return None
        return self.create_payment(
            organization_id=organization_id,
            data=NewPayment(
                child_id=enrollment.child_id,
                enrollment_id=enrollment.enrollment_id,
                amount=fees,
                payment_type=PaymentType.REGISTRATION,
                status=PaymentStatus.PENDING,
                notes="Registration fee and security deposit",
            ),
            actor=actor,
        )

    def _set_status(self, *, organization_id: int, payment_id: int, to_status: PaymentStatus) -> Payment:
        payment = self.get_payment(organization_id=organization_id, payment_id=payment_id)
        if payment.status != PaymentStatus.PENDING:
            raise ConflictError(f"Payment is already {payment.status.value}")
        ok = self._payments.set_status(
            organization_id=int(organization_id),
            payment_id=int(payment_id),
            from_statuses=[PaymentStatus.PENDING],
            to_status=to_status,
        )
        if not ok:
            raise ConflictError("Payment changed concurrently, reload and retry")
        self._cache.invalidate(int(organization_id))
        return self.get_payment(organization_id=organization_id, payment_id=payment_id)

    def mark_completed(self, *, organization_id: int, payment_id: int) -> Payment:
        return self._set_status(organization_id=organization_id, payment_id=payment_id, to_status=PaymentStatus.COMPLETED)

    def mark_failed(self, *, organization_id: int, payment_id: int) -> Payment:
        return self._set_status(organization_id=organization_id, payment_id=payment_id, to_status=PaymentStatus.FAILED)

    def admin_correct(
        self,
        *,
        organization_id: int,
        payment_id: int,
        actor: int,
        reason: str,
        amount=None,
        discount=None,
        late_fee=None,
    ) -> Payment:
        reason = require_non_empty(reason, "reason")
        payment = self.get_payment(organization_id=organization_id, payment_id=payment_id)

        new_amount = to_money(amount, "amount") if amount is not None else payment.amount
        new_discount = to_money(discount, "discount") if discount is not None else payment.discount
        new_late_fee = to_money(late_fee, "late_fee") if late_fee is not None else payment.late_fee
        if compute_total(new_amount, new_discount, new_late_fee) < 0:
            raise ValidationError("Discount cannot exceed amount plus late fee")

        self._payments.update_amounts(
            organization_id=int(organization_id),
            payment_id=int(payment_id),
            amount=new_amount,
            discount=new_discount,
            late_fee=new_late_fee,
            notes=f"Corrected by {actor}: {reason}",
        )
        self._cache.invalidate(int(organization_id))
        logger.info("Payment %s corrected by %s: %s", payment.payment_number, actor, reason)
        return self.get_payment(organization_id=organization_id, payment_id=payment_id)

    def payments_for_child(self, *, organization_id: int, child_id: int) -> Sequence[Payment]:
        return self._payments.list_for_child(organization_id=int(organization_id), child_id=int(child_id))

    def payments_in_range(self, *, organization_id: int, start_date: date, end_date: date) -> Sequence[Payment]:
        if end_date < start_date:
            raise ValidationError("end_date must be on or after start_date")
        return self._payments.list_between(organization_id=int(organization_id), start_date=start_date, end_date=end_date)

    def pending_payments(self, *, organization_id: int) -> Sequence[Payment]:
        return self._payments.list_by_status(organization_id=int(organization_id), status=PaymentStatus.PENDING)
