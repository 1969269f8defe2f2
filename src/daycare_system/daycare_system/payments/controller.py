from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import actor_id, json_body, optional_date, optional_int, organization_id, required, to_jsonable
from ..common.validators import to_money
from ..container import Container
from ..core.enums import PaymentStatus, PaymentType
from ..core.exceptions import ValidationError
from .model import NewPayment


def _enum(enum_cls, value, field_name: str, default):
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{field_name} is invalid: {value!r}")


def register(app: Flask, container: Container) -> None:
    payments = container.payment_recorder

    @app.route("/api/payments", methods=["POST"], endpoint="payments_create")
    def create():
        data = json_body()
        payment = payments.create_payment(
            organization_id=organization_id(),
            data=NewPayment(
                child_id=int(required(data, "child_id")),
                amount=to_money(required(data, "amount"), "amount"),
                discount=to_money(data.get("discount") or 0, "discount"),
                late_fee=to_money(data.get("late_fee") or 0, "late_fee"),
                payment_type=_enum(PaymentType, data.get("payment_type"), "payment_type", PaymentType.OTHER),
                status=_enum(PaymentStatus, data.get("status"), "status", PaymentStatus.COMPLETED),
                payment_date=optional_date(data.get("payment_date"), "payment_date"),
                enrollment_id=optional_int(data.get("enrollment_id"), "enrollment_id"),
                payment_mode=data.get("payment_mode"),
                notes=data.get("notes"),
            ),
            actor=actor_id(),
        )
        return jsonify(to_jsonable(payment)), 201

    @app.route("/api/payments", methods=["GET"], endpoint="payments_range")
    def in_range():
        start = optional_date(required(request.args, "start"), "start")
        end = optional_date(required(request.args, "end"), "end")
        rows = payments.payments_in_range(organization_id=organization_id(), start_date=start, end_date=end)
        return jsonify(to_jsonable(rows))

    @app.route("/api/payments/pending", methods=["GET"], endpoint="payments_pending")
    def pending():
        return jsonify(to_jsonable(payments.pending_payments(organization_id=organization_id())))

    @app.route("/api/children/<int:child_id>/payments", methods=["GET"], endpoint="payments_for_child")
    def for_child(child_id: int):
        return jsonify(to_jsonable(payments.payments_for_child(organization_id=organization_id(), child_id=child_id)))

    @app.route("/api/payments/<int:payment_id>", methods=["GET"], endpoint="payments_get")
    def get(payment_id: int):
        return jsonify(to_jsonable(payments.get_payment(organization_id=organization_id(), payment_id=payment_id)))

    @app.route("/api/payments/<int:payment_id>/complete", methods=["POST"], endpoint="payments_complete")
    def complete(payment_id: int):
        return jsonify(to_jsonable(payments.mark_completed(organization_id=organization_id(), payment_id=payment_id)))

    @app.route("/api/payments/<int:payment_id>/fail", methods=["POST"], endpoint="payments_fail")
    def fail(payment_id: int):
        return jsonify(to_jsonable(payments.mark_failed(organization_id=organization_id(), payment_id=payment_id)))

    @app.route("/api/payments/<int:payment_id>", methods=["PATCH"], endpoint="payments_correct")
    def correct(payment_id: int):
        data = json_body()
        payment = payments.admin_correct(
            organization_id=organization_id(),
            payment_id=payment_id,
            actor=actor_id(),
            reason=data.get("reason") or "",
            amount=data.get("amount"),
            discount=data.get("discount"),
            late_fee=data.get("late_fee"),
        )
        return jsonify(to_jsonable(payment))
