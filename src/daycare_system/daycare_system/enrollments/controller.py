from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import actor_id, json_body, optional_date, optional_int, organization_id, required, to_jsonable
from ..common.validators import to_optional_money
from ..container import Container
from .model import CustomRates


def custom_rates_from(data: dict) -> CustomRates:
    return CustomRates(
        hourly_rate=to_optional_money(data.get("custom_hourly_rate"), "custom_hourly_rate"),
        half_day_rate=to_optional_money(data.get("custom_half_day_rate"), "custom_half_day_rate"),
        full_day_rate=to_optional_money(data.get("custom_full_day_rate"), "custom_full_day_rate"),
        monthly_rate=to_optional_money(data.get("custom_monthly_rate"), "custom_monthly_rate"),
    )


def register(app: Flask, container: Container) -> None:
    lifecycle = container.enrollment_lifecycle

    @app.route("/api/enrollments", methods=["POST"], endpoint="enrollments_create")
    def create():
        data = json_body()
        enrollment = lifecycle.create_enrollment(
            organization_id=organization_id(),
            child_id=required(data, "child_id"),
            start_date=optional_date(required(data, "start_date"), "start_date"),
            end_date=optional_date(data.get("end_date"), "end_date"),
            rate_schedule_id=optional_int(data.get("rate_schedule_id"), "rate_schedule_id"),
            custom_rates=custom_rates_from(data),
            notes=data.get("notes"),
            actor=actor_id(),
            collect_registration=bool(data.get("collect_registration", False)),
        )
        return jsonify(to_jsonable(enrollment)), 201

    @app.route("/api/enrollments", methods=["GET"], endpoint="enrollments_list")
    def list_enrollments():
        include_inactive = request.args.get("all", "0") in {"1", "true", "yes"}
        rows = lifecycle.list_enrollments(organization_id=organization_id(), include_inactive=include_inactive)
        return jsonify(to_jsonable(rows))

    @app.route("/api/enrollments/<int:enrollment_id>", methods=["GET"], endpoint="enrollments_get")
    def get(enrollment_id: int):
        return jsonify(to_jsonable(lifecycle.get_enrollment(organization_id=organization_id(), enrollment_id=enrollment_id)))

    @app.route("/api/children/<int:child_id>/enrollments", methods=["GET"], endpoint="enrollments_for_child")
    def for_child(child_id: int):
        return jsonify(to_jsonable(lifecycle.list_for_child(organization_id=organization_id(), child_id=child_id)))

    @app.route("/api/enrollments/<int:enrollment_id>/rates", methods=["PUT"], endpoint="enrollments_rates")
    def update_rates(enrollment_id: int):
        data = json_body()
        enrollment = lifecycle.update_custom_rates(
            organization_id=organization_id(),
            enrollment_id=enrollment_id,
            rate_schedule_id=optional_int(data.get("rate_schedule_id"), "rate_schedule_id"),
            custom_rates=custom_rates_from(data),
        )
        return jsonify(to_jsonable(enrollment))

    @app.route("/api/enrollments/<int:enrollment_id>/pause", methods=["POST"], endpoint="enrollments_pause")
    def pause(enrollment_id: int):
        enrollment = lifecycle.pause(
            organization_id=organization_id(), enrollment_id=enrollment_id, reason=json_body().get("reason") or ""
        )
        return jsonify(to_jsonable(enrollment))

    @app.route("/api/enrollments/<int:enrollment_id>/resume", methods=["POST"], endpoint="enrollments_resume")
    def resume(enrollment_id: int):
        enrollment = lifecycle.resume(organization_id=organization_id(), enrollment_id=enrollment_id)
        return jsonify(to_jsonable(enrollment))

    @app.route("/api/enrollments/<int:enrollment_id>/cancel", methods=["POST"], endpoint="enrollments_cancel")
    def cancel(enrollment_id: int):
        enrollment = lifecycle.cancel(
            organization_id=organization_id(), enrollment_id=enrollment_id, reason=json_body().get("reason") or ""
        )
        return jsonify(to_jsonable(enrollment))
