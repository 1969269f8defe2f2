from __future__ import annotations

from flask import Flask, jsonify

from ..children.controller import new_child_from
from ..common.http import actor_id, json_body, optional_date, optional_int, organization_id, required, to_jsonable
from ..container import Container
from ..enrollments.controller import custom_rates_from
from .model import EnrollmentTerms


def register(app: Flask, container: Container) -> None:
    @app.route("/api/inquiries/<int:inquiry_id>/convert", methods=["POST"], endpoint="inquiries_convert")
    def convert(inquiry_id: int):
        data = json_body()
        child_data = data.get("child") or {}
        terms = data.get("enrollment") or {}
        enrollment = container.intake_service.convert_to_enrollment(
            organization_id=organization_id(),
            inquiry_id=inquiry_id,
            child_data=new_child_from(child_data),
            enrollment_data=EnrollmentTerms(
                start_date=optional_date(required(terms, "start_date"), "start_date"),
                end_date=optional_date(terms.get("end_date"), "end_date"),
                rate_schedule_id=optional_int(terms.get("rate_schedule_id"), "rate_schedule_id"),
                custom_rates=custom_rates_from(terms),
                notes=terms.get("notes"),
                collect_registration=bool(terms.get("collect_registration", False)),
            ),
            actor=actor_id(),
        )
        return jsonify(to_jsonable(enrollment)), 201
