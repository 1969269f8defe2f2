from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import actor_id, json_body, optional_date, optional_datetime, organization_id, required, to_jsonable
from ..container import Container
from .model import AttendanceCorrection


def register(app: Flask, container: Container) -> None:
    ledger = container.attendance_ledger

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def check_in():
        data = json_body()
        record = ledger.check_in(
            organization_id=organization_id(),
            enrollment_id=required(data, "enrollment_id"),
            actor=actor_id(),
            time=optional_datetime(data.get("time"), "time"),
            notes=data.get("notes"),
        )
        return jsonify(to_jsonable(record)), 201

    @app.route("/api/attendance/<int:attendance_id>/check-out", methods=["POST"], endpoint="attendance_check_out")
    def check_out(attendance_id: int):
        data = json_body()
        record = ledger.check_out(
            organization_id=organization_id(),
            attendance_id=attendance_id,
            actor=actor_id(),
            time=optional_datetime(data.get("time"), "time"),
        )
        return jsonify(to_jsonable(record))

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    def get_record(attendance_id: int):
        record = ledger.get_record(organization_id=organization_id(), attendance_id=attendance_id)
        return jsonify(to_jsonable(record))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_correct")
    def correct(attendance_id: int):
        data = json_body()
        correction = AttendanceCorrection(
            check_in_time=optional_datetime(data.get("check_in_time"), "check_in_time"),
            check_out_time=optional_datetime(data.get("check_out_time"), "check_out_time"),
            notes=data.get("notes"),
        )
        record = ledger.manual_correct(
            organization_id=organization_id(),
            attendance_id=attendance_id,
            correction=correction,
            actor=actor_id(),
            reason=data.get("reason") or "",
        )
        return jsonify(to_jsonable(record))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    def today():
        rows = ledger.today_attendance(
            organization_id=organization_id(), day=optional_date(request.args.get("date"), "date")
        )
        return jsonify(to_jsonable(rows))

    @app.route("/api/attendance/checked-in", methods=["GET"], endpoint="attendance_checked_in")
    def checked_in():
        return jsonify(to_jsonable(ledger.currently_checked_in(organization_id=organization_id())))

    @app.route("/api/enrollments/<int:enrollment_id>/attendance", methods=["GET"], endpoint="attendance_history")
    def history(enrollment_id: int):
        rows = ledger.attendance_history(
            organization_id=organization_id(),
            enrollment_id=enrollment_id,
            start_date=optional_date(request.args.get("start"), "start"),
            end_date=optional_date(request.args.get("end"), "end"),
        )
        return jsonify(to_jsonable(rows))
