from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import optional_date, optional_int, organization_id, required, to_jsonable
from ..container import Container


def register(app: Flask, container: Container) -> None:
    reports = container.revenue_aggregator

    @app.route("/api/reports/stats", methods=["GET"], endpoint="reports_stats")
    def stats():
        snapshot = reports.stats_snapshot(
            organization_id=organization_id(), today=optional_date(request.args.get("date"), "date")
        )
        return jsonify(snapshot.to_dict())

    @app.route("/api/reports/revenue", methods=["GET"], endpoint="reports_revenue")
    def revenue():
        year = optional_int(required(request.args, "year"), "year")
        month = optional_int(required(request.args, "month"), "month")
        total = reports.monthly_revenue(organization_id=organization_id(), year=year, month=month)
        return jsonify({"year": year, "month": month, "revenue": str(total)})

    @app.route("/api/reports/attendance/<int:child_id>", methods=["GET"], endpoint="reports_attendance")
    def attendance(child_id: int):
        report = reports.attendance_report(
            organization_id=organization_id(),
            child_id=child_id,
            year=optional_int(required(request.args, "year"), "year"),
            month=optional_int(required(request.args, "month"), "month"),
        )
        return jsonify(to_jsonable(report))

    @app.route("/api/reports/conversion-rate", methods=["GET"], endpoint="reports_conversion")
    def conversion():
        rate = reports.conversion_rate(organization_id=organization_id())
        return jsonify({"conversion_rate": str(rate)})

    @app.route("/api/expiry/sweep", methods=["POST"], endpoint="expiry_sweep")
    def sweep():
        result = container.expiry_sweeper.run(
            organization_id=organization_id(), today=optional_date(request.args.get("date"), "date")
        )
        return jsonify(result.to_dict())
