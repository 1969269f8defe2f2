from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, organization_id, to_jsonable
from ..container import Container
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    rates = container.rate_service

    @app.route("/api/rate-schedules", methods=["GET"], endpoint="rates_list")
    def list_schedules():
        return jsonify(to_jsonable(rates.list_schedules(organization_id=organization_id())))

    @app.route("/api/rate-schedules", methods=["POST"], endpoint="rates_create")
    def create():
        org = organization_id()
        schedule_id = rates.create_schedule(organization_id=org, data=json_body())
        return jsonify(to_jsonable(rates.get_schedule(organization_id=org, schedule_id=schedule_id))), 201

    @app.route("/api/rate-schedules/active", methods=["GET"], endpoint="rates_active")
    def active():
        schedule = rates.get_active(organization_id=organization_id())
        if not schedule:
            raise NotFoundError("No active rate schedule")
        return jsonify(to_jsonable(schedule))

    @app.route("/api/rate-schedules/<int:schedule_id>", methods=["GET"], endpoint="rates_get")
    def get(schedule_id: int):
        return jsonify(to_jsonable(rates.get_schedule(organization_id=organization_id(), schedule_id=schedule_id)))

    @app.route("/api/rate-schedules/<int:schedule_id>", methods=["PUT"], endpoint="rates_update")
    def update(schedule_id: int):
        schedule = rates.update_schedule(organization_id=organization_id(), schedule_id=schedule_id, data=json_body())
        return jsonify(to_jsonable(schedule))

    @app.route("/api/rate-schedules/<int:schedule_id>/activate", methods=["POST"], endpoint="rates_activate")
    def activate(schedule_id: int):
        return jsonify(to_jsonable(rates.activate(organization_id=organization_id(), schedule_id=schedule_id)))
