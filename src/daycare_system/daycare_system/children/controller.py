from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, optional_date, organization_id, to_jsonable
from ..container import Container
from .model import NewChild


def new_child_from(data: dict) -> NewChild:
    return NewChild(
        child_name=data.get("child_name") or "",
        guardian_name=data.get("guardian_name") or "",
        guardian_phone=data.get("guardian_phone") or "",
        guardian_email=data.get("guardian_email"),
        date_of_birth=optional_date(data.get("date_of_birth"), "date_of_birth"),
        allergies=data.get("allergies"),
        medical_conditions=data.get("medical_conditions"),
        special_needs=data.get("special_needs"),
    )


def register(app: Flask, container: Container) -> None:
    children = container.child_service

    @app.route("/api/children", methods=["POST"], endpoint="children_create")
    def create():
        child = children.create_child(organization_id=organization_id(), data=new_child_from(json_body()))
        return jsonify(to_jsonable(child)), 201

    @app.route("/api/children", methods=["GET"], endpoint="children_list")
    def list_children():
        query = (request.args.get("q") or "").strip()
        if query:
            rows = children.search_children(organization_id=organization_id(), query=query)
        else:
            rows = children.list_active_children(organization_id=organization_id())
        return jsonify(to_jsonable(rows))

    @app.route("/api/children/<int:child_id>", methods=["GET"], endpoint="children_get")
    def get(child_id: int):
        return jsonify(to_jsonable(children.get_child(organization_id=organization_id(), child_id=child_id)))

    @app.route("/api/children/<int:child_id>", methods=["DELETE"], endpoint="children_tombstone")
    def tombstone(child_id: int):
        children.tombstone_child(organization_id=organization_id(), child_id=child_id)
        return "", 204
