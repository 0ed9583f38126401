from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import json_body, json_errors, login_required
from ..container import Container
from ..core.exceptions import InvalidInput
from ..geo.acquisition import SubmittedPosition


def register(app: Flask, container: Container) -> None:
    def _current_user_id() -> str:
        return str(session["user_id"])

    def _position(data: dict):
        if data.get("lat") is None or data.get("lng") is None:
            raise InvalidInput("lat and lng are required")
        # One position request per session at a time.
        return container.position_acquirer.acquire(
            _current_user_id(),
            SubmittedPosition(data.get("lat"), data.get("lng")),
        )

    @app.route("/api/checkin/authorize", methods=["POST"], endpoint="api_checkin_authorize")
    @login_required
    @json_errors
    def api_checkin_authorize():
        """Dry authorization: where am I and which shifts could I pick."""
        point = _position(json_body())
        result = container.attendance_service.authorize(_current_user_id(), point.lat, point.lng)
        return jsonify({"success": True, "result": result.as_dict()}), 200

    @app.route("/api/checkin", methods=["POST"], endpoint="api_checkin")
    @login_required
    @json_errors
    def api_checkin():
        data = json_body()
        point = _position(data)
        record = container.attendance_service.check_in(
            _current_user_id(),
            point.lat,
            point.lng,
            shift_id=data.get("shift_id"),
            note=data.get("note"),
        )
        return jsonify({"success": True, "message": "Checked in", "record": record.as_dict()}), 201

    @app.route("/api/checkout", methods=["POST"], endpoint="api_checkout")
    @login_required
    @json_errors
    def api_checkout():
        data = json_body()
        point = _position(data)
        record = container.attendance_service.check_out_current(
            _current_user_id(),
            point.lat,
            point.lng,
            note=data.get("note"),
        )
        return jsonify({"success": True, "message": "Checked out", "record": record.as_dict()}), 200

    @app.route("/api/checkin/current", methods=["GET"], endpoint="api_checkin_current")
    @login_required
    @json_errors
    def api_checkin_current():
        record = container.attendance_service.get_current_open(_current_user_id())
        return jsonify({"success": True, "record": record.as_dict() if record else None}), 200

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    @login_required
    @json_errors
    def api_attendance_history():
        try:
            limit = int(request.args.get("limit", 30))
        except ValueError:
            raise InvalidInput("limit must be an integer")
        records = container.attendance_service.get_history(_current_user_id(), limit=max(1, min(limit, 200)))
        return jsonify({"success": True, "records": [r.as_dict() for r in records]}), 200
