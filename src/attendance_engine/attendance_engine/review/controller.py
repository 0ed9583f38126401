from __future__ import annotations

from flask import Flask, jsonify, session

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import admin_required, as_flag, json_body, json_errors
from ..container import Container
from ..core.exceptions import InvalidInput


def register(app: Flask, container: Container) -> None:
    queue = container.exception_queue

    @app.route("/api/review/forgotten", methods=["GET"], endpoint="api_review_forgotten")
    @admin_required
    @json_errors
    def api_review_forgotten():
        items = []
        for record in queue.forgotten_checkouts():
            row = record.as_dict()
            row["trust_score"] = queue.trust_score_for(record.user_id)
            items.append(row)
        return jsonify({"success": True, "records": items}), 200

    @app.route("/api/review/overtime", methods=["GET"], endpoint="api_review_overtime")
    @admin_required
    @json_errors
    def api_review_overtime():
        items = []
        for record in queue.overtime_approvals():
            row = record.as_dict()
            info = queue.pending_overtime_info(record)
            row["overtime_info"] = info.as_dict() if info else None
            items.append(row)
        return jsonify({"success": True, "records": items}), 200

    @app.route("/api/review/integrity", methods=["GET"], endpoint="api_review_integrity")
    @admin_required
    @json_errors
    def api_review_integrity():
        return jsonify({"success": True, "records": [r.as_dict() for r in queue.integrity_violations()]}), 200

    @app.route("/api/review/<int:record_id>/resolve", methods=["POST"], endpoint="api_review_resolve")
    @admin_required
    @json_errors
    def api_review_resolve(record_id: int):
        data = json_body()
        if not data.get("checkout_time"):
            raise InvalidInput("checkout_time is required")
        record = queue.resolve(
            record_id,
            parse_iso_datetime(str(data["checkout_time"])),
            str(session["user_id"]),
            str(data.get("reason") or ""),
            as_flag(data.get("approve_overtime")),
            approver_name=session.get("name"),
        )
        return jsonify({"success": True, "message": "Record resolved", "record": record.as_dict()}), 200
