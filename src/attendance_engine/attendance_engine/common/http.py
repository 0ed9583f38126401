"""Helpers shared by the JSON controllers."""

from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AcquisitionInProgress,
    DependencyUnavailable,
    DomainError,
    IntegrityError,
    InvalidInput,
    InvalidState,
    PermissionDenied,
    ShiftSelectionRequired,
)

logger = logging.getLogger(__name__)


def _status_for(e: DomainError) -> int:
    if isinstance(e, PermissionDenied):
        return 403
    if isinstance(e, (InvalidState, AcquisitionInProgress)):
        return 409
    if isinstance(e, DependencyUnavailable):
        return 503
    if isinstance(e, IntegrityError):
        return 500
    return 400


def error_response(e: DomainError):
    body = {"success": False, "kind": e.kind, "message": e.reason or str(e)}
    if isinstance(e, PermissionDenied) and e.result is not None:
        body["result"] = e.result.as_dict()
    if isinstance(e, ShiftSelectionRequired):
        body["shifts"] = [s.as_dict() for s in e.candidates]
    return jsonify(body), _status_for(e)


def json_errors(view):
    """Turn domain errors into JSON responses; anything else is a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return jsonify({"success": False, "kind": "server_error", "message": "Internal server error"}), 500

    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "kind": "unauthenticated", "message": "Please log in first"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "kind": "unauthenticated", "message": "Please log in first"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"success": False, "kind": "forbidden", "message": "Admins only"}), 403
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


def as_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
