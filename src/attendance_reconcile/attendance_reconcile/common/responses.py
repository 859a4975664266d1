from __future__ import annotations

from flask import jsonify

from ..core.exceptions import NetworkError, ValidationError
from .results import ActionResult


def result_response(result: ActionResult, data=None):
    body = {
        "success": result.ok,
        "id": result.subject_id,
        "message": result.message,
        "level": result.level.value,
        "data": data,
    }
    if result.ok:
        return jsonify(body), 200
    if not result.performed:
        return jsonify(body), 409
    return jsonify(body), 502


def error_response(e: Exception):
    if isinstance(e, NetworkError):
        return jsonify({"success": False, "message": str(e), "level": "danger"}), 502
    if isinstance(e, ValidationError):
        return jsonify({"success": False, "message": str(e), "level": "warning"}), 400
    return jsonify({"success": False, "message": "Unexpected server error", "level": "danger"}), 500
