"""
Request validation for the users API: JSON body with the required fields.
"""
from flask import jsonify, request

REQUIRED_USER_FIELDS = ("id", "name")
REQUIRED_CHANGE_FIELDS = ("name",)


def validate_body(required_fields):
    """Return (None, None) if valid, else (response, status_code)."""

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(success=False, error="Invalid or missing JSON body"), 400
    missing = [f for f in required_fields if data.get(f) in (None, "")]
    if missing:
        return jsonify(success=False, error=f"Missing required fields: {', '.join(missing)}"), 400
    if "id" in data and not isinstance(data["id"], int):
        return jsonify(success=False, error="id must be an integer"), 400
    return None, None


def validate_new_user():
    """Use for POST /users."""
    return validate_body(REQUIRED_USER_FIELDS)


def validate_user_changes():
    """Use for PUT /users/<id>."""
    return validate_body(REQUIRED_CHANGE_FIELDS)
