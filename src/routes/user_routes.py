"""
Users API built on the quick-query helpers: list, show, create, update, delete, count, lookup.
"""
import logging

from flask import Blueprint, jsonify, request

import config
from flask_database import UnsafeInputError, database
from middleware.validate_request import validate_new_user, validate_user_changes

logger = logging.getLogger(__name__)

blueprint = Blueprint("users", __name__)

NO_DATABASE = {"success": False, "error": "Database unavailable"}


def _list_options(args):
    """?columns=id,name&order_by=-name&limit=10&offset=20 -> quick_select options."""
    options = {}
    if args.get("columns"):
        options["columns"] = [c for c in args["columns"].split(",") if c]
    if args.get("order_by"):
        order_by = []
        for field in args["order_by"].split(","):
            if field.startswith("-"):
                order_by.append({"desc": field[1:]})
            elif field:
                order_by.append({"asc": field})
        options["order_by"] = order_by
    for key in ("limit", "offset"):
        if args.get(key):
            options[key] = args[key]
    return options


def _where(args):
    where = {}
    if "category" in args:
        where["category"] = args["category"] or None
    return where


@blueprint.get("")
def list_users():
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    try:
        users = db.quick_select_many(config.USERS_TABLE, _where(request.args), _list_options(request.args))
    except UnsafeInputError as e:
        return jsonify(success=False, error=str(e)), 400
    except Exception as e:
        logger.exception("users/list: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    return jsonify(success=True, users=users), 200


@blueprint.get("/count")
def count_users():
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    try:
        count = db.quick_count(config.USERS_TABLE, _where(request.args))
    except Exception as e:
        logger.exception("users/count: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    return jsonify(success=True, count=count), 200


@blueprint.get("/lookup")
def lookup_user():
    name = request.args.get("name")
    if not name:
        return jsonify(success=False, error="Missing required parameter: name"), 400
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    try:
        user_id = db.quick_lookup(config.USERS_TABLE, {"name": name}, "id")
    except Exception as e:
        logger.exception("users/lookup: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    if user_id is None:
        return jsonify(success=False, error="No matching user"), 404
    return jsonify(success=True, id=user_id), 200


@blueprint.get("/<int:user_id>")
def show_user(user_id):
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    try:
        user = db.quick_select_one(config.USERS_TABLE, {"id": user_id})
    except Exception as e:
        logger.exception("users/show: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    if user is None:
        return jsonify(success=False, error="No matching user"), 404
    return jsonify(success=True, user=user), 200


@blueprint.post("")
def create_user():
    err, status = validate_new_user()
    if err is not None:
        return err, status
    data = request.get_json()
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    row = {"id": data["id"], "name": data["name"], "category": data.get("category", "user")}
    try:
        db.quick_insert(config.USERS_TABLE, row)
    except Exception as e:
        logger.exception("users/create: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    return jsonify(success=True, user=row), 201


@blueprint.put("/<int:user_id>")
def update_user(user_id):
    err, status = validate_user_changes()
    if err is not None:
        return err, status
    data = request.get_json()
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    try:
        updated = db.quick_update(config.USERS_TABLE, {"id": user_id}, {"name": data["name"]})
    except Exception as e:
        logger.exception("users/update: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    if not updated:
        return jsonify(success=False, error="No matching user"), 404
    return jsonify(success=True), 200


@blueprint.delete("/<int:user_id>")
def delete_user(user_id):
    db = database()
    if db is None:
        return jsonify(NO_DATABASE), 503
    try:
        deleted = db.quick_delete(config.USERS_TABLE, {"id": user_id})
    except Exception as e:
        logger.exception("users/delete: %s", e)
        return jsonify(success=False, error="Internal server error"), 500
    if not deleted:
        return jsonify(success=False, error="No matching user"), 404
    return jsonify(success=True), 200
