# routes/user_management.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from services import users

user_mgmt_bp = Blueprint("user_management", __name__, url_prefix="/api/user-management")


@user_mgmt_bp.route("/users", methods=["GET"])
@require_role("admin")
def list_users():
    return jsonify([u.to_public_dict() for u in users.list_users()]), 200


@user_mgmt_bp.route("/user/<int:user_id>", methods=["GET"])
@require_role("admin")
def get_user(user_id: int):
    return jsonify(users.get_user(user_id).to_public_dict()), 200


@user_mgmt_bp.route("/create", methods=["POST"])
@require_role("admin")
def create_user():
    data = request.get_json(silent=True) or {}
    user = users.create_user(data)
    return jsonify(user.to_public_dict()), 201


@user_mgmt_bp.route("/user/<int:user_id>", methods=["PUT"])
@require_role("admin")
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}
    return jsonify(users.update_user(user_id, data).to_public_dict()), 200


@user_mgmt_bp.route("/user/<int:user_id>", methods=["DELETE"])
@require_role("admin")
def delete_user(user_id: int):
    users.delete_user(user_id)
    return jsonify(message="User removed"), 200
