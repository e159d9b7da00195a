# routes/user.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role, current_user
from services import tasks, users

user_bp = Blueprint("user", __name__, url_prefix="/api/user")


# ── Profile ─────────────────────────────────────────────────────────────────
@user_bp.route("/profile", methods=["GET"])
@require_role()
def get_profile():
    return jsonify(current_user().to_public_dict()), 200


@user_bp.route("/update-profile", methods=["PATCH"])
@require_role()
def update_profile():
    data = request.get_json(silent=True) or {}
    user = users.update_profile(current_user(), data)
    return jsonify(user.to_public_dict()), 200


@user_bp.route("/change-password", methods=["PATCH"])
@require_role()
def change_password():
    data = request.get_json(silent=True) or {}
    users.change_password(current_user(), data.get("currentPassword") or "", data.get("newPassword"))
    return jsonify(message="Password updated successfully"), 200


@user_bp.route("/reset-password", methods=["PATCH"])
@require_role()
def reset_password():
    data = request.get_json(silent=True) or {}
    users.reset_password(current_user(), data.get("newPassword"))
    return jsonify(message="Password reset successfully"), 200


# ── My tasks ────────────────────────────────────────────────────────────────
@user_bp.route("/tasks", methods=["GET"])
@require_role()
def my_tasks():
    rows = tasks.list_tasks(current_user())
    return jsonify(
        success=True,
        count=len(rows),
        data=[t.to_dict(include_assignee=False) for t in rows],
    ), 200


@user_bp.route("/tasks/<int:task_id>", methods=["GET"])
@require_role()
def my_task(task_id: int):
    task = tasks.get_task(current_user(), task_id)
    return jsonify(success=True, data=task.to_dict(include_assignee=False)), 200


@user_bp.route("/tasks/<int:task_id>/complete", methods=["PATCH"])
@require_role()
def complete_my_task(task_id: int):
    task = tasks.complete_task(current_user(), task_id)
    return jsonify(
        success=True,
        message="Task marked as completed",
        data=task.to_dict(include_assignee=False),
    ), 200
