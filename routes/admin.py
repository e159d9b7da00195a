# routes/admin.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role, current_user
from services import tasks, users

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/stats", methods=["GET"])
@require_role("admin")
def admin_stats():
    return jsonify(users.stats()), 200


# ─────────────────────────────────────────────
# Tasks
# ─────────────────────────────────────────────
@admin_bp.route("/task", methods=["POST"])
@require_role("admin")
def create_task():
    data = request.get_json(silent=True) or {}
    task = tasks.create_task(
        current_user(),
        title=data.get("title"),
        description=data.get("description"),
        assign_to_email=data.get("assignToEmail"),
    )
    return jsonify(
        success=True,
        message="Task created and assigned successfully",
        data=task.to_dict(),
    ), 201


@admin_bp.route("/tasks", methods=["GET"])
@require_role("admin")
def list_tasks():
    rows = tasks.list_tasks(current_user())
    return jsonify(success=True, count=len(rows), data=[t.to_dict() for t in rows]), 200


@admin_bp.route("/task/<int:task_id>", methods=["PATCH"])
@require_role("admin")
def update_task(task_id: int):
    data = request.get_json(silent=True) or {}
    task = tasks.update_task(
        current_user(),
        task_id,
        title=data.get("title"),
        description=data.get("description"),
    )
    return jsonify(success=True, message="Task updated successfully", data=task.to_dict()), 200


@admin_bp.route("/task/<int:task_id>/status", methods=["PATCH"])
@require_role("admin")
def update_task_status(task_id: int):
    data = request.get_json(silent=True) or {}
    task = tasks.set_status(current_user(), task_id, data.get("status"))
    return jsonify(success=True, message="Task status updated successfully", data=task.to_dict()), 200


@admin_bp.route("/task/<int:task_id>", methods=["DELETE"])
@require_role("admin")
def delete_task(task_id: int):
    tasks.delete_task(current_user(), task_id)
    return jsonify(success=True, message="Task deleted successfully"), 200
