# services/tasks.py
"""
Task assignment, scoped by role.

Admins see and modify every task. Ordinary users see only tasks assigned to
them and may only move those to Completed.
"""
from __future__ import annotations

from flask import current_app

from db import db
from models.task import Task, TaskStatus, TITLE_MAX_LEN
from models.user import User, is_valid_email, normalize_email
from services.errors import AuthorizationError, NotFoundError, ValidationError


def _require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Insufficient permissions")


def _check_title(raw) -> str:
    title = str(raw or "").strip()
    if not title:
        raise ValidationError("Please add a task title")
    if len(title) > TITLE_MAX_LEN:
        raise ValidationError(f"Title cannot be more than {TITLE_MAX_LEN} characters")
    return title


def _check_description(raw) -> str:
    description = str(raw or "").strip()
    if not description:
        raise ValidationError("Please add a task description")
    return description


def _scoped(actor: User):
    q = Task.query
    if not actor.is_admin:
        q = q.filter(Task.assigned_to_id == actor.id)
    return q


def create_task(admin: User, *, title=None, description=None, assign_to_email=None) -> Task:
    _require_admin(admin)

    if not title or not description or not assign_to_email:
        raise ValidationError("Please provide title, description, and assignToEmail")

    email = normalize_email(assign_to_email)
    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address")

    assignee = User.query.filter_by(email=email).first()
    if not assignee:
        raise NotFoundError(f"No user found with email: {assign_to_email}")

    task = Task(
        title=_check_title(title),
        description=_check_description(description),
        assignee=assignee,
        assigner=admin,
        status=TaskStatus.PENDING.value,
    )
    db.session.add(task)
    db.session.commit()
    current_app.logger.info("[tasks] created id=%s to=%s by=%s", task.id, assignee.id, admin.id)
    return task


def list_tasks(actor: User) -> list[Task]:
    return _scoped(actor).order_by(Task.created_at.desc(), Task.id.desc()).all()


def get_task(actor: User, task_id: int) -> Task:
    task = _scoped(actor).filter(Task.id == task_id).first()
    if not task:
        if actor.is_admin:
            raise NotFoundError("Task not found")
        raise NotFoundError("Task not found or not assigned to you")
    return task


def update_task(actor: User, task_id: int, *, title=None, description=None) -> Task:
    _require_admin(actor)

    if not title and not description:
        raise ValidationError("Please provide at least a title or description to update")

    new_title = _check_title(title) if title else None
    new_description = _check_description(description) if description else None

    task = get_task(actor, task_id)
    if new_title:
        task.title = new_title
    if new_description:
        task.description = new_description

    db.session.commit()
    current_app.logger.info("[tasks] updated id=%s by=%s", task.id, actor.id)
    return task


def set_status(actor: User, task_id: int, status) -> Task:
    _require_admin(actor)

    new_status = TaskStatus.parse(status)
    if new_status is None:
        raise ValidationError('Status must be either "Pending" or "Completed"')

    task = get_task(actor, task_id)
    task.status = new_status.value
    db.session.commit()
    current_app.logger.info("[tasks] status id=%s -> %s by=%s", task.id, task.status, actor.id)
    return task


def complete_task(actor: User, task_id: int) -> Task:
    """Assignee-only transition to Completed; never back to Pending."""
    task = Task.query.filter(Task.id == task_id, Task.assigned_to_id == actor.id).first()
    if not task:
        raise NotFoundError("Task not found or not assigned to you")

    task.status = TaskStatus.COMPLETED.value
    db.session.commit()
    current_app.logger.info("[tasks] completed id=%s by=%s", task.id, actor.id)
    return task


def delete_task(actor: User, task_id: int) -> None:
    _require_admin(actor)
    task = get_task(actor, task_id)
    db.session.delete(task)
    db.session.commit()
    current_app.logger.info("[tasks] deleted id=%s by=%s", task_id, actor.id)
