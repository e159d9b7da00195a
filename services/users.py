# services/users.py
"""
Account management: self-service (register / profile / passwords) and the
admin user-management panel.
"""
from __future__ import annotations

from flask import current_app

from db import db
from models.user import User, Role, Status, TWO_FACTOR_METHODS, is_valid_email, normalize_email
from services.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError


def _clean(v) -> str:
    return str(v).strip() if v is not None else ""


def _check_email(raw) -> str:
    email = normalize_email(raw)
    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address")
    return email


def _check_password(raw) -> str:
    pw = raw if isinstance(raw, str) else ""
    min_len = int(current_app.config.get("MIN_PASSWORD_LENGTH", 6))
    if len(pw) < min_len:
        raise ValidationError(f"Password must be at least {min_len} characters")
    return pw


def _ensure_email_free(email: str, *, exclude_id: int | None = None) -> None:
    q = User.query.filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first():
        raise ConflictError("User already exists")


def _new_user(*, full_name, email, password, phone_number, role: Role, status: Status) -> User:
    if not email or not password or not isinstance(password, str):
        raise ValidationError("Please provide email and password")
    email = _check_email(email)
    _ensure_email_free(email)

    user = User(
        full_name=_clean(full_name) or None,
        email=email,
        phone_number=_clean(phone_number) or None,
        role=role.value,
        status=status.value,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


# ── Self-service ────────────────────────────────────────────────────────────

def register(*, full_name=None, email=None, password=None, phone_number=None, role=None) -> User:
    # Self-registration never grants admin
    requested = Role.parse(role)
    if requested is Role.ADMIN:
        current_app.logger.warning("[users] admin role requested at registration email=%s; coerced to user", email)

    user = _new_user(
        full_name=full_name,
        email=email,
        password=password,
        phone_number=phone_number,
        role=Role.USER,
        status=Status.ACTIVE,
    )
    current_app.logger.info("[users] registered uid=%s", user.id)
    return user


def update_profile(user: User, data: dict) -> User:
    if data.get("fullName"):
        user.full_name = _clean(data["fullName"])

    if data.get("email"):
        email = _check_email(data["email"])
        if email != user.email:
            _ensure_email_free(email, exclude_id=user.id)
            user.email = email

    if "phoneNumber" in data:
        user.phone_number = _clean(data["phoneNumber"]) or None

    if data.get("twoFactorMethod"):
        method = _clean(data["twoFactorMethod"]).lower()
        if method not in TWO_FACTOR_METHODS:
            raise ValidationError("twoFactorMethod must be 'authenticator' or 'whatsapp'")
        user.two_factor_method = method

    db.session.commit()
    return user


def change_password(user: User, current: str, new: str) -> None:
    if not user.check_password(current or ""):
        raise AuthenticationError("Invalid current password")
    user.set_password(_check_password(new))
    db.session.commit()
    current_app.logger.info("[users] password changed uid=%s", user.id)


def reset_password(user: User, new: str) -> None:
    user.set_password(_check_password(new))
    db.session.commit()
    current_app.logger.info("[users] password reset uid=%s", user.id)


# ── Admin panel ─────────────────────────────────────────────────────────────

def list_users() -> list[User]:
    return User.query.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(data: dict) -> User:
    status = Status.ACTIVE
    if data.get("status"):
        status = Status.parse(data["status"])
        if status is None:
            raise ValidationError("status must be 'Active' or 'Inactive'")

    user = _new_user(
        full_name=data.get("fullName"),
        email=data.get("email"),
        password=data.get("password"),
        phone_number=data.get("phoneNumber"),
        role=Role.USER,
        status=status,
    )
    current_app.logger.info("[users] admin created uid=%s status=%s", user.id, user.status)
    return user


def update_user(user_id: int, data: dict) -> User:
    user = get_user(user_id)

    if data.get("fullName"):
        user.full_name = _clean(data["fullName"])
    if data.get("email"):
        email = _check_email(data["email"])
        if email != user.email:
            _ensure_email_free(email, exclude_id=user.id)
            user.email = email
    if data.get("phoneNumber"):
        user.phone_number = _clean(data["phoneNumber"])
    if data.get("role"):
        role = Role.parse(data["role"])
        if role is None:
            raise ValidationError("role must be 'user' or 'admin'")
        user.role = role.value
    if data.get("status"):
        status = Status.parse(data["status"])
        if status is None:
            raise ValidationError("status must be 'Active' or 'Inactive'")
        user.status = status.value
    if data.get("password"):
        user.set_password(_check_password(data["password"]))

    db.session.commit()
    current_app.logger.info("[users] admin updated uid=%s", user.id)
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("[users] deleted uid=%s", user_id)


def stats() -> dict:
    return {
        "totalUsers": User.query.count(),
        "activeUsers": User.query.filter_by(status=Status.ACTIVE.value).count(),
        "inactiveUsers": User.query.filter_by(status=Status.INACTIVE.value).count(),
    }
