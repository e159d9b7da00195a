# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import request, jsonify, g, current_app

from db import db
from models.user import User, Role
from services import policy
from services.errors import AuthenticationError
from services.tokens import decode_token

__all__ = ["require_role", "current_user"]


def _bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def current_user() -> User:
    return g.user  # type: ignore[attr-defined]


def require_role(*roles):
    """
    Usage:
      @require_role()           -> any authenticated, active user (admins always pass)
      @require_role("admin")    -> admins only
    """
    # Support passing a single list/tuple as well
    if len(roles) == 1 and isinstance(roles[0], (list, tuple, set)):
        roles = tuple(roles[0])
    required = {Role.parse(str(r)) for r in roles if r}
    if None in required:
        raise ValueError(f"unknown role in {roles!r}")

    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            token = _bearer_token()
            if not token:
                return jsonify(error="Not authorized, no token"), 401

            try:
                payload = decode_token(token)
            except AuthenticationError as e:
                return jsonify(error=e.message), 401

            uid = payload.get("user_id")
            user = db.session.get(User, uid) if uid is not None else None
            if not user:
                return jsonify(error="User no longer exists"), 401

            # Role/status are read from the stored record, not the token claim
            decision = policy.evaluate(user.role_enum, user.status_enum, required)

            current_app.logger.info(
                "[guard] %s %s uid=%s role=%s status=%s allowed=%s ip=%s",
                request.method,
                request.path,
                user.id,
                user.role,
                user.status,
                decision.allowed,
                request.remote_addr,
            )

            if not decision.allowed:
                return jsonify(error=decision.reason), decision.status_code

            g.user = user  # type: ignore[attr-defined]
            return f(*args, **kwargs)

        return wrapped

    return decorator
