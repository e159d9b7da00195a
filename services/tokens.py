# services/tokens.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from services.errors import AuthenticationError

ALGORITHM = "HS256"


def issue_token(user_id: int, role: str, *, now: datetime | None = None) -> str:
    """Signed session token: subject id + role, fixed validity window, no other claims."""
    now = now or datetime.now(timezone.utc)
    ttl = timedelta(days=int(current_app.config.get("JWT_TTL_DAYS", 30)))
    return jwt.encode(
        {
            "user_id": int(user_id),
            "role": role,
            "exp": now + ttl,
        },
        current_app.config["SECRET_KEY"],
        algorithm=ALGORITHM,
    )


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")
