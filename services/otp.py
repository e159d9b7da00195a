# services/otp.py
"""
Out-of-band one-time codes (WhatsApp).

Public API:
  - issue(user, now=None)        -> OtpIssue
  - verify(user, code, now=None) -> None (raises on any failure)

State lives in `user_otps` (one row per user). A new issue overwrites the
previous row, so an older unconsumed code stops working immediately.

Known limitation: two concurrent verify() calls may both read the same
attempt count before either writes it back.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash

from db import db
from models.user import User
from models.user_otp import UserOtp
from services.errors import AuthenticationError, ValidationError
from services.whatsapp import send_whatsapp, WhatsAppNotConfigured, WhatsAppDeliveryError


@dataclass(frozen=True)
class OtpIssue:
    code: str
    expires_at: datetime
    delivered: bool
    delivery_error: str | None = None


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _gen_code() -> str:
    # uniform over [100000, 999999]
    return str(100000 + secrets.randbelow(900000))


def issue(user: User, *, now: datetime | None = None) -> OtpIssue:
    if not (user.phone_number or "").strip():
        raise ValidationError("WhatsApp number not registered for this user")

    now = _as_utc(now or _now_utc())
    ttl = int(current_app.config.get("OTP_TTL_MINUTES", 5))
    code = _gen_code()
    expires_at = now + timedelta(minutes=ttl)

    row = user.pending_otp
    if row is None:
        row = UserOtp(user_id=user.id)
        user.pending_otp = row
    row.channel = "whatsapp"
    row.code_hash = generate_password_hash(code)
    # stored naive UTC so SQLite/MySQL round-trip identically
    row.expires_at = expires_at.replace(tzinfo=None)
    row.attempts = 0
    db.session.commit()

    if not current_app.config.get("PRODUCTION_LIKE"):
        current_app.logger.info("[otp] generated uid=%s code=%s", user.id, code)
    else:
        current_app.logger.info("[otp] generated uid=%s", user.id)

    body = f"Your CareerHub verification code is: {code}. It expires in {ttl} minutes."
    try:
        send_whatsapp(user.phone_number, body)
    except WhatsAppNotConfigured as e:
        current_app.logger.warning("[otp] delivery skipped uid=%s: %s", user.id, e)
        return OtpIssue(code, expires_at, delivered=False, delivery_error=str(e))
    except WhatsAppDeliveryError as e:
        current_app.logger.exception("[otp] delivery failed uid=%s", user.id)
        return OtpIssue(code, expires_at, delivered=False, delivery_error=str(e))

    return OtpIssue(code, expires_at, delivered=True)


def verify(user: User, code: str, *, now: datetime | None = None) -> None:
    row = user.pending_otp
    if row is None:
        raise ValidationError("No OTP requested")

    now = _as_utc(now or _now_utc())
    if now > row.expires_at_utc:
        raise AuthenticationError("OTP expired")

    max_attempts = int(current_app.config.get("OTP_MAX_ATTEMPTS", 5))
    if row.attempts >= max_attempts:
        raise AuthenticationError("Too many failed attempts. Please request a new OTP.")

    code = "".join(str(code or "").split())
    if not (code and check_password_hash(row.code_hash, code)):
        row.attempts += 1
        db.session.commit()
        current_app.logger.info("[otp] mismatch uid=%s attempts=%s", user.id, row.attempts)
        raise AuthenticationError("Invalid OTP")

    # consumed: clears code, expiry and counter together
    user.pending_otp = None
    db.session.commit()
    current_app.logger.info("[otp] verified uid=%s", user.id)
