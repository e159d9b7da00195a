# services/login.py
"""
Multi-step login.

login(email, password) walks, in order:
  1. credentials   -> Rejected(AuthenticationError), same message for unknown email
  2. status        -> Rejected(AuthorizationError) for inactive non-admins
  3. admin         -> TokenIssued (2FA is never required for admins)
  4. not enrolled  -> SetupRequired (fresh TOTP secret + QR)
  5. enrolled      -> ChallengeRequired (authenticator, plus whatsapp if a phone is on file)

The follow-up calls (complete_*) are keyed by user id and finish with
TokenIssued. Failures there are raised, not returned.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from flask import current_app

from db import db
from models.user import User, normalize_email
from services import otp, policy, totp
from services.errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from services.tokens import issue_token

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class TokenIssued:
    user: User
    token: str


@dataclass(frozen=True)
class SetupRequired:
    user: User
    enrollment: totp.Enrollment


@dataclass(frozen=True)
class ChallengeRequired:
    user: User
    methods: tuple[str, ...]
    masked_phone: str | None


@dataclass(frozen=True)
class Rejected:
    error: ServiceError


LoginOutcome = Union[TokenIssued, SetupRequired, ChallengeRequired, Rejected]


def _gate(user: User) -> ServiceError | None:
    decision = policy.evaluate(user.role_enum, user.status_enum)
    if not decision.allowed:
        return AuthorizationError(decision.reason or policy.INACTIVE_MESSAGE, status_code=decision.status_code)
    return None


def _issue(user: User) -> TokenIssued:
    return TokenIssued(user=user, token=issue_token(user.id, user.role))


def challenge_methods(user: User) -> tuple[str, ...]:
    if (user.phone_number or "").strip():
        return ("authenticator", "whatsapp")
    return ("authenticator",)


def login(email: str, password: str) -> LoginOutcome:
    email = normalize_email(email)
    if not email or not password:
        return Rejected(ValidationError("Please provide email and password"))

    user = User.query.filter_by(email=email).first()
    if not (user and user.check_password(password)):
        current_app.logger.info("[auth] login rejected email=%s", email)
        return Rejected(AuthenticationError(INVALID_CREDENTIALS))

    current_app.logger.info("[auth] login attempt uid=%s status=%s role=%s", user.id, user.status, user.role)

    denied = _gate(user)
    if denied is not None:
        return Rejected(denied)

    if user.is_admin:
        current_app.logger.info("[auth] admin login, 2FA bypassed uid=%s", user.id)
        return _issue(user)

    if not user.two_factor_enabled:
        current_app.logger.info("[auth] forcing 2FA setup uid=%s", user.id)
        return SetupRequired(user=user, enrollment=totp.generate(user))

    return ChallengeRequired(user=user, methods=challenge_methods(user), masked_phone=user.masked_phone)


def get_user_or_404(user_id) -> User:
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        raise NotFoundError("User not found")
    user = db.session.get(User, uid)
    if not user:
        raise NotFoundError("User not found")
    return user


def _finish(user: User) -> TokenIssued:
    denied = _gate(user)
    if denied is not None:
        raise denied
    return _issue(user)


def complete_setup(user_id, code: str, *, now: datetime | None = None) -> TokenIssued:
    user = get_user_or_404(user_id)
    totp.verify_setup(user, code, now=now)
    return _finish(user)


def complete_totp_challenge(user_id, code: str, *, now: datetime | None = None) -> TokenIssued:
    user = get_user_or_404(user_id)
    totp.verify_login(user, code, now=now)
    return _finish(user)


def request_whatsapp_code(user_id, *, now: datetime | None = None) -> otp.OtpIssue:
    user = get_user_or_404(user_id)
    return otp.issue(user, now=now)


def complete_whatsapp_challenge(user_id, code: str, *, now: datetime | None = None) -> TokenIssued:
    user = get_user_or_404(user_id)
    otp.verify(user, code, now=now)
    return _finish(user)


__all__ = [
    "TokenIssued", "SetupRequired", "ChallengeRequired", "Rejected", "LoginOutcome",
    "login", "complete_setup", "complete_totp_challenge",
    "request_whatsapp_code", "complete_whatsapp_challenge", "challenge_methods",
]
