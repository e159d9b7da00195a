# services/totp.py
"""
Authenticator-app (TOTP) enrollment and verification.

  - generate(user)            -> Enrollment; persists a fresh secret, leaves
                                 two_factor_enabled untouched
  - start_enrollment(user)    -> same, but refuses when 2FA is already on
  - verify_setup(user, code)  -> flips two_factor_enabled on a matching code
  - verify_login(user, code)  -> checks a code for an enrolled user

Codes are accepted one 30-second step either side of now.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO

import pyotp
import qrcode
from flask import current_app

from db import db
from models.user import User
from services.errors import AuthenticationError, ValidationError

VALID_WINDOW = 1


@dataclass(frozen=True)
class Enrollment:
    secret: str
    provisioning_uri: str
    qr_code_image: str


def _qr_data_url(payload: str) -> str:
    qr = qrcode.QRCode(box_size=8, border=2)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    bio = BytesIO()
    img.save(bio, format="PNG")
    return "data:image/png;base64," + base64.b64encode(bio.getvalue()).decode("ascii")


def provisioning_uri(secret: str, account: str) -> str:
    issuer = current_app.config.get("TOTP_ISSUER", "CareerHub")
    return pyotp.TOTP(secret).provisioning_uri(name=account, issuer_name=issuer)


def generate(user: User) -> Enrollment:
    secret = pyotp.random_base32()
    user.two_factor_secret = secret
    db.session.commit()

    uri = provisioning_uri(secret, user.email)
    current_app.logger.info("[totp] new secret issued uid=%s enabled=%s", user.id, user.two_factor_enabled)
    return Enrollment(secret=secret, provisioning_uri=uri, qr_code_image=_qr_data_url(uri))


def start_enrollment(user: User) -> Enrollment:
    if user.two_factor_enabled:
        raise ValidationError("2FA is already enabled for this account")
    return generate(user)


def _matches(secret: str, code: str, now: datetime | None) -> bool:
    code = "".join(str(code or "").split())
    if not code:
        return False
    return pyotp.TOTP(secret).verify(code, for_time=now, valid_window=VALID_WINDOW)


def verify_setup(user: User, code: str, *, now: datetime | None = None) -> None:
    if not user.two_factor_secret:
        raise ValidationError("No 2FA secret found. Please start 2FA setup first.")

    if not _matches(user.two_factor_secret, code, now):
        current_app.logger.info("[totp] setup code rejected uid=%s", user.id)
        raise AuthenticationError("Invalid OTP. Please try again.")

    user.two_factor_enabled = True
    db.session.commit()
    current_app.logger.info("[totp] 2FA enabled uid=%s", user.id)


def verify_login(user: User, code: str, *, now: datetime | None = None) -> None:
    if not (user.two_factor_enabled and user.two_factor_secret):
        raise ValidationError("2FA is not enabled for this user")

    if not _matches(user.two_factor_secret, code, now):
        current_app.logger.info("[totp] login code rejected uid=%s", user.id)
        raise AuthenticationError("Invalid OTP. Please try again.")
