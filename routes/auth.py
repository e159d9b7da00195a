# backend/routes/auth.py
from __future__ import annotations

import time

from flask import Blueprint, request, jsonify, current_app

from auth_guard import require_role, current_user
from services import login as login_svc
from services import totp, users
from services.errors import UpstreamError, ValidationError
from services.tokens import issue_token

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_with_token(user, token: str) -> dict:
    out = user.to_public_dict()
    out["token"] = token
    return out


def _require(data: dict, *keys: str) -> list[str]:
    vals = [str(data.get(k) or "").strip() for k in keys]
    if not all(vals):
        raise ValidationError(" and ".join(keys) + " are required")
    return vals


def _render_login(outcome: login_svc.LoginOutcome):
    if isinstance(outcome, login_svc.TokenIssued):
        return jsonify(_user_with_token(outcome.user, outcome.token)), 200

    if isinstance(outcome, login_svc.SetupRequired):
        return jsonify(
            requiresSetup=True,
            userId=outcome.user.id,
            qrCodeImage=outcome.enrollment.qr_code_image,
            base32Secret=outcome.enrollment.secret,
            otpauthUrl=outcome.enrollment.provisioning_uri,
        ), 200

    if isinstance(outcome, login_svc.ChallengeRequired):
        return jsonify(
            requires2FA=True,
            userId=outcome.user.id,
            availableMethods=list(outcome.methods),
            phoneNumber=outcome.masked_phone,
        ), 200

    if isinstance(outcome, login_svc.Rejected):
        raise outcome.error

    raise TypeError(f"unhandled login outcome: {type(outcome).__name__}")


def _render_token(issued: login_svc.TokenIssued):
    return jsonify(
        success=True,
        token=issued.token,
        user=issued.user.to_public_dict(),
    ), 200


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@auth_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
@auth_bp.route("/ping", methods=["GET"])
def ping():
    return jsonify(ok=True, ts=time.time()), 200


# -------------------------------------------------------------------
# Register / login
# -------------------------------------------------------------------
@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    user = users.register(
        full_name=data.get("fullName"),
        email=data.get("email"),
        password=data.get("password"),
        phone_number=data.get("phoneNumber"),
        role=data.get("role"),
    )
    return jsonify(_user_with_token(user, issue_token(user.id, user.role))), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Returns one of:
      - token response (admins)
      - { requiresSetup, userId, qrCodeImage, base32Secret }  (2FA not yet enabled)
      - { requires2FA, userId, availableMethods, phoneNumber } (2FA enabled)
    """
    data = request.get_json(silent=True) or {}
    outcome = login_svc.login(data.get("email") or "", data.get("password") or "")
    return _render_login(outcome)


# -------------------------------------------------------------------
# 2FA follow-ups (public: no JWT exists yet at this point)
# -------------------------------------------------------------------
@auth_bp.route("/verify-2fa-setup-login", methods=["POST"])
def verify_2fa_setup_login():
    data = request.get_json(silent=True) or {}
    user_id, code = _require(data, "userId", "token")
    return _render_token(login_svc.complete_setup(user_id, code))


@auth_bp.route("/verify-2fa-login", methods=["POST"])
def verify_2fa_login():
    data = request.get_json(silent=True) or {}
    user_id, code = _require(data, "userId", "token")
    return _render_token(login_svc.complete_totp_challenge(user_id, code))


@auth_bp.route("/send-whatsapp-otp", methods=["POST"])
def send_whatsapp_otp():
    data = request.get_json(silent=True) or {}
    (user_id,) = _require(data, "userId")
    issued = login_svc.request_whatsapp_code(user_id)

    if issued.delivered:
        return jsonify(message="OTP sent successfully to WhatsApp"), 200

    # Code stays valid either way; only non-production surfaces it
    if current_app.config.get("PRODUCTION_LIKE"):
        raise UpstreamError("Failed to send WhatsApp message")

    return jsonify(
        message="OTP generated (WhatsApp delivery failed, check server logs)",
        deliveryError=issued.delivery_error,
        devOtp=issued.code,
    ), 200


@auth_bp.route("/verify-whatsapp-otp", methods=["POST"])
def verify_whatsapp_otp():
    data = request.get_json(silent=True) or {}
    user_id, code = _require(data, "userId", "otp")
    return _render_token(login_svc.complete_whatsapp_challenge(user_id, code))


# -------------------------------------------------------------------
# 2FA enrollment for an already signed-in user
# -------------------------------------------------------------------
@auth_bp.route("/enable-2fa", methods=["POST"])
@require_role()
def enable_2fa():
    enrollment = totp.start_enrollment(current_user())
    return jsonify(
        success=True,
        qrCodeImage=enrollment.qr_code_image,
        base32Secret=enrollment.secret,
        otpauthUrl=enrollment.provisioning_uri,
    ), 200


@auth_bp.route("/verify-2fa-setup", methods=["POST"])
@require_role()
def verify_2fa_setup():
    data = request.get_json(silent=True) or {}
    (code,) = _require(data, "token")
    totp.verify_setup(current_user(), code)
    return jsonify(success=True, message="2FA has been enabled successfully!"), 200


@auth_bp.route("/me", methods=["GET"])
@require_role()
def me():
    return jsonify(current_user().to_public_dict()), 200
