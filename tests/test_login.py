# tests/test_login.py
import time

import jwt
import pyotp
import pytest

from db import db
from services import login as login_svc
from services.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from services.tokens import decode_token


def test_wrong_password_and_unknown_email_fail_the_same_way(make_user):
    make_user()
    wrong = login_svc.login("a@x.com", "nope")
    missing = login_svc.login("ghost@x.com", "p1")

    assert isinstance(wrong, login_svc.Rejected)
    assert isinstance(missing, login_svc.Rejected)
    assert type(wrong.error) is type(missing.error) is AuthenticationError
    assert wrong.error.message == missing.error.message


def test_email_lookup_is_case_insensitive(make_user):
    make_user()
    outcome = login_svc.login("  A@X.COM ", "p1")
    assert isinstance(outcome, login_svc.SetupRequired)


@pytest.mark.parametrize("enabled", [False, True])
def test_admin_never_needs_2fa(make_user, enabled):
    admin = make_user(
        email="boss@x.com",
        role="admin",
        totp_secret=pyotp.random_base32() if enabled else None,
        two_factor_enabled=enabled,
    )
    outcome = login_svc.login("boss@x.com", "p1")

    assert isinstance(outcome, login_svc.TokenIssued)
    claims = decode_token(outcome.token)
    assert claims["user_id"] == admin.id
    assert claims["role"] == "admin"


def test_inactive_admin_still_gets_token(make_user):
    make_user(email="boss@x.com", role="admin", status="Inactive")
    assert isinstance(login_svc.login("boss@x.com", "p1"), login_svc.TokenIssued)


def test_inactive_user_rejected_even_with_correct_password(make_user):
    make_user(status="Inactive")
    outcome = login_svc.login("a@x.com", "p1")

    assert isinstance(outcome, login_svc.Rejected)
    assert isinstance(outcome.error, AuthorizationError)
    assert outcome.error.status_code == 403


def test_unenrolled_user_gets_setup_not_token(make_user):
    user = make_user()
    outcome = login_svc.login("a@x.com", "p1")

    assert isinstance(outcome, login_svc.SetupRequired)
    assert outcome.enrollment.secret == user.two_factor_secret
    assert outcome.enrollment.qr_code_image.startswith("data:image/png;base64,")
    assert "issuer=CareerHub" in outcome.enrollment.provisioning_uri
    assert user.two_factor_enabled is False


def test_repeat_login_before_setup_rotates_secret(make_user):
    make_user()
    first = login_svc.login("a@x.com", "p1")
    second = login_svc.login("a@x.com", "p1")
    assert isinstance(second, login_svc.SetupRequired)
    assert first.enrollment.secret != second.enrollment.secret


def test_enrolled_user_without_phone_gets_authenticator_only(enrolled_user):
    enrolled_user()
    outcome = login_svc.login("a@x.com", "p1")

    assert isinstance(outcome, login_svc.ChallengeRequired)
    assert outcome.methods == ("authenticator",)
    assert outcome.masked_phone is None


def test_enrolled_user_with_phone_gets_whatsapp_and_masked_number(enrolled_user):
    enrolled_user(phone_number="9876543210")
    outcome = login_svc.login("a@x.com", "p1")

    assert isinstance(outcome, login_svc.ChallengeRequired)
    assert outcome.methods == ("authenticator", "whatsapp")
    assert outcome.masked_phone == "987****210"


def test_complete_setup_enables_2fa_and_issues_token(make_user):
    user = make_user()
    setup = login_svc.login("a@x.com", "p1")
    code = pyotp.TOTP(setup.enrollment.secret).now()

    issued = login_svc.complete_setup(user.id, code)

    assert isinstance(issued, login_svc.TokenIssued)
    assert user.two_factor_enabled is True
    assert isinstance(login_svc.login("a@x.com", "p1"), login_svc.ChallengeRequired)


def test_complete_setup_wrong_code_keeps_secret(make_user, wrong_totp):
    user = make_user()
    setup = login_svc.login("a@x.com", "p1")

    with pytest.raises(AuthenticationError):
        login_svc.complete_setup(user.id, wrong_totp(setup.enrollment.secret))

    assert user.two_factor_enabled is False
    assert user.two_factor_secret == setup.enrollment.secret


def test_complete_totp_challenge(enrolled_user):
    user, secret = enrolled_user()
    issued = login_svc.complete_totp_challenge(user.id, pyotp.TOTP(secret).now())
    assert decode_token(issued.token)["user_id"] == user.id


def test_followups_refuse_inactive_users(enrolled_user):
    user, secret = enrolled_user(status="Inactive")
    with pytest.raises(AuthorizationError):
        login_svc.complete_totp_challenge(user.id, pyotp.TOTP(secret).now())


def test_followups_unknown_user(app):
    with pytest.raises(NotFoundError):
        login_svc.complete_totp_challenge(999, "123456")
    with pytest.raises(NotFoundError):
        login_svc.complete_setup("not-a-number", "123456")


def test_totp_challenge_requires_enrollment(make_user):
    user = make_user(totp_secret=pyotp.random_base32(), two_factor_enabled=False)
    with pytest.raises(ValidationError):
        login_svc.complete_totp_challenge(user.id, "123456")


def test_token_claims_are_only_id_role_exp(make_user, app):
    make_user(email="boss@x.com", role="admin")
    outcome = login_svc.login("boss@x.com", "p1")
    claims = jwt.decode(outcome.token, app.config["SECRET_KEY"], algorithms=["HS256"])

    assert set(claims) == {"user_id", "role", "exp"}
    ttl = claims["exp"] - time.time()
    assert 29.9 * 86400 < ttl <= 30 * 86400


def test_user_deleted_between_steps(make_user):
    user = make_user()
    uid = user.id
    db.session.delete(user)
    db.session.commit()
    with pytest.raises(NotFoundError):
        login_svc.request_whatsapp_code(uid)


@pytest.mark.parametrize(
    "phone, masked",
    [("9876543210", "987****210"), ("+14155550123", "+14****123"), ("123456", "******"), ("12", "**")],
)
def test_masked_phone_never_reveals_short_numbers(make_user, phone, masked):
    user = make_user(phone_number=phone)
    assert user.masked_phone == masked
