# tests/test_totp.py
from datetime import datetime, timedelta, timezone

import pyotp
import pytest

from services import totp
from services.errors import AuthenticationError, ValidationError

NOW = datetime(2026, 3, 1, 12, 0, 15, tzinfo=timezone.utc)


def test_generate_persists_secret_but_does_not_enable(make_user):
    user = make_user()
    enrollment = totp.generate(user)

    assert len(enrollment.secret) == 32
    assert user.two_factor_secret == enrollment.secret
    assert user.two_factor_enabled is False
    assert enrollment.provisioning_uri.startswith("otpauth://totp/")
    assert "a%40x.com" in enrollment.provisioning_uri or "a@x.com" in enrollment.provisioning_uri


def test_start_enrollment_refuses_when_already_enabled(enrolled_user):
    user, secret = enrolled_user()
    with pytest.raises(ValidationError):
        totp.start_enrollment(user)
    assert user.two_factor_secret == secret


def test_verify_setup_without_secret(make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        totp.verify_setup(user, "123456")


@pytest.mark.parametrize("offset", [-30, 0, 30])
def test_one_step_drift_accepted(make_user, offset):
    user = make_user()
    enrollment = totp.generate(user)
    code = pyotp.TOTP(enrollment.secret).at(NOW + timedelta(seconds=offset))

    totp.verify_setup(user, code, now=NOW)
    assert user.two_factor_enabled is True


@pytest.mark.parametrize("offset", [-90, 60, 90])
def test_two_steps_away_rejected(make_user, offset):
    user = make_user()
    enrollment = totp.generate(user)
    t = pyotp.TOTP(enrollment.secret)
    code = t.at(NOW + timedelta(seconds=offset))
    window = {t.at(NOW + timedelta(seconds=d)) for d in (-30, 0, 30)}
    if code in window:
        pytest.skip("random collision between time steps")

    with pytest.raises(AuthenticationError):
        totp.verify_setup(user, code, now=NOW)
    assert user.two_factor_enabled is False


def test_verify_login_accepts_spaces(enrolled_user):
    user, secret = enrolled_user()
    code = pyotp.TOTP(secret).at(NOW)
    totp.verify_login(user, f" {code[:3]} {code[3:]} ", now=NOW)
