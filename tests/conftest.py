# tests/conftest.py
import pyotp
import pytest

from app import create_app
from db import db
from models.user import User


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(
        email="a@x.com",
        password="p1",
        *,
        role="user",
        status="Active",
        phone_number=None,
        full_name="Alice Example",
        totp_secret=None,
        two_factor_enabled=False,
    ) -> User:
        user = User(
            email=email,
            full_name=full_name,
            role=role,
            status=status,
            phone_number=phone_number,
            two_factor_secret=totp_secret,
            two_factor_enabled=two_factor_enabled,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def enrolled_user(make_user):
    """Non-admin with TOTP already enabled; returns (user, secret)."""
    def _make(**kwargs):
        secret = pyotp.random_base32()
        user = make_user(totp_secret=secret, two_factor_enabled=True, **kwargs)
        return user, secret

    return _make


@pytest.fixture
def auth_header(app):
    from services.tokens import issue_token

    def _hdr(user: User) -> dict:
        return {"Authorization": f"Bearer {issue_token(user.id, user.role)}"}

    return _hdr


@pytest.fixture
def wrong_totp():
    """A 6-digit code outside the accepted drift window for `secret`."""
    import time

    def _pick(secret: str) -> str:
        totp = pyotp.TOTP(secret)
        now = time.time()
        valid = {totp.at(now + d) for d in (-60, -30, 0, 30, 60)}
        return next(c for c in ("000000", "111111", "222222", "333333", "444444", "555555", "666666") if c not in valid)

    return _pick
