# tests/test_users.py
import pytest

from models.task import Task
from models.user import User
from seed_admin import seed_admin
from services import tasks, users
from services.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError


def test_register_normalises_and_never_grants_admin(app):
    user = users.register(full_name="Eve", email=" Eve@X.com ", password="p1", role="admin")
    assert user.email == "eve@x.com"
    assert user.role == "user"
    assert user.status == "Active"
    assert user.two_factor_enabled is False


def test_register_duplicate_email(make_user):
    make_user()
    with pytest.raises(ConflictError):
        users.register(email="A@x.com", password="p1")


def test_register_requires_credentials(app):
    with pytest.raises(ValidationError):
        users.register(email="a@x.com")
    with pytest.raises(ValidationError):
        users.register(email="not-an-email", password="p1")


def test_profile_update(make_user):
    user = make_user()
    make_user(email="taken@x.com")

    users.update_profile(user, {"fullName": "Alice B", "phoneNumber": "9876543210", "twoFactorMethod": "whatsapp"})
    assert (user.full_name, user.phone_number, user.two_factor_method) == ("Alice B", "9876543210", "whatsapp")

    with pytest.raises(ConflictError):
        users.update_profile(user, {"email": "taken@x.com"})
    with pytest.raises(ValidationError):
        users.update_profile(user, {"twoFactorMethod": "sms"})


def test_change_and_reset_password(make_user):
    user = make_user()
    with pytest.raises(AuthenticationError):
        users.change_password(user, "wrong", "newpass1")
    with pytest.raises(ValidationError):
        users.change_password(user, "p1", "short")

    users.change_password(user, "p1", "newpass1")
    assert user.check_password("newpass1")

    users.reset_password(user, "another1")
    assert user.check_password("another1")


def test_admin_create_forces_user_role(app):
    user = users.create_user({"email": "n@x.com", "password": "p1", "status": "Inactive", "role": "admin"})
    assert user.role == "user"
    assert user.status == "Inactive"


def test_admin_update_and_stats(make_user):
    user = make_user()
    make_user(email="b@x.com", status="Inactive")

    users.update_user(user.id, {"status": "inactive", "role": "admin"})
    assert user.status == "Inactive"
    assert user.role == "admin"
    assert users.stats() == {"totalUsers": 2, "activeUsers": 0, "inactiveUsers": 2}

    with pytest.raises(ValidationError):
        users.update_user(user.id, {"status": "Suspended"})
    with pytest.raises(NotFoundError):
        users.update_user(999, {})


def test_delete_user_cascades_tasks(make_user):
    admin = make_user(email="boss@x.com", role="admin")
    alice = make_user()
    tasks.create_task(admin, title="t", description="d", assign_to_email="a@x.com")

    users.delete_user(alice.id)
    assert User.query.count() == 1
    assert Task.query.count() == 0


def test_to_public_dict_hides_secrets(enrolled_user):
    user, _ = enrolled_user()
    out = user.to_public_dict()
    assert "password_hash" not in out
    assert not any("secret" in k.lower() or "otp" in k.lower() for k in out)


def test_seed_admin_is_idempotent(app):
    assert seed_admin(app) is True
    assert seed_admin(app) is False

    admin = User.query.filter_by(email=app.config["ADMIN_EMAIL"]).one()
    assert admin.is_admin
    assert admin.check_password(app.config["ADMIN_PASSWORD"])
