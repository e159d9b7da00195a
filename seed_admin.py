#!/usr/bin/env python3
# seed_admin.py

from flask import Flask

from db import db
from models.user import User, Role, Status, normalize_email


def seed_admin(app: Flask | None = None) -> bool:
    """
    Creates or refreshes the bootstrap admin account.

    Email, password and display name come from ADMIN_EMAIL / ADMIN_PASSWORD /
    ADMIN_FULL_NAME. Safe to run repeatedly: an existing account is promoted
    to an Active admin and gets the configured password again.

    Returns True when a new account was created.
    """
    if app is None:
        from app import create_app
        app = create_app()

    with app.app_context():
        email = normalize_email(app.config["ADMIN_EMAIL"])
        password = app.config["ADMIN_PASSWORD"]

        user = User.query.filter_by(email=email).first()
        created = user is None
        if created:
            user = User(email=email, full_name=app.config.get("ADMIN_FULL_NAME", "System Admin"))
            db.session.add(user)
            print(f"➕ Created admin account `{email}`.")
        else:
            print(f"🔄 Updated admin account `{email}` with a fresh password.")

        user.role = Role.ADMIN.value
        user.status = Status.ACTIVE.value
        user.set_password(password)
        db.session.commit()
        print("✅ Seeded the admin account successfully. Change the password after first login.")
        return created


if __name__ == "__main__":
    seed_admin()
