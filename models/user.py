# models/user.py
from __future__ import annotations

import enum
import re

from db import db
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, raw: str | None) -> "Role | None":
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return None


class Status(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"

    @classmethod
    def parse(cls, raw: str | None) -> "Status | None":
        v = (raw or "").strip().lower()
        for s in cls:
            if s.value.lower() == v:
                return s
        return None


TWO_FACTOR_METHODS = ("authenticator", "whatsapp")


def normalize_email(raw: str | None) -> str:
    return (raw or "").strip().lower()


# local@domain.tld with dot-free domain labels
EMAIL_RE = re.compile(r"[^@\s]+@[^@\s.]+(?:\.[^@\s.]+)+")
EMAIL_MAX_LEN = 254


def is_valid_email(email: str) -> bool:
    return len(email) <= EMAIL_MAX_LEN and EMAIL_RE.fullmatch(email) is not None


class User(db.Model):
    __tablename__ = "users"

    id                 = db.Column(db.Integer, primary_key=True, autoincrement=True)
    full_name          = db.Column(db.String(120), nullable=True)
    email              = db.Column(db.String(254), nullable=False, unique=True, index=True)
    phone_number       = db.Column(db.String(32), nullable=True)
    password_hash      = db.Column(db.String(255), nullable=False)
    role               = db.Column(db.String(16), nullable=False, default=Role.USER.value, index=True)
    status             = db.Column(db.String(16), nullable=False, default=Status.ACTIVE.value, index=True)

    # 2FA: secret is written on enrollment; enabled flips only after a verified code
    two_factor_enabled = db.Column(db.Boolean, nullable=False, default=False)
    two_factor_secret  = db.Column(db.String(64), nullable=True)
    two_factor_method  = db.Column(db.String(16), nullable=True)

    created_at         = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at         = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # ── Relationships ────────────────────────────────────────────────────────
    pending_otp = db.relationship(
        "UserOtp",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    assigned_tasks = db.relationship(
        "Task",
        back_populates="assignee",
        foreign_keys="Task.assigned_to_id",
        cascade="all",
    )

    created_tasks = db.relationship(
        "Task",
        back_populates="assigner",
        foreign_keys="Task.assigned_by_id",
        cascade="all",
    )

    # ── Helpers ─────────────────────────────────────────────────────────────
    def set_password(self, raw: str) -> None:
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        try:
            return check_password_hash(self.password_hash or "", raw or "")
        except ValueError:
            return False

    @property
    def role_enum(self) -> Role:
        return Role.parse(self.role) or Role.USER

    @property
    def status_enum(self) -> Status:
        return Status.parse(self.status) or Status.INACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role_enum is Role.ADMIN

    @property
    def masked_phone(self) -> str | None:
        """First 3 and last 3 characters visible, e.g. '987****210'.

        Numbers of 6 characters or fewer are masked entirely.
        """
        p = (self.phone_number or "").strip()
        if not p:
            return None
        if len(p) <= 6:
            return "*" * len(p)
        return f"{p[:3]}****{p[-3:]}"

    def to_public_dict(self) -> dict:
        # Never include password_hash, two_factor_secret or OTP state
        return {
            "_id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "role": self.role,
            "status": self.status,
            "twoFactorEnabled": bool(self.two_factor_enabled),
            "twoFactorMethod": self.two_factor_method,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_ref_dict(self) -> dict:
        return {"_id": self.id, "fullName": self.full_name, "email": self.email}
