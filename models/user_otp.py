# models/user_otp.py
from __future__ import annotations
from datetime import timezone

from db import db
from sqlalchemy.sql import func


class UserOtp(db.Model):
    """
    Outstanding WhatsApp OTP for a user.

    At most one row per user (unique user_id); a row exists only while its code
    is unconsumed. Issuing a new code overwrites the row in place.
    """
    __tablename__ = "user_otps"

    id          = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id     = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"),
                            nullable=False, unique=True, index=True)
    channel     = db.Column(db.String(16), nullable=False, default="whatsapp")
    code_hash   = db.Column(db.String(255), nullable=False)       # salted werkzeug hash
    expires_at  = db.Column(db.DateTime, nullable=False)          # naive UTC
    attempts    = db.Column(db.Integer, nullable=False, default=0)
    created_at  = db.Column(db.DateTime, nullable=False, server_default=func.now())

    user = db.relationship("User", back_populates="pending_otp")

    @property
    def expires_at_utc(self):
        # SQLite hands back naive datetimes; treat them as UTC
        exp = self.expires_at
        return exp if exp.tzinfo else exp.replace(tzinfo=timezone.utc)
