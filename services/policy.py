# services/policy.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from models.user import Role, Status

INACTIVE_MESSAGE = "Your account is not active. Contact admin."


@dataclass(frozen=True)
class Decision:
    allowed: bool
    status_code: int = 200
    reason: str | None = None


ALLOW = Decision(True)


def evaluate(role: Role, status: Status, required: Iterable[Role] = ()) -> Decision:
    """
    Single authorization gate.

    Admins are never blocked by status. Everyone else must be Active, and when
    `required` is non-empty the role must be one of them.
    """
    required = frozenset(required)

    if role is not Role.ADMIN and status is not Status.ACTIVE:
        return Decision(False, 403, INACTIVE_MESSAGE)

    if required and role not in required:
        return Decision(False, 403, "Insufficient permissions")

    return ALLOW
