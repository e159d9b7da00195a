# services/errors.py
"""
Failure taxonomy shared by the service layer.

Services raise these; app.py turns any of them into `{"error": message}` with
the matching HTTP status.
"""
from __future__ import annotations


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.message, **self.extra}


class ValidationError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class AuthorizationError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class UpstreamError(ServiceError):
    status_code = 500
