"""Error types raised by the authentication handlers."""

from __future__ import annotations

from typing import Any, Dict


class AuthError(Exception):
    """Base class for request failures that map onto an HTTP status code."""

    status_code = 400

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False}
        payload.update(self.extra)
        payload["message"] = self.message
        return payload


class ValidationError(AuthError):
    """A required field is missing or empty."""

    status_code = 400


class WeakCredentialError(AuthError):
    """The supplied password does not satisfy the password policy."""

    status_code = 400


class ConflictError(AuthError):
    status_code = 409


class InvalidTokenError(AuthError):
    """The token could not be decoded or does not belong to a registered account."""

    status_code = 401


class MissingTokenError(AuthError):
    status_code = 401


class NotFoundError(AuthError):
    status_code = 404


__all__ = [
    "AuthError",
    "ConflictError",
    "InvalidTokenError",
    "MissingTokenError",
    "NotFoundError",
    "ValidationError",
    "WeakCredentialError",
]
