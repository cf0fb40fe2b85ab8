"""Domain models for the authentication service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ISO 8601 UTC with millisecond precision and a ``Z`` suffix."""

    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class Account:
    """Represents a registered account held by the user registry.

    The password is kept exactly as supplied by the client, including its JSON
    type, and is left out of the ``repr``.
    """

    email: str
    password: Any = field(repr=False)
    name: str
    created_at: datetime

    def summary(self) -> Dict[str, Any]:
        return {"email": self.email, "name": self.name}

    def profile(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "name": self.name,
            "createdAt": format_timestamp(self.created_at),
        }


def default_name(email: str) -> str:
    """Return the local part of ``email`` for accounts created without a name."""

    return email.split("@", 1)[0]


__all__ = ["Account", "default_name", "format_timestamp", "utcnow"]
