"""Account registration and session token service."""

from __future__ import annotations

from typing import Any

from .handlers import AuthHandlers, HandlerResponse, LoginOutcome
from .registry import UserRegistry
from .tokens import decode_token, generate_token


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "AuthHandlers",
    "HandlerResponse",
    "LoginOutcome",
    "UserRegistry",
    "create_app",
    "decode_token",
    "generate_token",
]
