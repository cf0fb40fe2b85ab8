"""Request handlers implementing login, signup and token resolution."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .config import DEFAULT_MIN_PASSWORD_LENGTH
from .errors import (
    AuthError,
    ConflictError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    ValidationError,
    WeakCredentialError,
)
from .models import Account, default_name, format_timestamp, utcnow
from .registry import UserRegistry
from .tokens import decode_token, generate_token

logger = logging.getLogger("authui.handlers")

_BEARER_PREFIX = "Bearer "

# Marks a login request that did not carry a "remember" field.
OMITTED: Any = object()


@dataclass(frozen=True)
class HandlerResponse:
    """Status code and JSON body produced by a handler."""

    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


class LoginOutcome(str, Enum):
    AUTHENTICATED = "authenticated"
    PROVISIONED = "provisioned"


@dataclass(frozen=True)
class LoginResult:
    outcome: LoginOutcome
    account: Account
    replaced: Optional[Account] = None


def _translate_auth_errors(func: Callable[..., HandlerResponse]) -> Callable[..., HandlerResponse]:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> HandlerResponse:
        try:
            return func(*args, **kwargs)
        except AuthError as exc:
            logger.debug("%s rejected with %s: %s", func.__name__, exc.status_code, exc.message)
            return HandlerResponse(exc.status_code, exc.to_payload())

    return wrapper


class AuthHandlers:
    """Compose the registry and the token codec into the public operations."""

    def __init__(
        self,
        registry: UserRegistry,
        *,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[str], str] = generate_token,
    ) -> None:
        self._registry = registry
        self._min_password_length = min_password_length
        self._clock = clock
        self._token_factory = token_factory

    @property
    def registry(self) -> UserRegistry:
        return self._registry

    def authenticate_or_provision(self, email: str, password: Any) -> LoginResult:
        """Resolve a login attempt to one of the two :class:`LoginOutcome` branches.

        Any attempt that does not match stored credentials replaces the record
        at ``email`` with a freshly provisioned account.
        """

        with self._registry.locked() as registry:
            existing = registry.get(email)
            if existing is not None and existing.password == password:
                return LoginResult(LoginOutcome.AUTHENTICATED, existing)

            account = Account(
                email=email,
                password=password,
                name=default_name(email),
                created_at=self._clock(),
            )
            registry.put(email, account)
        return LoginResult(LoginOutcome.PROVISIONED, account, replaced=existing)

    @_translate_auth_errors
    def login(self, email: Optional[str], password: Any, remember: Any = OMITTED) -> HandlerResponse:
        if not email or not password:
            raise ValidationError("Email and password required")

        result = self.authenticate_or_provision(email, password)
        token = self._token_factory(email)

        if result.outcome is LoginOutcome.AUTHENTICATED:
            logger.info("Login for %s", email)
            body: Dict[str, Any] = {
                "success": True,
                "message": "Login successful",
                "token": token,
                "user": result.account.profile(),
            }
            if remember is not OMITTED:
                body["rememberMe"] = remember
            return HandlerResponse(200, body)

        if result.replaced is not None:
            logger.warning("Login for %s did not match stored credentials; account replaced", email)
        else:
            logger.info("Provisioned account %s on first login", email)
        return HandlerResponse(
            200,
            {
                "success": True,
                "message": "Login successful (demo mode)",
                "token": token,
                "user": result.account.summary(),
            },
        )

    @_translate_auth_errors
    def signup(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> HandlerResponse:
        if not email or not password or not name:
            raise ValidationError("Name, email and password required")

        if len(password) < self._min_password_length:
            raise WeakCredentialError(
                f"Password must be at least {self._min_password_length} characters"
            )

        with self._registry.locked() as registry:
            if registry.has(email):
                raise ConflictError("Email already registered")
            account = Account(email=email, password=password, name=name, created_at=self._clock())
            registry.put(email, account)

        logger.info("Created account %s", email)
        return HandlerResponse(
            201,
            {
                "success": True,
                "message": "Account created successfully",
                "token": self._token_factory(email),
                "user": account.profile(),
            },
        )

    @_translate_auth_errors
    def verify(self, token: Any) -> HandlerResponse:
        if not token:
            raise ValidationError("Token required")

        decoded = decode_token(token)
        if not decoded.ok:
            raise InvalidTokenError("Token verification failed", valid=False)

        account = self._registry.get(decoded.email)
        if account is None:
            raise InvalidTokenError("Invalid token", valid=False)

        return HandlerResponse(200, {"success": True, "valid": True, "user": account.summary()})

    def logout(self) -> HandlerResponse:
        return HandlerResponse(200, {"success": True, "message": "Logged out successfully"})

    @_translate_auth_errors
    def current_user(self, authorization: Optional[str]) -> HandlerResponse:
        token = authorization.replace(_BEARER_PREFIX, "", 1) if authorization else None
        if not token:
            raise MissingTokenError("No token provided")

        decoded = decode_token(token)
        if not decoded.ok:
            raise InvalidTokenError("Invalid token")

        account = self._registry.get(decoded.email)
        if account is None:
            raise NotFoundError("User not found")

        return HandlerResponse(200, {"success": True, "user": account.profile()})

    def stats(self) -> HandlerResponse:
        # Unauthenticated; lists every registered email.
        with self._registry.locked() as registry:
            emails = registry.keys()
        return HandlerResponse(
            200,
            {
                "totalUsers": len(emails),
                "registeredEmails": emails,
                "timestamp": format_timestamp(self._clock()),
            },
        )


__all__ = [
    "AuthHandlers",
    "HandlerResponse",
    "LoginOutcome",
    "LoginResult",
    "OMITTED",
]
