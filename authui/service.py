"""HTTP API exposing the authentication handlers."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .config import ServiceSettings, load_settings
from .handlers import OMITTED, AuthHandlers, HandlerResponse
from .models import format_timestamp, utcnow
from .registry import UserRegistry

logger = logging.getLogger("authui.service")

SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": "default-src 'self'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-XSS-Protection": "0",
}


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Any = None
    remember: Any = None


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyRequest(BaseModel):
    token: Any = None


def _trusted_proxy_hosts() -> list[str] | str:
    raw = os.getenv("AUTH_TRUSTED_PROXIES")
    if not raw:
        return "127.0.0.1"
    hosts = [item.strip() for item in raw.split(",") if item.strip()]
    return hosts or "127.0.0.1"


def _to_json(response: HandlerResponse) -> JSONResponse:
    return JSONResponse(status_code=response.status_code, content=response.body)


def _not_found(request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "message": "Not found", "path": request.url.path},
    )


def register_auth_routes(app: FastAPI, handlers: AuthHandlers, *, expose_stats: bool = True) -> None:
    """Expose the authentication endpoints on the provided FastAPI application."""

    @app.post("/api/auth/login")
    def login(request: Optional[LoginRequest] = None) -> JSONResponse:
        body = request if request is not None else LoginRequest()
        remember = body.remember if "remember" in body.model_fields_set else OMITTED
        return _to_json(handlers.login(body.email, body.password, remember))

    @app.post("/api/auth/signup")
    def signup(request: Optional[SignupRequest] = None) -> JSONResponse:
        body = request if request is not None else SignupRequest()
        return _to_json(handlers.signup(body.name, body.email, body.password))

    @app.post("/api/auth/verify")
    def verify(request: Optional[VerifyRequest] = None) -> JSONResponse:
        body = request if request is not None else VerifyRequest()
        return _to_json(handlers.verify(body.token))

    @app.post("/api/auth/logout")
    def logout() -> JSONResponse:
        return _to_json(handlers.logout())

    @app.get("/api/auth/me")
    def current_user(authorization: Optional[str] = Header(default=None)) -> JSONResponse:
        return _to_json(handlers.current_user(authorization))

    if expose_stats:
        @app.get("/api/auth/stats")
        def stats() -> JSONResponse:
            return _to_json(handlers.stats())
    else:
        logger.info("Account statistics endpoint disabled by configuration")


def register_health_routes(app: FastAPI, settings: ServiceSettings) -> None:
    started = time.monotonic()

    @app.get("/health")
    async def health() -> Dict[str, object]:
        return {
            "status": "healthy",
            "service": settings.service_name,
            "timestamp": format_timestamp(utcnow()),
            "uptime": time.monotonic() - started,
        }

    @app.get("/api/health")
    async def api_health() -> Dict[str, str]:
        return {"status": "ok", "version": settings.version}


def create_app(
    *,
    settings: ServiceSettings | None = None,
    registry: UserRegistry | None = None,
    handlers: AuthHandlers | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the authentication service."""

    app_settings = settings or load_settings()
    if registry is not None:
        app_registry = registry
    elif handlers is not None:
        app_registry = handlers.registry
    else:
        app_registry = UserRegistry()
    if handlers is None:
        handlers = AuthHandlers(
            app_registry,
            min_password_length=app_settings.min_password_length,
        )
    app_handlers = handlers

    app = FastAPI(
        title="Auth UI Service",
        version=app_settings.version,
        description="Account registration and session token service.",
    )
    app.add_middleware(GZipMiddleware, minimum_size=app_settings.gzip_minimum_size)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=_trusted_proxy_hosts())

    @app.middleware("http")
    async def apply_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    app.state.settings = app_settings
    app.state.registry = app_registry
    app.state.handlers = app_handlers

    register_health_routes(app, app_settings)
    register_auth_routes(app, app_handlers, expose_stats=app_settings.expose_stats)

    if app_settings.static_dir is not None:
        if app_settings.static_dir.is_dir():
            app.mount("/", StaticFiles(directory=str(app_settings.static_dir), html=True), name="static")
        else:
            logger.warning("Static directory %s does not exist; not serving files", app_settings.static_dir)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return _not_found(request)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_body(request: Request, exc: RequestValidationError):
        logger.debug("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Invalid request body"},
        )

    return app


__all__ = [
    "LoginRequest",
    "SECURITY_HEADERS",
    "SignupRequest",
    "VerifyRequest",
    "create_app",
    "register_auth_routes",
    "register_health_routes",
]
