"""Command-line interface for the auth-ui service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Run `pip install -e .` to install dependencies."
    ) from exc

from authui.config import ServiceSettings, load_settings

logger = logging.getLogger("authui.main")

_DEFAULT_SERVICE_URL = "http://localhost:3003"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="auth-ui service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP authentication service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: from config)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: AUTH_PORT or 3003)",
    )
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (default: AUTH_CONFIG_PATH or config/auth.yaml)",
    )

    stats_parser = subparsers.add_parser(
        "stats", help="Show registered accounts of a running service"
    )
    stats_parser.add_argument(
        "--service-url",
        default=None,
        help="Base URL of a running service (default: AUTH_SERVICE_URL or http://localhost:3003)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "stats"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _resolve_settings(args: argparse.Namespace) -> ServiceSettings:
    config_path = Path(args.config).expanduser() if args.config else None
    settings = load_settings(config_path)
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        settings = replace(settings, **overrides)
    return settings


def _serve(settings: ServiceSettings) -> None:
    from authui.service import create_app
    import uvicorn

    app = create_app(settings=settings)
    logger.info("Starting %s on http://%s:%s", settings.service_name, settings.host, settings.port)
    logger.info(
        "Endpoints: login, signup, verify, logout, me%s",
        ", stats" if settings.expose_stats else "",
    )
    if settings.static_dir is not None:
        logger.info("Serving static files from %s", settings.static_dir)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


def _show_stats(service_url: str | None) -> int:
    base_url = service_url or os.getenv("AUTH_SERVICE_URL") or _DEFAULT_SERVICE_URL
    endpoint = base_url.rstrip("/") + "/api/auth/stats"

    try:
        response = httpx.get(endpoint, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact auth service: {exc}")
        return 1

    if response.status_code == 404:
        print("The service does not expose account statistics.")
        return 1
    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return 1

    try:
        payload = response.json()
    except ValueError:
        print("Service returned an unexpected response format.")
        return 1

    emails = payload.get("registeredEmails", [])
    print(f"{payload.get('totalUsers', len(emails))} account(s) registered (as of {payload.get('timestamp')}):")
    for email in emails:
        print(f"- {email}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "stats":
        return _show_stats(args.service_url)

    try:
        settings = _resolve_settings(args)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    _serve(settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
