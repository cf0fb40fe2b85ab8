"""Configuration management for the authentication service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3003
DEFAULT_SERVICE_NAME = "auth-ui-v750"
DEFAULT_VERSION = "v750"
DEFAULT_MIN_PASSWORD_LENGTH = 8
DEFAULT_GZIP_MINIMUM_SIZE = 500

_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_int(field_name: str, value: object) -> int:
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid integer for '{field_name}': {value!r}") from exc


def _parse_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in _FALSE_VALUES


def _resolve_path(raw: object, base_path: Path | None) -> Path:
    path = Path(str(raw)).expanduser()
    if not path.is_absolute() and base_path is not None:
        path = base_path / path
    return path.resolve(strict=False)


@dataclass(frozen=True)
class ServiceSettings:
    """Runtime settings for the HTTP service."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    service_name: str = DEFAULT_SERVICE_NAME
    version: str = DEFAULT_VERSION
    min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH
    expose_stats: bool = True
    static_dir: Optional[Path] = None
    gzip_minimum_size: int = DEFAULT_GZIP_MINIMUM_SIZE

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "ServiceSettings":
        """Create :class:`ServiceSettings` from raw dictionary data."""
        unknown = set(data) - {
            "host",
            "port",
            "service_name",
            "version",
            "min_password_length",
            "expose_stats",
            "static_dir",
            "gzip_minimum_size",
        }
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        static_dir = data.get("static_dir")
        return ServiceSettings(
            host=str(data.get("host", DEFAULT_HOST)),
            port=_parse_int("port", data.get("port", DEFAULT_PORT)),
            service_name=str(data.get("service_name", DEFAULT_SERVICE_NAME)),
            version=str(data.get("version", DEFAULT_VERSION)),
            min_password_length=_parse_int(
                "min_password_length", data.get("min_password_length", DEFAULT_MIN_PASSWORD_LENGTH)
            ),
            expose_stats=_parse_flag(data.get("expose_stats", True)),
            static_dir=_resolve_path(static_dir, base_path) if static_dir else None,
            gzip_minimum_size=_parse_int(
                "gzip_minimum_size", data.get("gzip_minimum_size", DEFAULT_GZIP_MINIMUM_SIZE)
            ),
        )

    def with_environment(self, environ: Mapping[str, str]) -> "ServiceSettings":
        """Return a copy with ``AUTH_*`` environment overrides applied."""
        overrides: Dict[str, object] = {}
        if environ.get("AUTH_HOST"):
            overrides["host"] = environ["AUTH_HOST"]
        if environ.get("AUTH_PORT"):
            overrides["port"] = _parse_int("AUTH_PORT", environ["AUTH_PORT"])
        if environ.get("AUTH_EXPOSE_STATS"):
            overrides["expose_stats"] = _parse_flag(environ["AUTH_EXPOSE_STATS"])
        if environ.get("AUTH_STATIC_DIR"):
            overrides["static_dir"] = _resolve_path(environ["AUTH_STATIC_DIR"], None)
        return replace(self, **overrides) if overrides else self


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "auth.yaml").resolve(strict=False)
    return candidate


def load_settings(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ServiceSettings:
    """Load settings from YAML (when present) and apply environment overrides."""
    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("AUTH_CONFIG_PATH"))

    settings = ServiceSettings()
    if path.is_file():
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        settings = ServiceSettings.from_dict(raw, base_path=path.parent)

    return settings.with_environment(env)


__all__ = ["ServiceSettings", "load_settings", "resolve_config_path"]
