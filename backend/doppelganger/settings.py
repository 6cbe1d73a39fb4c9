"""Application-wide settings for the clone and serve commands."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Literal

OutputFormat = Literal["yaml", "json"]
CloneTransport = Literal["stdio", "http", "sse"]

DEFAULT_CONFIG_SOURCE = "doppelganger.yaml"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip()
    return normalized or default


@dataclass(frozen=True)
class ServeSettings:
    """Where the decoy description comes from and which endpoints to expose."""

    source: str
    stdio: bool
    http: bool
    host: str
    port: int
    json_response: bool
    log_level: str

    @classmethod
    def from_env(cls) -> "ServeSettings":
        return cls(
            source=_env_str("DOPPELGANGER_CONFIG", DEFAULT_CONFIG_SOURCE) or DEFAULT_CONFIG_SOURCE,
            stdio=_env_bool("DOPPELGANGER_STDIO", False),
            http=_env_bool("DOPPELGANGER_HTTP", False),
            host=_env_str("DOPPELGANGER_HOST", "0.0.0.0") or "0.0.0.0",
            port=_env_int("DOPPELGANGER_PORT", 3000),
            json_response=_env_bool("DOPPELGANGER_HTTP_JSON_RESPONSE", True),
            log_level=(_env_str("DOPPELGANGER_LOG_LEVEL", "INFO") or "INFO").upper(),
        )

    def with_transports(self) -> "ServeSettings":
        """HTTP is used when no transport was selected explicitly."""
        if self.stdio or self.http:
            return self
        return replace(self, http=True)


@dataclass(frozen=True)
class CloneSettings:
    """Defaults for capturing a target server."""

    transport: CloneTransport
    output: str
    format: OutputFormat
    placeholder: str | None
    strip_validation_keywords: bool

    @classmethod
    def from_env(cls) -> "CloneSettings":
        raw_transport = (_env_str("DOPPELGANGER_CLONE_TRANSPORT", "stdio") or "stdio").lower()
        transport: CloneTransport = (
            raw_transport if raw_transport in ("stdio", "http", "sse") else "stdio"  # type: ignore[assignment]
        )
        raw_format = (_env_str("DOPPELGANGER_CLONE_FORMAT", "yaml") or "yaml").lower()
        fmt: OutputFormat = "json" if raw_format == "json" else "yaml"
        return cls(
            transport=transport,
            output=_env_str("DOPPELGANGER_CLONE_OUTPUT", DEFAULT_CONFIG_SOURCE)
            or DEFAULT_CONFIG_SOURCE,
            format=fmt,
            placeholder=_env_str("DOPPELGANGER_PLACEHOLDER"),
            strip_validation_keywords=_env_bool("DOPPELGANGER_STRIP_VALIDATION_KEYWORDS", True),
        )


class Settings:
    """Container for application settings."""

    def __init__(self, *, serve: ServeSettings, clone: CloneSettings) -> None:
        self.serve = serve
        self.clone = clone

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(serve=ServeSettings.from_env(), clone=CloneSettings.from_env())


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Return a cached Settings instance built from the current environment."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""

    global _SETTINGS
    _SETTINGS = None
