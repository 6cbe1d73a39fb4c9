"""Serve-time validation so a misconfigured decoy fails before binding."""

from __future__ import annotations

import logging

from .exceptions import DecoyServerError
from .mcp.loader import is_url
from .settings import ServeSettings

logger = logging.getLogger(__name__)


def _ensure_port(port: int) -> None:
    if not 0 < port < 65536:
        raise DecoyServerError(f"port must be between 1 and 65535, got {port}")


def run_serve_checks(settings: ServeSettings) -> None:
    """Fail fast when the selected endpoints cannot work together."""
    if not (settings.stdio or settings.http):
        raise DecoyServerError("at least one transport (stdio or http) must be enabled")
    if settings.http:
        _ensure_port(settings.port)
        if not settings.host.strip():
            raise DecoyServerError("host must not be empty when http is enabled")
    if not settings.source.strip():
        raise DecoyServerError("a configuration file path or URL is required")
    logger.info(
        "startup checks passed source=%s remote=%s stdio=%s http=%s",
        settings.source,
        is_url(settings.source),
        settings.stdio,
        settings.http,
    )
