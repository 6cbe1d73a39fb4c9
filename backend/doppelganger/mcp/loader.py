"""Persisted surface loading, validation and serialization helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal

import httpx
import yaml
from pydantic import ValidationError

from ..exceptions import SurfaceLoadError, SurfaceValidationError
from .schema import CapabilitySurface

logger = logging.getLogger(__name__)

SurfaceFormat = Literal["yaml", "json"]

DEFAULT_SOURCE = "doppelganger.yaml"
REMOTE_TIMEOUT_SECONDS = 30.0


def is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


async def _fetch_remote(url: str) -> str:
    logger.info("fetching remote config url=%s", url)
    try:
        async with httpx.AsyncClient(timeout=REMOTE_TIMEOUT_SECONDS) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        raise SurfaceLoadError(f"Failed to fetch remote config: {exc}") from exc
    if response.status_code >= 400:
        raise SurfaceLoadError(
            f"Failed to fetch remote config: {response.status_code} {response.reason_phrase}"
        )
    return response.text


def _read_local(path: Path) -> str:
    if not path.exists():
        raise SurfaceLoadError(f"Config file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SurfaceLoadError(f"Failed to read config file {path}: {exc}") from exc


def parse_content(content: str, source: str = "") -> dict[str, Any]:
    """Decode JSON or YAML text into a plain mapping."""
    is_json = source.endswith(".json") or content.strip().startswith("{")
    if is_json:
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise SurfaceLoadError(f"Failed to parse JSON config: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise SurfaceLoadError(f"Failed to parse YAML config: {exc}") from exc
    if not isinstance(payload, dict):
        msg = f"unsupported config format type={type(payload).__name__}"
        raise SurfaceLoadError(msg)
    return payload


def _format_location(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def validate_surface(payload: dict[str, Any]) -> CapabilitySurface:
    """Validate a decoded mapping, reporting every violation with its field path."""
    try:
        return CapabilitySurface.model_validate(payload)
    except ValidationError as exc:
        violations = [
            f"{_format_location(error['loc'])}: {error['msg']}" for error in exc.errors()
        ]
        raise SurfaceValidationError(violations) from exc


def load_surface_text(content: str, source: str = "") -> CapabilitySurface:
    return validate_surface(parse_content(content, source))


async def load_surface(source: str | Path = DEFAULT_SOURCE) -> CapabilitySurface:
    """Load and validate a capability surface from a file path or URL."""
    source_str = str(source)
    if is_url(source_str):
        content = await _fetch_remote(source_str)
    else:
        content = _read_local(Path(source_str))
    return load_surface_text(content, source_str)


def dump_surface(surface: CapabilitySurface, fmt: SurfaceFormat = "yaml") -> str:
    """Serialize a surface using the persisted camelCase field names."""
    payload = surface.model_dump(mode="json", by_alias=True, exclude_none=True)
    if fmt == "json":
        return json.dumps(payload, indent=2, ensure_ascii=False)
    if fmt == "yaml":
        return yaml.safe_dump(
            payload,
            sort_keys=False,
            allow_unicode=True,
            indent=2,
            width=120,
        )
    msg = f"unsupported output format {fmt!r}"
    raise ValueError(msg)


def write_surface(
    surface: CapabilitySurface, path: str | Path, fmt: SurfaceFormat = "yaml"
) -> Path:
    """Write a serialized surface to disk and return the resolved path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_surface(surface, fmt), encoding="utf-8")
    return target


__all__ = [
    "DEFAULT_SOURCE",
    "SurfaceFormat",
    "dump_surface",
    "is_url",
    "load_surface",
    "load_surface_text",
    "parse_content",
    "validate_surface",
    "write_surface",
]
