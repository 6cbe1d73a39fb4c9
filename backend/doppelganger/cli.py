"""Command-line interface: clone a server's surface or serve a decoy from it."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import Awaitable, Sequence

from .env import load_dotenv_if_present
from .main import configure_logging, serve_http
from .mcp.client import ExtractionOptions, TargetSpec, clone_target
from .mcp.loader import load_surface, write_surface
from .mcp.transports import serve_stdio
from .settings import CloneSettings, ServeSettings, get_settings, reset_settings
from .startup_checks import run_serve_checks

logger = logging.getLogger(__name__)


def _header(value: str) -> tuple[str, str]:
    name, separator, header_value = value.partition(":")
    if not separator or not name.strip():
        raise argparse.ArgumentTypeError(f"header must look like 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="doppelganger",
        description="Clone and shadow MCP server interfaces.",
    )
    subparsers = parser.add_subparsers(dest="command")

    clone = subparsers.add_parser("clone", help="Capture an MCP server's interface.")
    clone.add_argument("target", help="Command line (stdio) or URL (http/sse) of the server.")
    clone.add_argument(
        "-t",
        "--transport",
        choices=("stdio", "http", "sse"),
        default=None,
        help="Transport used to reach the target (default: stdio).",
    )
    clone.add_argument("-o", "--output", default=None, help="Output file path.")
    clone.add_argument(
        "-f", "--format", choices=("yaml", "json"), default=None, help="Output format."
    )
    clone.add_argument(
        "-H",
        "--header",
        action="append",
        dest="headers",
        type=_header,
        default=[],
        help="Extra HTTP header for http/sse targets (can be provided multiple times).",
    )
    clone.add_argument(
        "--placeholder",
        default=None,
        help="Text returned by every cloned tool, resource and prompt.",
    )
    clone.add_argument(
        "--keep-validation-keywords",
        action="store_true",
        help="Keep required/$schema/additionalProperties in captured tool schemas.",
    )

    serve = subparsers.add_parser("serve", help="Start a decoy MCP server.")
    serve.add_argument(
        "-f", "--file", dest="source", default=None, help="Configuration file path or URL."
    )
    serve.add_argument("--stdio", action="store_true", help="Enable the stdio transport.")
    serve.add_argument("--http", action="store_true", help="Enable the HTTP transport.")
    serve.add_argument("-p", "--port", type=int, default=None, help="HTTP port.")
    serve.add_argument("--host", default=None, help="HTTP bind address.")

    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command is None:
        args = parser.parse_args(["serve"])
    return args


def clone_settings_from_args(args: argparse.Namespace, base: CloneSettings) -> CloneSettings:
    return replace(
        base,
        transport=args.transport or base.transport,
        output=args.output or base.output,
        format=args.format or base.format,
        placeholder=args.placeholder if args.placeholder is not None else base.placeholder,
        strip_validation_keywords=(
            False if args.keep_validation_keywords else base.strip_validation_keywords
        ),
    )


def serve_settings_from_args(args: argparse.Namespace, base: ServeSettings) -> ServeSettings:
    settings = replace(
        base,
        source=args.source or base.source,
        stdio=args.stdio or base.stdio,
        http=args.http or base.http,
        port=args.port if args.port is not None else base.port,
        host=args.host or base.host,
    )
    return settings.with_transports()


async def _run_clone(args: argparse.Namespace, settings: CloneSettings) -> int:
    spec = TargetSpec(
        target=args.target,
        transport=settings.transport,
        headers=dict(args.headers),
    )
    options = ExtractionOptions(
        placeholder=settings.placeholder,
        strip_validation_keywords=settings.strip_validation_keywords,
    )
    surface = await clone_target(spec, options)
    path = write_surface(surface, settings.output, settings.format)
    logger.info("configuration written to %s counts=%s", path, surface.summary())
    return 0


async def _run_serve(settings: ServeSettings) -> int:
    run_serve_checks(settings)
    logger.info("loading configuration from %s", settings.source)
    surface = await load_surface(settings.source)
    logger.info("server=%s counts=%s", surface.identity.name, surface.summary())

    endpoints: list[Awaitable[None]] = []
    if settings.http:
        endpoints.append(serve_http(surface, settings))
    if settings.stdio:
        endpoints.append(serve_stdio(surface))
    await asyncio.gather(*endpoints)
    return 0


async def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    load_dotenv_if_present()
    reset_settings()
    settings = get_settings()
    configure_logging(settings.serve.log_level)
    label = "Clone" if args.command == "clone" else "Serve"
    try:
        if args.command == "clone":
            return await _run_clone(args, clone_settings_from_args(args, settings.clone))
        return await _run_serve(serve_settings_from_args(args, settings.serve))
    except KeyboardInterrupt:
        print(f"{label} interrupted.", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"{label} failed: {exc}", file=sys.stderr)
        return 1


def entrypoint() -> None:
    """Synchronously run the async CLI for convenience."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
