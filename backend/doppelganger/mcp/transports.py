"""Transport bindings for the decoy: stdio channel and stateless HTTP endpoint."""

from __future__ import annotations

import logging

from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Receive, Scope, Send

from .schema import CapabilitySurface
from .server import build_decoy_server

logger = logging.getLogger(__name__)


async def serve_stdio(surface: CapabilitySurface) -> None:
    """Serve one peer over stdin/stdout until the channel closes.

    A single handler set lives for the whole channel; requests are handled in
    the order they arrive.
    """
    server = build_decoy_server(surface)
    logger.info("%s is running on stdio", surface.identity.name)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("stdio channel closed server=%s", surface.identity.name)


class StatelessMCPEndpoint:
    """ASGI endpoint answering each MCP request with a freshly built server.

    Nothing survives between requests: every call gets its own handler set and
    session manager, and no ``mcp-session-id`` is issued.
    """

    def __init__(self, surface: CapabilitySurface, *, json_response: bool = True):
        self.surface = surface
        self.json_response = json_response

    def _session_manager(self) -> StreamableHTTPSessionManager:
        return StreamableHTTPSessionManager(
            app=build_decoy_server(self.surface),
            json_response=self.json_response,
            stateless=True,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        manager = self._session_manager()
        async with manager.run():
            await manager.handle_request(scope, receive, send)


__all__ = ["StatelessMCPEndpoint", "serve_stdio"]
