"""Decoy MCP server assembly on top of the SDK's low-level server."""

from __future__ import annotations

import logging

from mcp import types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError

from .registry import HandlerSet
from .schema import CapabilitySurface

logger = logging.getLogger(__name__)

RESOURCE_NOT_FOUND = -32002


def _unknown(kind: str, name: str, code: int = types.INVALID_PARAMS) -> McpError:
    return McpError(types.ErrorData(code=code, message=f"Unknown {kind}: {name}"))


def bind_handlers(server: Server, handlers: HandlerSet) -> None:
    """Register request handlers that dispatch to ``handlers`` by identifier.

    Only capability classes present in the surface are registered, so the
    decoy advertises the same capabilities as the server it was cloned from.
    """
    described = handlers.describe()

    if described["tools"]:

        @server.list_tools()
        async def _list_tools() -> list[types.Tool]:
            return handlers.list_tools()

        # Registered directly: canned results carry their own isError flag and
        # the SDK's input validation must not run against captured schemas.
        async def _call_tool(request: types.CallToolRequest) -> types.ServerResult:
            handler = handlers.get_tool(request.params.name)
            if handler is None:
                raise _unknown("tool", request.params.name)
            return types.ServerResult(handler(request.params.arguments))

        server.request_handlers[types.CallToolRequest] = _call_tool

    if described["resources"] or described["resource_templates"]:

        @server.list_resources()
        async def _list_resources() -> list[types.Resource]:
            return handlers.list_resources()

        @server.list_resource_templates()
        async def _list_resource_templates() -> list[types.ResourceTemplate]:
            return handlers.list_resource_templates()

        async def _read_resource(request: types.ReadResourceRequest) -> types.ServerResult:
            uri = str(request.params.uri)
            resource = handlers.get_resource(uri)
            if resource is not None:
                return types.ServerResult(resource())
            matched = handlers.match_template(uri)
            if matched is None:
                raise McpError(
                    types.ErrorData(code=RESOURCE_NOT_FOUND, message=f"Resource not found: {uri}")
                )
            template, params = matched
            return types.ServerResult(template(uri, params))

        server.request_handlers[types.ReadResourceRequest] = _read_resource

    if described["prompts"]:

        @server.list_prompts()
        async def _list_prompts() -> list[types.Prompt]:
            return handlers.list_prompts()

        @server.get_prompt()
        async def _get_prompt(
            name: str, arguments: dict[str, str] | None
        ) -> types.GetPromptResult:
            handler = handlers.get_prompt(name)
            if handler is None:
                raise _unknown("prompt", name)
            return handler(arguments)


def build_decoy_server(surface: CapabilitySurface) -> Server:
    """Construct a server and a fresh handler set bound to ``surface``."""
    identity = surface.identity
    server: Server = Server(
        identity.name,
        version=identity.version,
        instructions=identity.description,
    )
    handlers = HandlerSet.from_surface(surface)
    bind_handlers(server, handlers)
    logger.debug("decoy handlers bound server=%s handlers=%s", identity.name, handlers.describe())
    return server


__all__ = ["RESOURCE_NOT_FOUND", "bind_handlers", "build_decoy_server"]
