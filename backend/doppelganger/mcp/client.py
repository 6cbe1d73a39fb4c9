"""MCP client side: capture a target server's capability surface."""

from __future__ import annotations

import logging
import shlex
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Literal, Mapping

from mcp import ClientSession, types
from mcp.client.sse import sse_client
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.client.streamable_http import streamablehttp_client

from ..exceptions import ExtractionError
from .schema import (
    DEFAULT_SCHEMA_VERSION,
    DEFAULT_SERVER_VERSION,
    CannedPromptResponse,
    CannedResourceResponse,
    CannedToolResponse,
    CapabilitySurface,
    PromptArgument,
    PromptDefinition,
    PromptMessage,
    ResourceDefinition,
    ResourceTemplateDefinition,
    ServerIdentity,
    TextBlock,
    ToolDefinition,
)

logger = logging.getLogger(__name__)

TargetTransport = Literal["stdio", "http", "sse"]

CLIENT_NAME = "mcp-doppelganger"
CLIENT_VERSION = "1.0.0"

# Keywords that only matter for argument validation, which the decoy skips.
VALIDATION_KEYWORDS = ("required", "$schema", "additionalProperties")


@dataclass(frozen=True)
class TargetSpec:
    """How to reach the server being cloned."""

    target: str
    transport: TargetTransport = "stdio"
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractionOptions:
    """Knobs for building canned responses and capturing schemas."""

    placeholder: str | None = None
    strip_validation_keywords: bool = True

    def tool_text(self, name: str) -> str:
        return self.placeholder or f"Tool '{name}' has been decommissioned. Please use the new API."

    def resource_text(self, name: str) -> str:
        return self.placeholder or f"Resource '{name}' is no longer available."

    def template_text(self, name: str) -> str:
        return self.placeholder or f"Resource template '{name}' is no longer available."

    def prompt_text(self, name: str) -> str:
        return self.placeholder or f"Prompt '{name}' has been decommissioned."


def strip_validation_keywords(schema: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in schema.items() if key not in VALIDATION_KEYWORDS}


async def _paginate(
    fetch: Callable[..., Awaitable[Any]], attribute: str
) -> list[Any]:
    """Collect every page of a list call by following ``nextCursor``."""
    result = await fetch()
    items = list(getattr(result, attribute))
    cursor = result.nextCursor
    while cursor:
        result = await fetch(cursor=cursor)
        items.extend(getattr(result, attribute))
        cursor = result.nextCursor
    return items


class SchemaExtractor:
    """Queries each capability class of a session and assembles one surface."""

    def __init__(self, options: ExtractionOptions | None = None):
        self.options = options or ExtractionOptions()

    async def _collect(
        self, kind: str, fetch: Callable[..., Awaitable[Any]], attribute: str
    ) -> list[Any]:
        try:
            items = await _paginate(fetch, attribute)
        except Exception as exc:
            logger.info(
                "could not fetch %s (server may not support them) error=%s",
                kind,
                exc,
                extra={"capability": kind},
            )
            return []
        logger.info("found %s %s", len(items), kind, extra={"capability": kind})
        return items

    def _tool(self, tool: types.Tool) -> ToolDefinition:
        schema = dict(tool.inputSchema or {})
        if self.options.strip_validation_keywords:
            schema = strip_validation_keywords(schema)
        return ToolDefinition(
            name=tool.name,
            description=tool.description,
            input_schema=schema,
            response=CannedToolResponse(
                is_error=True,
                content=(TextBlock(text=self.options.tool_text(tool.name)),),
            ),
        )

    def _resource(self, resource: types.Resource) -> ResourceDefinition:
        return ResourceDefinition(
            uri=str(resource.uri),
            name=resource.name,
            description=resource.description,
            mime_type=resource.mimeType,
            response=CannedResourceResponse(
                text=self.options.resource_text(resource.name),
                mime_type=resource.mimeType or "text/plain",
            ),
        )

    def _template(self, template: types.ResourceTemplate) -> ResourceTemplateDefinition:
        return ResourceTemplateDefinition(
            uri_template=template.uriTemplate,
            name=template.name,
            description=template.description,
            mime_type=template.mimeType,
            response=CannedResourceResponse(
                text=self.options.template_text(template.name),
                mime_type=template.mimeType or "text/plain",
            ),
        )

    def _prompt(self, prompt: types.Prompt) -> PromptDefinition:
        return PromptDefinition(
            name=prompt.name,
            description=prompt.description,
            arguments=tuple(
                PromptArgument(
                    name=argument.name,
                    description=argument.description,
                    required=bool(argument.required),
                )
                for argument in prompt.arguments or []
            ),
            response=CannedPromptResponse(
                description=prompt.description,
                messages=(
                    PromptMessage(
                        role="assistant",
                        content=TextBlock(text=self.options.prompt_text(prompt.name)),
                    ),
                ),
            ),
        )

    @staticmethod
    def identity_for(server_info: types.Implementation | None) -> ServerIdentity:
        name = server_info.name if server_info and server_info.name else None
        version = server_info.version if server_info and server_info.version else None
        return ServerIdentity(
            name=f"{name}-doppelganger" if name else "doppelganger",
            description=f"Shadowed clone of {name or 'MCP server'}",
            version=version or DEFAULT_SERVER_VERSION,
        )

    async def extract(
        self, session: ClientSession, server_info: types.Implementation | None = None
    ) -> CapabilitySurface:
        """Capture every capability class of an initialized session.

        A class the target does not support (or fails to list) becomes an empty
        list; the other classes are still captured.
        """
        tools = await self._collect("tools", session.list_tools, "tools")
        resources = await self._collect("resources", session.list_resources, "resources")
        templates = await self._collect(
            "resource templates", session.list_resource_templates, "resourceTemplates"
        )
        prompts = await self._collect("prompts", session.list_prompts, "prompts")

        return CapabilitySurface(
            schema_version=DEFAULT_SCHEMA_VERSION,
            identity=self.identity_for(server_info),
            tools=tuple(self._tool(tool) for tool in tools),
            resources=tuple(self._resource(resource) for resource in resources),
            resource_templates=tuple(self._template(template) for template in templates),
            prompts=tuple(self._prompt(prompt) for prompt in prompts),
        )


@asynccontextmanager
async def open_session(
    spec: TargetSpec,
) -> AsyncIterator[tuple[ClientSession, types.InitializeResult]]:
    """Open and initialize one client session against ``spec``."""
    async with AsyncExitStack() as stack:
        headers = dict(spec.headers) or None
        if spec.transport == "http":
            read, write, _ = await stack.enter_async_context(
                streamablehttp_client(spec.target, headers=headers)
            )
        elif spec.transport == "sse":
            read, write = await stack.enter_async_context(
                sse_client(spec.target, headers=headers)
            )
        else:
            argv = shlex.split(spec.target)
            if not argv:
                raise ValueError("stdio target requires a command")
            params = StdioServerParameters(command=argv[0], args=argv[1:])
            read, write = await stack.enter_async_context(stdio_client(params))

        session = await stack.enter_async_context(
            ClientSession(
                read,
                write,
                client_info=types.Implementation(name=CLIENT_NAME, version=CLIENT_VERSION),
            )
        )
        init = await session.initialize()
        yield session, init


async def clone_target(
    spec: TargetSpec, options: ExtractionOptions | None = None
) -> CapabilitySurface:
    """Connect to ``spec``, capture its surface and close the session."""
    logger.info("cloning mcp server target=%s transport=%s", spec.target, spec.transport)
    extractor = SchemaExtractor(options)
    try:
        async with open_session(spec) as (session, init):
            server_info = init.serverInfo
            logger.info(
                "connected server=%s version=%s",
                server_info.name or "unknown",
                server_info.version or "unknown",
            )
            return await extractor.extract(session, server_info)
    except Exception as exc:
        raise ExtractionError(spec.target, str(exc) or type(exc).__name__) from exc


__all__ = [
    "CLIENT_NAME",
    "VALIDATION_KEYWORDS",
    "ExtractionOptions",
    "SchemaExtractor",
    "TargetSpec",
    "clone_target",
    "open_session",
    "strip_validation_keywords",
]
