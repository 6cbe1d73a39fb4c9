"""Handler objects built from a capability surface, grouped per capability kind."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from mcp import types
from pydantic import ValidationError

from ..template import interpolate
from .arguments import ToolArguments, argument_mismatches, build_arguments_model
from .schema import (
    CapabilitySurface,
    PromptDefinition,
    ResourceDefinition,
    ResourceTemplateDefinition,
    ToolDefinition,
    canonical_uri,
)

logger = logging.getLogger(__name__)

Interpolator = Callable[[Any, Mapping[str, Any]], Any]

DEFAULT_TEXT_MIME_TYPE = "text/plain"
DEFAULT_BLOB_MIME_TYPE = "application/octet-stream"
NOT_CONFIGURED_TEXT = "Resource not configured properly."


def _log(capability: str, message: str, *args: object) -> None:
    logger.info(message, *args, extra={"capability": capability})


def to_wire_content(
    block: Mapping[str, Any],
) -> types.TextContent | types.ImageContent | types.EmbeddedResource:
    """Convert a serialized content block into the matching MCP content type."""
    block_type = block.get("type")
    if block_type == "text":
        return types.TextContent.model_validate(block)
    if block_type == "image":
        return types.ImageContent.model_validate(block)
    if block_type == "resource":
        return types.EmbeddedResource.model_validate(block)
    raise ValueError(f"unsupported content block type {block_type!r}")


def _resource_contents(
    uri: str,
    response_text: str | None,
    response_blob: str | None,
    mime_type: str | None,
    args: Mapping[str, Any],
    interpolator: Interpolator,
) -> types.TextResourceContents | types.BlobResourceContents:
    if response_text:
        return types.TextResourceContents(
            uri=uri,
            text=interpolator(response_text, args),
            mimeType=mime_type or DEFAULT_TEXT_MIME_TYPE,
        )
    if response_blob:
        return types.BlobResourceContents(
            uri=uri,
            blob=response_blob,
            mimeType=mime_type or DEFAULT_BLOB_MIME_TYPE,
        )
    return types.TextResourceContents(
        uri=uri,
        text=NOT_CONFIGURED_TEXT,
        mimeType=DEFAULT_TEXT_MIME_TYPE,
    )


@dataclass(frozen=True)
class ToolHandler:
    """Answers calls for one tool with its canned content."""

    definition: ToolDefinition
    interpolator: Interpolator = interpolate
    arguments_model: type[ToolArguments] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments_model", build_arguments_model(self.definition))

    def describe(self) -> types.Tool:
        return types.Tool(
            name=self.definition.name,
            description=self.definition.description,
            inputSchema=self.definition.input_schema,
        )

    def __call__(self, arguments: Mapping[str, Any] | None) -> types.CallToolResult:
        args = dict(arguments or {})
        capability = f"tool:{self.definition.name}"
        mismatches = argument_mismatches(self.arguments_model, args)
        if mismatches:
            _log(capability, "tool arguments differ from captured schema issues=%s", mismatches)
        blocks = [
            block.model_dump(mode="json", by_alias=True, exclude_none=True)
            for block in self.definition.response.content
        ]
        content = [to_wire_content(block) for block in self.interpolator(blocks, args)]
        _log(capability, "tool call served arguments=%s", sorted(args))
        return types.CallToolResult(content=content, isError=self.definition.response.is_error)


@dataclass(frozen=True)
class ResourceHandler:
    """Serves the canned body of one static resource."""

    definition: ResourceDefinition
    interpolator: Interpolator = interpolate

    def describe(self) -> types.Resource:
        return types.Resource(
            uri=self.definition.uri,
            name=self.definition.name,
            description=self.definition.description,
            mimeType=self.definition.mime_type,
        )

    def __call__(self) -> types.ReadResourceResult:
        response = self.definition.response
        contents = _resource_contents(
            self.definition.uri,
            response.text,
            response.blob,
            response.mime_type,
            {"uri": self.definition.uri},
            self.interpolator,
        )
        _log(f"resource:{self.definition.uri}", "resource read served")
        return types.ReadResourceResult(contents=[contents])


_EXPRESSION = re.compile(r"\{([+#./;?&]?)([^}]*)\}")


def compile_uri_template(uri_template: str) -> tuple[re.Pattern[str], list[str]]:
    """Build a matcher for simple, reserved and query RFC 6570 expressions."""
    pattern: list[str] = []
    names: list[str] = []
    position = 0
    for match in _EXPRESSION.finditer(uri_template):
        pattern.append(re.escape(uri_template[position : match.start()]))
        operator, variables = match.group(1), match.group(2)
        if operator in ("?", "&"):
            pattern.append(r"(?:[?&].*)?")
        else:
            group = f"v{len(names)}"
            names.append(variables.split(",")[0].rstrip("*").split(":")[0])
            body = ".+" if operator in ("+", "#") else "[^/?#]+"
            prefix = re.escape(operator) if operator in ("#", ".", "/", ";") else ""
            pattern.append(f"{prefix}(?P<{group}>{body})")
        position = match.end()
    pattern.append(re.escape(uri_template[position:]))
    return re.compile("".join(pattern) + r"\Z"), names


@dataclass(frozen=True)
class ResourceTemplateHandler:
    """Serves canned bodies for every URI matching one resource template."""

    definition: ResourceTemplateDefinition
    interpolator: Interpolator = interpolate
    matcher: re.Pattern[str] = field(init=False)
    variables: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        matcher, variables = compile_uri_template(self.definition.uri_template)
        object.__setattr__(self, "matcher", matcher)
        object.__setattr__(self, "variables", tuple(variables))

    def describe(self) -> types.ResourceTemplate:
        return types.ResourceTemplate(
            uriTemplate=self.definition.uri_template,
            name=self.definition.name,
            description=self.definition.description,
            mimeType=self.definition.mime_type,
        )

    def match(self, uri: str) -> dict[str, str] | None:
        found = self.matcher.match(uri)
        if not found:
            return None
        return {
            name: found.group(f"v{index}") for index, name in enumerate(self.variables)
        }

    def __call__(self, uri: str, params: Mapping[str, str]) -> types.ReadResourceResult:
        response = self.definition.response
        contents = _resource_contents(
            uri,
            response.text,
            response.blob,
            response.mime_type,
            {**params, "uri": uri},
            self.interpolator,
        )
        _log(f"resource_template:{self.definition.uri_template}", "templated read uri=%s", uri)
        return types.ReadResourceResult(contents=[contents])


@dataclass(frozen=True)
class PromptHandler:
    """Renders the canned messages of one prompt; never rejects missing arguments."""

    definition: PromptDefinition
    interpolator: Interpolator = interpolate

    def describe(self) -> types.Prompt:
        return types.Prompt(
            name=self.definition.name,
            description=self.definition.description,
            arguments=[
                types.PromptArgument(
                    name=argument.name,
                    description=argument.description,
                    required=False,
                )
                for argument in self.definition.arguments
            ],
        )

    def __call__(self, arguments: Mapping[str, Any] | None) -> types.GetPromptResult:
        args = dict(arguments or {})
        messages = [
            message.model_dump(mode="json", by_alias=True, exclude_none=True)
            for message in self.definition.response.messages
        ]
        rendered = [
            types.PromptMessage(role=message["role"], content=to_wire_content(message["content"]))
            for message in self.interpolator(messages, args)
        ]
        _log(f"prompt:{self.definition.name}", "prompt rendered arguments=%s", sorted(args))
        return types.GetPromptResult(
            description=self.definition.response.description,
            messages=rendered,
        )


class HandlerSet:
    """One handler per capability definition, keyed by its identifier."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolHandler] = {}
        self._resources: dict[str, ResourceHandler] = {}
        self._templates: dict[str, ResourceTemplateHandler] = {}
        self._prompts: dict[str, PromptHandler] = {}

    @classmethod
    def from_surface(
        cls, surface: CapabilitySurface, interpolator: Interpolator = interpolate
    ) -> "HandlerSet":
        handlers = cls()
        for tool in surface.tools:
            handlers.register_tool(ToolHandler(tool, interpolator))
        for resource in surface.resources:
            handlers.register_resource(ResourceHandler(resource, interpolator))
        for template in surface.resource_templates:
            handlers.register_template(ResourceTemplateHandler(template, interpolator))
        for prompt in surface.prompts:
            handlers.register_prompt(PromptHandler(prompt, interpolator))
        return handlers

    def register_tool(self, handler: ToolHandler) -> None:
        name = handler.definition.name
        if name in self._tools:
            raise ValueError(f"duplicate tool name {name}")
        self._tools[name] = handler

    def register_resource(self, handler: ResourceHandler) -> None:
        uri = handler.definition.uri
        key = canonical_uri(uri)
        if key in self._resources:
            raise ValueError(f"duplicate resource uri {uri}")
        self._resources[key] = handler

    def register_template(self, handler: ResourceTemplateHandler) -> None:
        uri_template = handler.definition.uri_template
        if uri_template in self._templates:
            raise ValueError(f"duplicate resource template {uri_template}")
        self._templates[uri_template] = handler

    def register_prompt(self, handler: PromptHandler) -> None:
        name = handler.definition.name
        if name in self._prompts:
            raise ValueError(f"duplicate prompt name {name}")
        self._prompts[name] = handler

    def get_tool(self, name: str) -> ToolHandler | None:
        return self._tools.get(name)

    def get_prompt(self, name: str) -> PromptHandler | None:
        return self._prompts.get(name)

    def get_resource(self, uri: str) -> ResourceHandler | None:
        try:
            key = canonical_uri(uri)
        except ValidationError:
            return None
        return self._resources.get(key)

    def match_template(
        self, uri: str
    ) -> tuple[ResourceTemplateHandler, dict[str, str]] | None:
        """Return the first template (in declaration order) that matches ``uri``."""
        for handler in self._templates.values():
            params = handler.match(uri)
            if params is not None:
                return handler, params
        return None

    def list_tools(self) -> list[types.Tool]:
        return [handler.describe() for handler in self._tools.values()]

    def list_resources(self) -> list[types.Resource]:
        return [handler.describe() for handler in self._resources.values()]

    def list_resource_templates(self) -> list[types.ResourceTemplate]:
        return [handler.describe() for handler in self._templates.values()]

    def list_prompts(self) -> list[types.Prompt]:
        return [handler.describe() for handler in self._prompts.values()]

    def describe(self) -> Mapping[str, Iterable[str]]:
        """Return identifiers per capability kind (mainly for diagnostics)."""
        return {
            "tools": list(self._tools),
            "resources": [handler.definition.uri for handler in self._resources.values()],
            "resource_templates": list(self._templates),
            "prompts": list(self._prompts),
        }


__all__ = [
    "DEFAULT_BLOB_MIME_TYPE",
    "DEFAULT_TEXT_MIME_TYPE",
    "NOT_CONFIGURED_TEXT",
    "HandlerSet",
    "PromptHandler",
    "ResourceHandler",
    "ResourceTemplateHandler",
    "ToolHandler",
    "compile_uri_template",
    "to_wire_content",
]
