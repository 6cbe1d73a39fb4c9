"""Capability surface models shared by the cloner and the decoy server."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Sequence, Union

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    UrlConstraints,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

DEFAULT_SCHEMA_VERSION = "2025-11-25"
DEFAULT_SERVER_VERSION = "1.0.0"


def _empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


_URI_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(
    Annotated[AnyUrl, UrlConstraints(host_required=False)]
)


def _check_uri(value: str) -> str:
    try:
        _URI_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise ValueError(f"invalid resource uri {value!r}: {exc.errors()[0]['msg']}") from None
    return value


def canonical_uri(value: str) -> str:
    """Return ``value`` in the normalized form MCP clients send it back in."""
    return str(_URI_ADAPTER.validate_python(value))


# Kept as the written string; checked against the URL type MCP messages carry.
ResourceUri = Annotated[str, AfterValidator(_check_uri)]


class SurfaceModel(BaseModel):
    """Base class with common config for persisted surface entries."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ----- Content blocks --------------------------------------------------------


class TextBlock(SurfaceModel):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(SurfaceModel):
    type: Literal["image"] = "image"
    data: str
    mime_type: str


class EmbeddedResourceContents(SurfaceModel):
    """Inline resource payload; exactly one of text or blob."""

    uri: ResourceUri
    mime_type: str | None = None
    text: str | None = None
    blob: str | None = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "EmbeddedResourceContents":
        if (self.text is None) == (self.blob is None):
            raise ValueError("embedded resource requires exactly one of text or blob")
        return self


class ResourceBlock(SurfaceModel):
    type: Literal["resource"] = "resource"
    resource: EmbeddedResourceContents


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ResourceBlock],
    Field(discriminator="type"),
]


# ----- Capability definitions ------------------------------------------------


class CannedToolResponse(SurfaceModel):
    is_error: bool = False
    content: tuple[ContentBlock, ...]


class ToolDefinition(SurfaceModel):
    """A tool as advertised by the target plus the decoy's canned answer."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = Field(default_factory=_empty_object_schema)
    response: CannedToolResponse

    @property
    def properties(self) -> dict[str, dict[str, Any]]:
        """Property name to ``{type, description}`` view of the input schema."""
        raw = self.input_schema.get("properties") or {}
        if not isinstance(raw, dict):
            return {}
        return {key: value for key, value in raw.items() if isinstance(value, dict)}

    @property
    def required(self) -> frozenset[str]:
        raw = self.input_schema.get("required") or []
        if not isinstance(raw, list):
            return frozenset()
        return frozenset(str(item) for item in raw)


class CannedResourceResponse(SurfaceModel):
    text: str | None = None
    blob: str | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "CannedResourceResponse":
        if self.text and self.blob:
            raise ValueError("resource response cannot include both text and blob")
        return self


class ResourceDefinition(SurfaceModel):
    uri: ResourceUri
    name: str
    description: str | None = None
    mime_type: str | None = None
    response: CannedResourceResponse


class ResourceTemplateDefinition(SurfaceModel):
    uri_template: str
    name: str
    description: str | None = None
    mime_type: str | None = None
    response: CannedResourceResponse


class PromptArgument(SurfaceModel):
    name: str
    description: str | None = None
    required: bool = False


class PromptMessage(SurfaceModel):
    role: Literal["user", "assistant"]
    content: ContentBlock


class CannedPromptResponse(SurfaceModel):
    description: str | None = None
    messages: tuple[PromptMessage, ...]


class PromptDefinition(SurfaceModel):
    name: str
    description: str | None = None
    arguments: tuple[PromptArgument, ...] = ()
    response: CannedPromptResponse


# ----- Surface ---------------------------------------------------------------


class ServerIdentity(SurfaceModel):
    name: str
    description: str | None = None
    version: str = DEFAULT_SERVER_VERSION


def _find_duplicate(keys: Sequence[str]) -> tuple[int, str] | None:
    seen: set[str] = set()
    for index, key in enumerate(keys):
        if key in seen:
            return index, key
        seen.add(key)
    return None


class CapabilitySurface(SurfaceModel):
    """Identity plus the four capability lists of a decoy server."""

    schema_version: str = Field(default=DEFAULT_SCHEMA_VERSION, alias="version")
    identity: ServerIdentity = Field(alias="server")
    tools: tuple[ToolDefinition, ...] = ()
    resources: tuple[ResourceDefinition, ...] = ()
    resource_templates: tuple[ResourceTemplateDefinition, ...] = ()
    prompts: tuple[PromptDefinition, ...] = ()

    @field_validator("tools")
    @classmethod
    def _unique_tool_names(
        cls, value: tuple[ToolDefinition, ...]
    ) -> tuple[ToolDefinition, ...]:
        duplicate = _find_duplicate([tool.name for tool in value])
        if duplicate:
            raise ValueError(f"duplicate tool name {duplicate[1]!r} at index {duplicate[0]}")
        return value

    @field_validator("resources")
    @classmethod
    def _unique_resource_uris(
        cls, value: tuple[ResourceDefinition, ...]
    ) -> tuple[ResourceDefinition, ...]:
        duplicate = _find_duplicate([resource.uri for resource in value])
        if duplicate:
            raise ValueError(f"duplicate resource uri {duplicate[1]!r} at index {duplicate[0]}")
        return value

    @field_validator("resource_templates")
    @classmethod
    def _unique_template_uris(
        cls, value: tuple[ResourceTemplateDefinition, ...]
    ) -> tuple[ResourceTemplateDefinition, ...]:
        duplicate = _find_duplicate([template.uri_template for template in value])
        if duplicate:
            raise ValueError(
                f"duplicate resource template {duplicate[1]!r} at index {duplicate[0]}"
            )
        return value

    @field_validator("prompts")
    @classmethod
    def _unique_prompt_names(
        cls, value: tuple[PromptDefinition, ...]
    ) -> tuple[PromptDefinition, ...]:
        duplicate = _find_duplicate([prompt.name for prompt in value])
        if duplicate:
            raise ValueError(f"duplicate prompt name {duplicate[1]!r} at index {duplicate[0]}")
        return value

    def summary(self) -> dict[str, int]:
        """Capability counts, mainly for startup logs."""
        return {
            "tools": len(self.tools),
            "resources": len(self.resources),
            "resource_templates": len(self.resource_templates),
            "prompts": len(self.prompts),
        }


__all__ = [
    "DEFAULT_SCHEMA_VERSION",
    "DEFAULT_SERVER_VERSION",
    "CannedPromptResponse",
    "CannedResourceResponse",
    "CannedToolResponse",
    "CapabilitySurface",
    "ContentBlock",
    "EmbeddedResourceContents",
    "ImageBlock",
    "PromptArgument",
    "PromptDefinition",
    "PromptMessage",
    "ResourceBlock",
    "ResourceDefinition",
    "ResourceTemplateDefinition",
    "ServerIdentity",
    "TextBlock",
    "ToolDefinition",
]
