"""End-to-end tests of the decoy server over an in-memory MCP session."""

from __future__ import annotations

import pytest
from mcp import types
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session

from doppelganger.mcp.schema import CapabilitySurface
from doppelganger.mcp.server import build_decoy_server


@pytest.mark.asyncio
async def test_lists_every_capability(sample_surface: CapabilitySurface):
    server = build_decoy_server(sample_surface)
    async with create_connected_server_and_client_session(server) as client:
        tools = await client.list_tools()
        resources = await client.list_resources()
        templates = await client.list_resource_templates()
        prompts = await client.list_prompts()

    assert [tool.name for tool in tools.tools] == ["greet", "profile"]
    assert [str(resource.uri) for resource in resources.resources] == [
        "config://app",
        "file:///logo.png",
        "file:///empty.txt",
    ]
    assert [template.uriTemplate for template in templates.resourceTemplates] == [
        "users://{user_id}/profile"
    ]
    assert prompts.prompts[0].name == "summarize"


@pytest.mark.asyncio
async def test_tool_call_returns_canned_error(sample_surface: CapabilitySurface):
    server = build_decoy_server(sample_surface)
    async with create_connected_server_and_client_session(server) as client:
        hello = await client.call_tool("greet", {"name": "Ann"})
        literal = await client.call_tool("greet", {})
        mistyped = await client.call_tool("greet", {"times": "not-a-number"})

    assert hello.isError is True
    assert hello.content[0].text == "Hello Ann"
    assert literal.content[0].text == "Hello {{args.name}}"
    assert mistyped.content[0].text == "Hello {{args.name}}"


@pytest.mark.asyncio
async def test_required_schema_is_not_enforced(sample_payload):
    sample_payload["tools"][0]["inputSchema"]["required"] = ["name"]
    sample_payload["tools"][0]["inputSchema"]["additionalProperties"] = False
    server = build_decoy_server(CapabilitySurface.model_validate(sample_payload))
    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("greet", {"unexpected": True})

    assert result.content[0].text == "Hello {{args.name}}"


@pytest.mark.asyncio
async def test_unknown_tool_is_a_protocol_error(sample_surface: CapabilitySurface):
    server = build_decoy_server(sample_surface)
    async with create_connected_server_and_client_session(server) as client:
        with pytest.raises(McpError, match="Unknown tool: nope"):
            await client.call_tool("nope", {})


@pytest.mark.asyncio
async def test_resource_reads(sample_surface: CapabilitySurface):
    server = build_decoy_server(sample_surface)
    async with create_connected_server_and_client_session(server) as client:
        text = await client.read_resource("config://app")
        blob = await client.read_resource("file:///logo.png")
        templated = await client.read_resource("users://7/profile")
        with pytest.raises(McpError, match="Resource not found"):
            await client.read_resource("config://missing")

    assert text.contents[0].text == "served from config://app"
    assert isinstance(blob.contents[0], types.BlobResourceContents)
    assert blob.contents[0].blob == "iVBORw0KGgo="
    assert templated.contents[0].text == "profile of 7 at users://7/profile"


@pytest.mark.asyncio
async def test_prompt_renders_without_arguments(sample_surface: CapabilitySurface):
    server = build_decoy_server(sample_surface)
    async with create_connected_server_and_client_session(server) as client:
        listed = await client.list_prompts()
        bare = await client.get_prompt("summarize")
        filled = await client.get_prompt("summarize", {"tone": "dry"})

    assert all(not argument.required for argument in listed.prompts[0].arguments)
    assert bare.messages[0].content.text == "Summarize {{args.topic}}"
    assert filled.messages[1].role == "assistant"


@pytest.mark.asyncio
async def test_only_present_capabilities_are_advertised():
    surface = CapabilitySurface.model_validate(
        {
            "server": {"name": "tools-only"},
            "tools": [{"name": "ping", "response": {"content": [{"type": "text", "text": "pong"}]}}],
        }
    )
    server = build_decoy_server(surface)
    options = server.create_initialization_options()
    assert options.server_name == "tools-only"
    assert options.capabilities.tools is not None
    assert options.capabilities.resources is None
    assert options.capabilities.prompts is None
