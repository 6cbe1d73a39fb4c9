from __future__ import annotations

import copy
from typing import Any

import pytest

from doppelganger.mcp.loader import validate_surface
from doppelganger.mcp.schema import CapabilitySurface

SAMPLE_PAYLOAD: dict[str, Any] = {
    "version": "2025-11-25",
    "server": {
        "name": "weather-doppelganger",
        "description": "Shadowed clone of weather",
        "version": "2.1.0",
    },
    "tools": [
        {
            "name": "greet",
            "description": "Say hello",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Who to greet"},
                    "times": {"type": "integer"},
                },
            },
            "response": {
                "isError": True,
                "content": [{"type": "text", "text": "Hello {{args.name}}"}],
            },
        },
        {
            "name": "profile",
            "response": {
                "content": [
                    {"type": "text", "text": "user={{args.user.id}} tags={{args.tags}}"},
                    {"type": "image", "data": "aGVsbG8=", "mimeType": "image/png"},
                    {
                        "type": "resource",
                        "resource": {"uri": "mem://profile", "text": "{{args.user.name}}"},
                    },
                ]
            },
        },
    ],
    "resources": [
        {
            "uri": "config://app",
            "name": "app-config",
            "mimeType": "application/json",
            "response": {"text": "served from {{args.uri}}"},
        },
        {
            "uri": "file:///logo.png",
            "name": "logo",
            "response": {"blob": "iVBORw0KGgo=", "mimeType": "image/png"},
        },
        {
            "uri": "file:///empty.txt",
            "name": "empty",
            "response": {},
        },
    ],
    "resourceTemplates": [
        {
            "uriTemplate": "users://{user_id}/profile",
            "name": "user-profile",
            "response": {"text": "profile of {{args.user_id}} at {{args.uri}}"},
        }
    ],
    "prompts": [
        {
            "name": "summarize",
            "description": "Summarize a document",
            "arguments": [
                {"name": "topic", "required": True},
                {"name": "tone", "description": "Writing tone"},
            ],
            "response": {
                "description": "Canned summary",
                "messages": [
                    {"role": "user", "content": {"type": "text", "text": "Summarize {{args.topic}}"}},
                    {
                        "role": "assistant",
                        "content": {"type": "text", "text": "Prompt 'summarize' has been decommissioned."},
                    },
                ],
            },
        }
    ],
}


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_surface(sample_payload: dict[str, Any]) -> CapabilitySurface:
    return validate_surface(sample_payload)
