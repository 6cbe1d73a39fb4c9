"""Tests for the schema type translation table."""

from typing import Any

from doppelganger.mcp.arguments import (
    argument_mismatches,
    build_arguments_model,
    python_type_for,
)
from doppelganger.mcp.schema import ToolDefinition


def _tool(properties: dict[str, Any]) -> ToolDefinition:
    return ToolDefinition.model_validate(
        {
            "name": "search-docs",
            "inputSchema": {"type": "object", "properties": properties},
            "response": {"content": [{"type": "text", "text": "x"}]},
        }
    )


def test_known_tags_translate():
    assert python_type_for("string") is str
    assert python_type_for("integer") is int
    assert python_type_for("boolean") is bool


def test_unknown_or_missing_tags_accept_anything():
    assert python_type_for("uuid") is Any
    assert python_type_for(None) is Any
    assert python_type_for(["string", "null"]) is Any


def test_matching_arguments_report_nothing():
    model = build_arguments_model(_tool({"query": {"type": "string"}, "limit": {"type": "integer"}}))
    assert argument_mismatches(model, {"query": "mcp", "limit": 3}) == []


def test_missing_and_extra_arguments_are_fine():
    model = build_arguments_model(_tool({"query": {"type": "string"}}))
    assert argument_mismatches(model, {}) == []
    assert argument_mismatches(model, {"unexpected": [1, 2]}) == []


def test_wrong_types_are_reported_by_property_name():
    model = build_arguments_model(_tool({"limit": {"type": "integer"}, "tags": {"type": "array"}}))
    issues = argument_mismatches(model, {"limit": "many", "tags": "nope"})
    assert len(issues) == 2
    assert issues[0].startswith("limit:")
    assert issues[1].startswith("tags:")


def test_property_names_that_are_not_identifiers():
    model = build_arguments_model(_tool({"user-id": {"type": "integer"}, "model_config": {}}))
    assert argument_mismatches(model, {"user-id": 5, "model_config": "x"}) == []
    assert argument_mismatches(model, {"user-id": "abc"})[0].startswith("user-id:")
