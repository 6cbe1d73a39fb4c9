"""Translate captured JSON-schema property types into a permissive argument model.

The decoy never rejects a call, so the model is only used to report how caller
arguments differ from what the cloned server advertised.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from .schema import ToolDefinition

TYPE_TABLE: dict[str, Any] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "array": list[Any],
    "object": dict[str, Any],
}


def python_type_for(type_tag: Any) -> Any:
    """Return the Python annotation for a schema type tag; unknown tags accept anything."""
    if isinstance(type_tag, str):
        return TYPE_TABLE.get(type_tag, Any)
    return Any


class ToolArguments(BaseModel):
    """Base for generated argument models; unknown keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=False)


def build_arguments_model(tool: ToolDefinition) -> type[ToolArguments]:
    fields: dict[str, Any] = {}
    for index, (name, prop) in enumerate(tool.properties.items()):
        annotation = python_type_for(prop.get("type"))
        fields[f"arg_{index}"] = (
            Optional[annotation],
            Field(default=None, alias=name, description=prop.get("description")),
        )
    return create_model(  # type: ignore[call-overload]
        f"{tool.name.replace('-', '_')}_arguments",
        __base__=ToolArguments,
        **fields,
    )


def argument_mismatches(
    model: type[ToolArguments], arguments: Mapping[str, Any]
) -> list[str]:
    """Return ``path: message`` entries for arguments that do not fit the model."""
    try:
        model.model_validate(dict(arguments))
    except ValidationError as exc:
        return [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
    return []


__all__ = [
    "TYPE_TABLE",
    "ToolArguments",
    "argument_mismatches",
    "build_arguments_model",
    "python_type_for",
]
