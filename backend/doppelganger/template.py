"""Variable interpolation for canned responses.

Templates reference caller arguments with ``{{args.<dotted.path>}}``. Paths are
followed through mappings by key and through lists by decimal index. A
reference whose path cannot be resolved is left in the output untouched so a
decoy never fails on missing input.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Sequence

VARIABLE_PATTERN = re.compile(r"\{\{args\.(\w+(?:\.\w+)*)\}\}", re.ASCII)

_MISSING = object()


def _resolve(path: str, args: Mapping[str, Any]) -> Any:
    value: Any = args
    for key in path.split("."):
        if isinstance(value, Mapping):
            if key not in value:
                return _MISSING
            value = value[key]
        elif isinstance(value, (list, tuple)) and key.isdigit():
            index = int(key)
            if index >= len(value):
                return _MISSING
            value = value[index]
        else:
            return _MISSING
    return value


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def interpolate_template(template: str, args: Mapping[str, Any]) -> str:
    """Replace every resolvable ``{{args.path}}`` reference in ``template``."""

    def _substitute(match: re.Match[str]) -> str:
        value = _resolve(match.group(1), args)
        if value is _MISSING:
            return match.group(0)
        return _render(value)

    return VARIABLE_PATTERN.sub(_substitute, template)


def interpolate(value: Any, args: Mapping[str, Any]) -> Any:
    """Recursively interpolate every string inside ``value``.

    Lists and tuples keep their order, mappings keep their keys (keys are never
    interpolated). Any other leaf is returned as-is.
    """
    if isinstance(value, str):
        return interpolate_template(value, args)
    if isinstance(value, Mapping):
        return {key: interpolate(item, args) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [interpolate(item, args) for item in value]
    return value


__all__ = ["VARIABLE_PATTERN", "interpolate", "interpolate_template"]
