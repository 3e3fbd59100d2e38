"""Array / mapping helpers shared by fields, requests and the dispatcher."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


def collect(value: Any) -> list[Any]:
    """Wrap a scalar in a list. Lists and tuples are copied, None is empty."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def decode(value: Any) -> Any:
    """
    Decode a JSON-encoded array coming from the database.

    Values that are already lists/dicts pass through. Undecodable strings
    become None, like a failed json_decode.
    """
    if value is None or isinstance(value, (list, dict)):
        return value
    if isinstance(value, (bytes, str)):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.debug("arr: could not decode %r as an array", value)
            return None
    return value


def data_get(data: Any, key: str, default: Any = None) -> Any:
    """
    Read a value by key. A literal key wins over dot-notation traversal.
    """
    if isinstance(data, dict) and key in data:
        return data[key]

    current = data
    for segment in key.split("."):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default
    return current


def data_has(data: Any, key: str) -> bool:
    return data_get(data, key, _MISSING) is not _MISSING


# ---------------------------------------------------------------------------
# Bracket-notation expansion
# ---------------------------------------------------------------------------

_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def _bracket_segments(key: str) -> list[str] | None:
    match = _BRACKET_KEY.match(key)
    if not match:
        return None
    return [match.group(1), *_SEGMENT.findall(match.group(2))]


def _as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(i): v for i, v in enumerate(value)}
    return {}


def _set_segments(target: dict[str, Any], segments: list[str], value: Any) -> None:
    head, *rest = segments
    if head == "":
        head = str(_next_index(target))
    if not rest:
        target[head] = value
        return
    child = _as_mapping(target.get(head))
    target[head] = child
    _set_segments(child, rest, value)


def _next_index(target: dict[str, Any]) -> int:
    indexes = [int(k) for k in target if k.isdigit()]
    return max(indexes) + 1 if indexes else 0


def _normalize(value: Any) -> Any:
    """Turn {"0": a, "1": b} mappings back into lists, recursively."""
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if not isinstance(value, dict):
        return value
    normalized = {k: _normalize(v) for k, v in value.items()}
    keys = list(normalized)
    if keys and all(k.isdigit() for k in keys):
        ordered = sorted(keys, key=int)
        if [int(k) for k in ordered] == list(range(len(ordered))):
            return [normalized[k] for k in ordered]
    return normalized


def parse_array_parameters(data: dict[str, Any] | None) -> dict[str, Any]:
    """
    Expand bracket-notation keys ("tags[0]", "author[name]", "ids[]") into
    nested values, merge them over the original data and drop every key that
    still contains a bracket.

        {"tags[0]": "a", "tags[1]": "b"} -> {"tags": ["a", "b"]}
    """
    data = data or {}
    parsed: dict[str, Any] = {}

    for key, value in data.items():
        if _bracket_segments(str(key)) is None:
            parsed[str(key)] = value

    for key, value in data.items():
        segments = _bracket_segments(str(key))
        if segments is not None:
            _set_segments(parsed, segments, value)

    merged = {**data, **{k: _normalize(v) if _has_bracket_origin(k, data) else v for k, v in parsed.items()}}
    return {k: v for k, v in merged.items() if "[" not in str(k)}


def _has_bracket_origin(name: str, data: dict[str, Any]) -> bool:
    prefix = f"{name}["
    return any(str(k).startswith(prefix) for k in data)
