"""Best-effort recovery of a JSON object from model output.

Hosted models sometimes wrap the requested JSON in prose or Markdown fences.
The recovery policy:

1. take the first balanced top-level ``{...}`` span and parse it;
2. otherwise parse the whole response;
3. otherwise fail.

Malformed JSON is never repaired, and only JSON objects are accepted.
"""

from __future__ import annotations

import json
from typing import Any


class JSONExtractionError(ValueError):
    """Raised when no JSON object can be recovered from a text."""


def find_balanced_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span of ``text``.

    Braces inside JSON string literals (including escaped quotes) do not
    count towards nesting.

    Args:
        text: Arbitrary text, typically a model response.

    Returns:
        The span including both outer braces, or None if the first ``{``
        is never closed or there is none.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def _load_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: str | None) -> dict[str, Any]:
    """Parse the JSON object contained in ``text``.

    Args:
        text: Model response text.

    Returns:
        The parsed JSON object.

    Raises:
        JSONExtractionError: If neither the first balanced span nor the whole
            text parses as a JSON object.

    Examples:
        >>> extract_json_object('Here it is: {"a": {"b": 1}} Thanks')
        {'a': {'b': 1}}
    """
    if not text or not text.strip():
        raise JSONExtractionError("Empty text")

    span = find_balanced_object(text)
    if span is not None:
        parsed = _load_object(span)
        if parsed is not None:
            return parsed

    parsed = _load_object(text.strip())
    if parsed is not None:
        return parsed

    raise JSONExtractionError("No JSON object found in text")
