"""Recover structured payloads from free-form model responses."""

from __future__ import annotations

import json
import logging
from typing import Any

from studybuddy.core.errors import InvalidModelOutputError

logger = logging.getLogger(__name__)


def find_json_array(text: str) -> str | None:
    """
    First balanced `[...]` span in `text`, or None.

    Brackets inside JSON string literals are ignored, so a response such as
    'Here you go: [{"title": "Arrays [1/2]"}] Enjoy!' yields the full array.
    """
    start = text.find("[")
    while start != -1:
        depth     = 0
        in_string = False
        escaped   = False
        for pos in range(start, len(text)):
            ch = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    return text[start:pos + 1]
        # unbalanced from this opening bracket; try the next one
        start = text.find("[", start + 1)
    return None


def extract_json_array(response: str) -> list[Any]:
    """
    Parse the first JSON array embedded in a model response.

    Raises:
        InvalidModelOutputError: no array found, invalid JSON, or not a list.
    """
    candidate = find_json_array(response)
    if candidate is None:
        raise InvalidModelOutputError("No valid JSON array found in response")

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.debug("Parsing | invalid JSON array: %s", exc)
        raise InvalidModelOutputError(f"Model returned malformed JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise InvalidModelOutputError("Model response JSON is not an array")
    return payload
