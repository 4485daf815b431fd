"""Salvage JSON arrays from noisy LLM responses."""

from __future__ import annotations

import json
import re

_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences an LLM may wrap around JSON."""
    text = text.strip()
    if text.startswith("```"):
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines)
    return text


def find_json_array(text: str | None) -> list | None:
    """Return the outermost JSON array found in ``text``, or None.

    Handles bare arrays, arrays wrapped in an object (``{"topics": [...]}``)
    and arrays surrounded by prose.
    """
    if not text:
        return None
    text = strip_code_fences(text)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for value in parsed.values():
            if isinstance(value, list):
                return value
        return None

    match = _ARRAY.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, list) else None
