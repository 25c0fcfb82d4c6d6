"""JSON extraction from LLM output.

Models wrap structured answers in prose, markdown fences or both. The
manager protocol tolerates the wrapping but not malformed JSON, so this
module locates a candidate object and parses it strictly:

1. Any ```json ... ``` (or bare ```) fenced block, in order of appearance.
2. The first balanced { ... } substring of the whole text.

Nothing is repaired. If no candidate parses into an object,
JSONExtractionError is raised.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from crewflow.errors import JSONExtractionError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?(.*?)```", re.DOTALL)


def extract_json(text: str) -> dict[str, Any]:
    """Return the first JSON object found in ``text``, preferring fenced blocks."""
    if not isinstance(text, str):
        raise JSONExtractionError(f"Expected text, got {type(text).__name__}")

    last_error: Optional[str] = None

    for block in _FENCE_RE.findall(text):
        candidate = _extract_braces(block)
        if candidate is None:
            continue
        data, last_error = _try_parse(candidate)
        if data is not None:
            return data

    candidate = _extract_braces(text)
    if candidate is not None:
        data, last_error = _try_parse(candidate)
        if data is not None:
            return data

    preview = text[:200].replace("\n", "\\n")
    if last_error:
        raise JSONExtractionError(f"Malformed JSON in LLM output ({last_error}): {preview}")
    raise JSONExtractionError(f"No JSON object found in LLM output: {preview}")


def _try_parse(text: str) -> tuple[Optional[dict[str, Any]], Optional[str]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON candidate rejected: {e}")
        return None, str(e)
    if not isinstance(data, dict):
        return None, f"expected an object, got {type(data).__name__}"
    return data, None


def _extract_braces(text: str) -> Optional[str]:
    """Find the first balanced { ... } in the text using brace counting."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    # Unbalanced: hand the tail to the parser so the error names the problem
    return text[start:]
