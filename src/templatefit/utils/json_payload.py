"""JSON extraction from model output.

Models asked for "JSON only" still wrap it in markdown fences or surround it with prose.
These helpers recover the first JSON object from such output.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from templatefit.logging import get_logger

logger = get_logger(__name__)

_FENCE_JSON_RE = re.compile(r"```json\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_FENCE_ANY_RE = re.compile(r"```\s*\n?(.*?)\n?```", re.DOTALL)


def _balanced_object(text: str) -> Optional[str]:
    """Return the first brace-balanced ``{...}`` span, ignoring braces inside strings."""

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
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
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Extract one JSON object from ``text``.

    Strategies, strictest first:
        1. a ```json fenced block (or any fenced block holding an object);
        2. the whole text, when it looks like an object;
        3. the first brace-balanced span in the text.

    Returns ``None`` instead of raising when nothing parses.
    """

    if not text:
        return None

    cleaned = text.strip()

    m = _FENCE_JSON_RE.search(cleaned) or _FENCE_ANY_RE.search(cleaned)
    if m:
        inner = m.group(1).strip()
        if inner.startswith("{") and inner.endswith("}"):
            try:
                return json.loads(inner)
            except json.JSONDecodeError:
                logger.debug("extract_json_object: markdown-fenced JSON parse failed")

    if cleaned.startswith("{") and cleaned.endswith("}"):
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            logger.debug("extract_json_object: whole-text JSON parse failed")

    candidate = _balanced_object(cleaned)
    if candidate is not None:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug("extract_json_object: balanced-span JSON parse failed")
        else:
            if isinstance(data, dict):
                return data

    return None
