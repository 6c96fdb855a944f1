"""
Response Parsing
================

Tolerant JSON extraction from model replies.
"""

import json
import logging
import re
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?```\s*$", re.DOTALL | re.IGNORECASE)

# Keys under which models tend to wrap a list of scenes
_WRAPPER_KEYS = ("scenes", "panels", "keyframes", "shots", "prompts", "storyboard", "items")


def safe_json_parse(text: Optional[str]) -> Optional[Any]:
    """
    Parse JSON from a model reply.

    Strips markdown code fences, then falls back to the outermost ``[...]``
    or ``{...}`` span. Returns None when nothing parses.
    """
    if not text:
        return None

    candidate = text.strip()
    fenced = _FENCE_RE.match(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    try:
        return json.loads(candidate)
    except ValueError:
        pass

    for open_char, close_char in (("[", "]"), ("{", "}")):
        start = text.find(open_char)
        end = text.rfind(close_char)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except ValueError:
                continue

    logger.warning(f"Could not parse JSON from model reply: {text[:120]!r}")
    return None


def _entry_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry.strip()
    if isinstance(entry, dict):
        for key in ("description", "prompt", "text"):
            value = entry.get(key)
            if isinstance(value, str):
                return value.strip()
    return ""


def extract_descriptions(parsed: Any) -> Optional[List[str]]:
    """
    Pull an ordered list of descriptions out of parsed JSON.

    Accepts a list of strings, a list of objects with a ``description``
    field, or an object wrapping such a list. Empty entries are dropped.
    Returns None if the structure is not recognized.
    """
    if isinstance(parsed, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(parsed.get(key), list):
                parsed = parsed[key]
                break
        else:
            lists = [value for value in parsed.values() if isinstance(value, list)]
            if len(lists) != 1:
                return None
            parsed = lists[0]

    if not isinstance(parsed, list):
        return None

    return [text for text in (_entry_text(entry) for entry in parsed) if text]
