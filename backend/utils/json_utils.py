"""
Parsing helpers for suggestion-provider responses.

Generative models answer either with a JSON array (optionally wrapped in a
markdown fence) or with a numbered/bulleted list. Both shapes are reduced to
a flat list of suggestion strings.
"""

import json
import logging
import re
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# Tried in order after the whole response fails to parse as JSON
_ARRAY_CANDIDATES = (
    re.compile(r"```json\s*([\s\S]*?)\s*```"),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
    re.compile(r"(\[[\s\S]*\])"),
)

# "1. ", "2) ", "- ", "* ", "• "
_LIST_MARKER = re.compile(r"^\s*(?:\d+[\.\)]|[-*•])\s*")


def safe_json_parse(text: Any, default: Any = None) -> Any:
    """json.loads that returns default for blank, non-string or malformed input."""
    if not isinstance(text, str) or not text.strip():
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Response is not JSON ({e.msg} at {e.pos}): {text[:80]!r}")
        return default


def extract_json_array_from_text(text: Any) -> Optional[List[Any]]:
    """
    The first JSON array found in a model response, or None.

        >>> extract_json_array_from_text('Sure:\\n```json\\n["a", "b"]\\n```')
        ['a', 'b']
    """
    if not isinstance(text, str):
        return None
    candidates = [text.strip()]
    for pattern in _ARRAY_CANDIDATES:
        match = pattern.search(text)
        if match:
            candidates.append(match.group(1).strip())

    for candidate in candidates:
        value = safe_json_parse(candidate)
        if isinstance(value, list):
            return value
    return None


def _suggestion_text(item: Any) -> str:
    if isinstance(item, dict):
        # Nice class suggestions: {"class": "9", "suggestion": "..."}
        text = str(item.get("suggestion") or item.get("text") or "").strip()
        nice_class = item.get("class") or item.get("niceClass")
        if nice_class and text:
            return f"Class {nice_class}: {text}"
        return text
    return str(item).strip()


def strip_list_marker(line: str) -> str:
    """Remove a leading number or bullet from a list line."""
    return _LIST_MARKER.sub('', line).strip()


def parse_suggestion_lines(text: str, limit: Optional[int] = None) -> List[str]:
    """
    Turn a model response into a list of suggestion strings.

    Example:
        >>> parse_suggestion_lines("1. Shorten the title\\n2. Name all inventors")
        ['Shorten the title', 'Name all inventors']
    """
    if not text or not isinstance(text, str):
        return []

    items = extract_json_array_from_text(text)
    if items is not None:
        suggestions = [_suggestion_text(item) for item in items]
    else:
        suggestions = [strip_list_marker(line) for line in text.splitlines()]

    suggestions = [s for s in suggestions if s]
    if limit is not None:
        suggestions = suggestions[:limit]
    return suggestions
