"""Parse JSON emitted by a language model into plain Python shapes."""

import json
import re

# Models sometimes wrap JSON in a markdown fence despite being told not to.
_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def loads_json(text: str) -> object:
    """json.loads that tolerates a surrounding markdown fence."""
    match = _FENCE_RE.match(text or "")
    if match:
        text = match.group(1)
    return json.loads(text)


def ensure_string_list(value: object) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []
