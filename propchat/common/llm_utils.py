"""Shared utilities for parsing LLM responses."""

from __future__ import annotations

import json
import re

# First "{" through last "}"; not brace-aware
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_llm_json(raw: str) -> dict:
    """Parse the JSON object embedded in an LLM response.

    The reply may carry code fences or commentary around the object. The span
    from the first '{' to the last '}' is decoded as-is; malformed JSON is not
    repaired. Anything that does not decode to an object yields an empty dict.
    """
    if not raw:
        return {}

    match = _JSON_OBJECT_RE.search(raw)
    if not match:
        return {}

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return {}

    return data if isinstance(data, dict) else {}
