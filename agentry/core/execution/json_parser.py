"""
agentry.core.execution.json_parser - JSON extraction from model text

Models wrap JSON in markdown fences or surround it with prose. Extraction
tries, in order: the whole text, the first fenced block, then the widest
bracket- or brace-delimited substring.
"""

import json
import re
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_BRACKETED = re.compile(r"(\[[\s\S]*\]|\{[\s\S]*\})")


def parse_json_from_response(response: str) -> Any:
    """
    Extract and parse JSON from a model response.

    Args:
        response: Raw model text

    Returns:
        Parsed JSON value

    Raises:
        ValueError: If no valid JSON can be found

    Example:
        >>> parse_json_from_response('Here you go:\\n```json\\n[1, 2]\\n```')
        [1, 2]
    """
    trimmed = response.strip()

    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    match = _FENCED_BLOCK.search(trimmed)
    if match and match.group(1):
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    match = _BRACKETED.search(trimmed)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Could not extract valid JSON from response: {response}")


def contains_json(response: str) -> bool:
    """Check whether a response holds extractable JSON."""
    try:
        parse_json_from_response(response)
    except ValueError:
        return False
    return True
