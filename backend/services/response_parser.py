"""
Response parser for LLM output.

Models asked for "one JSON object" still wrap it in markdown fences, prefix
it with chatter, or trail off mid-object. This module finds the first
complete JSON object in the reply and hands it to repair.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n(.*?)```", re.DOTALL)

_decoder = json.JSONDecoder()


class MalformedResponseError(ValueError):
    """The reply contains no JSON object."""


def strip_fences(text: str) -> list[str]:
    """Contents of each fenced code block, in order."""
    return [m.group(1) for m in _FENCE_PATTERN.finditer(text)]


def _first_object(text: str) -> dict[str, Any] | None:
    """
    Scan for the first position where a JSON object decodes.
    Trailing text after the object is ignored.
    """
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = _decoder.raw_decode(text, start)
        except RecursionError:
            raise MalformedResponseError("JSON nested too deeply") from None
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)
    return None


def parse_response(text: str | None) -> dict[str, Any]:
    """
    Extract a JSON object from raw model text.

    Tries, in order: the whole text, each fenced block, then a scan of
    the whole text for the first decodable object.

    Raises:
        MalformedResponseError: If no JSON object can be found, or the
            reply nests too deeply to decode
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response")

    stripped = text.strip()
    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        parsed = None
    except RecursionError:
        logger.warning("parse_response: reply nested too deeply to decode")
        raise MalformedResponseError("JSON nested too deeply") from None
    if isinstance(parsed, dict):
        return parsed

    for block in strip_fences(stripped):
        found = _first_object(block)
        if found is not None:
            logger.debug("parse_response: extracted object from fenced block")
            return found

    found = _first_object(stripped)
    if found is not None:
        logger.debug("parse_response: extracted object from surrounding text")
        return found

    logger.warning("parse_response: no JSON object in reply: %r", stripped[:200])
    raise MalformedResponseError("No JSON object in response")
