"""Noise stripping and JSON extraction for model output.

Models asked for "raw JSON only" still wrap it in Markdown fences or add a sentence of
explanation before/after the object. These helpers peel that off without touching
backticks that live inside JSON string values.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from papersmith.logging import get_logger

logger = get_logger(__name__)


_OPEN_FENCE_RE = re.compile(r"\A```[a-zA-Z0-9_-]*[ \t]*\n?")
_CLOSE_FENCE_RE = re.compile(r"\n?[ \t]*```\Z")
_DECODER = json.JSONDecoder()


def strip_code_fences(text: str) -> str:
    """Remove a Markdown fence wrapping the whole text.

    Only a fence at the very start (and, if present, the very end) is removed, so fences
    quoted inside the payload survive. An unterminated opening fence is removed as well.
    """

    if not text:
        return ""

    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _OPEN_FENCE_RE.sub("", cleaned, count=1)
    cleaned = _CLOSE_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Extract one JSON object from noisy text.

    Strategy (strict to lenient):
        1. Parse the stripped text as a whole.
        2. Parse it again with a wrapping code fence removed.
        3. Decode from each ``{`` in turn and ignore anything after the matching ``}``.

    Returns ``None`` if no JSON object can be decoded.
    """

    cleaned = (text or "").strip()
    if not cleaned:
        return None

    for candidate in dict.fromkeys((cleaned, strip_code_fences(cleaned))):
        if not candidate:
            continue
        try:
            whole = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        return whole if isinstance(whole, dict) else None
    logger.debug("extract_json_object: whole-text JSON parse failed")

    start = cleaned.find("{")
    while start != -1:
        try:
            obj, _end = _DECODER.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            start = cleaned.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = cleaned.find("{", start + 1)

    logger.debug("extract_json_object: no decodable JSON object found")
    return None
