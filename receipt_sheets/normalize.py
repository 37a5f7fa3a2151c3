"""Recover a JSON value from a vision model's text completion."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .errors import EmptyResponseError, MalformedResponseError

logger = logging.getLogger(__name__)

# Whole completion is one fenced block, optionally tagged (```json).
_FENCED = re.compile(r"^```[\w-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)
# A fenced block somewhere inside surrounding prose.
_EMBEDDED_FENCE = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)


def strip_fences(text: str) -> str:
    """Remove Markdown code fences and surrounding whitespace."""
    cleaned = text.strip()
    m = _FENCED.match(cleaned)
    if m:
        return m.group(1).strip()
    m = _EMBEDDED_FENCE.search(cleaned)
    if m:
        return m.group(1).strip()
    return cleaned


def _outermost_object(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_completion(raw: Any) -> Any:
    """Parse a raw completion into a generic JSON value.

    Already-parsed values (dicts and lists) are returned unchanged, so
    applying this to its own output is a no-op.

    Raises:
        EmptyResponseError: ``raw`` is None or blank.
        MalformedResponseError: No JSON could be recovered. Carries the raw text.
    """
    if isinstance(raw, (dict, list)):
        return raw
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise EmptyResponseError("completion is empty")
    if not isinstance(raw, str):
        raise MalformedResponseError(
            f"completion is a {type(raw).__name__}, not text", raw_text=repr(raw)
        )

    try:
        return json.loads(raw.strip())
    except json.JSONDecodeError:
        pass

    cleaned = strip_fences(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as first_error:
        # Stray prose around an unfenced object
        candidate = _outermost_object(cleaned)
        if candidate is not None and candidate != cleaned:
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                pass
        logger.warning("Could not parse completion as JSON: %s", first_error)
        raise MalformedResponseError(
            f"completion is not valid JSON: {first_error}", raw_text=raw
        ) from first_error
