"""Pull the JSON payload out of a free-text model reply."""
import json
import re
from typing import Any

FENCE = "```"
LANGUAGE_TAG = re.compile(r"^[A-Za-z][\w-]*")


class ExtractionError(ValueError):
    """The reply contained no parseable JSON."""


def _strip_fences(text: str) -> str:
    # Keep only what sits between the outermost fences, minus a tag like "json"
    start = text.find(FENCE)
    end = text.rfind(FENCE)
    if start != -1 and end > start:
        text = text[start + len(FENCE):end].strip()
        text = LANGUAGE_TAG.sub("", text, count=1).strip()
    return text


def _slice_brackets(text: str) -> str:
    starts = [i for i in (text.find("["), text.find("{")) if i >= 0]
    end = max(text.rfind("]"), text.rfind("}"))
    if starts and end >= min(starts):
        return text[min(starts):end + 1].strip()
    return text


def extract_problems_from_text(text: str | None) -> list[Any]:
    """Return the JSON array embedded in ``text``.

    Handles markdown code fences, prose before or after the payload, and a
    single object in place of an array (returned as a one-element list).
    Raises ExtractionError when nothing parses.
    """
    candidate = _slice_brackets(_strip_fences(str(text or "").strip()))

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(candidate.replace(FENCE, "").strip())
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Could not parse JSON from model reply: {e}") from e

    if not isinstance(parsed, list):
        parsed = [parsed]
    return parsed
