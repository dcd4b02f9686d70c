"""Gemini client that asks for problems and returns the parsed JSON array."""
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from .extractor import extract_problems_from_text

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
MODEL = "gemini-1.5-flash"
TEMPERATURE = 0.4
ERROR_BODY_LIMIT = 500


class GeminiResult(BaseModel):
    """Either the raw parsed problems or an error message."""
    problems: list[Any] = []
    error: Optional[str] = None


def _reply_text(payload: dict) -> str:
    try:
        return payload["candidates"][0]["content"]["parts"][0].get("text") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


async def call_gemini(client: httpx.AsyncClient, prompt: str, api_key: Optional[str]) -> GeminiResult:
    """Send ``prompt`` to Gemini once and extract the problems from its reply."""
    if not api_key:
        return GeminiResult(error="Missing GEMINI_API_KEY")

    try:
        response = await client.post(
            GEMINI_URL.format(model=MODEL),
            params={"key": api_key},
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": TEMPERATURE},
            },
        )
        if not response.is_success:
            logger.warning("Gemini returned %s", response.status_code)
            return GeminiResult(
                error=f"Gemini error {response.status_code}: {response.text[:ERROR_BODY_LIMIT]}"
            )

        text = _reply_text(response.json())
        problems = extract_problems_from_text(text)
        logger.info("Gemini returned %d problem(s)", len(problems))
        return GeminiResult(problems=problems)

    except Exception as e:
        logger.warning("Gemini call failed: %s", e)
        return GeminiResult(error=str(e) or e.__class__.__name__)
