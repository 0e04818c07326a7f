"""Claude API client — structured JSON output through a forced tool call.

Used for review analysis, where the answer must match a fixed JSON shape.
The schema is passed as the input_schema of a single tool and the model is
forced to call it, so the tool input is the parsed result.

Usage:
    from app.utils.claude_client import claude_structured
    result = await claude_structured(
        prompt="Analyze these reviews...",
        schema=SENTIMENT_SCHEMA,
        system="You summarize restaurant reviews for the owner.",
    )
"""

import logging
from typing import Any

import httpx

from app.config import settings

log = logging.getLogger("brandcc.claude")

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"

MODEL = "claude-haiku-4-5-20251001"


def _headers() -> dict:
    return {
        "x-api-key": settings.anthropic_api_key,
        "anthropic-version": API_VERSION,
        "content-type": "application/json",
    }


async def claude_structured(
    prompt: str,
    schema: dict,
    *,
    system: str = "",
    max_tokens: int = 1024,
    timeout: int = 30,
) -> dict | None:
    """Call Claude and return the JSON object it produced for `schema`.

    Returns None when no API key is configured or the call fails in any way;
    callers always have a non-AI fallback.
    """
    if not settings.anthropic_api_key:
        return None

    body: dict[str, Any] = {
        "model": MODEL,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": prompt}],
        "tools": [
            {
                "name": "structured_output",
                "description": "Return structured data matching the required schema.",
                "input_schema": schema,
            }
        ],
        "tool_choice": {"type": "tool", "name": "structured_output"},
    }
    if system:
        body["system"] = system

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(API_URL, headers=_headers(), json=body)
    except httpx.HTTPError as e:
        log.warning(f"Claude structured call failed: {e}")
        return None

    if resp.status_code != 200:
        log.warning(f"Claude API {resp.status_code}: {resp.text[:200]}")
        return None

    for block in resp.json().get("content", []):
        if block.get("type") == "tool_use" and block.get("name") == "structured_output":
            return block.get("input")

    log.warning("Claude structured output: no tool_use block in response")
    return None
