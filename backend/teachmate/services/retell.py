"""Retell voice-call REST client."""

import json
import logging

import httpx

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError

logger = logging.getLogger(__name__)


async def create_web_call(agent_id: str, metadata: dict) -> dict:
    """Create a browser voice call; returns ``{call_id, access_token, ...}``."""
    if not settings.RETELL_API_KEY or not agent_id:
        raise ExternalDependencyError("Retell is not configured")

    url = f"{settings.RETELL_BASE_URL.rstrip('/')}/v2/create-web-call"
    headers = {
        "Authorization": f"Bearer {settings.RETELL_API_KEY}",
        "Content-Type": "application/json",
    }
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(url, headers=headers, json={"agent_id": agent_id, "metadata": metadata})
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as e:
        logger.error("Retell create-web-call failed: %s", e)
        raise ExternalDependencyError(f"Voice call creation failed: {e}") from e
    except json.JSONDecodeError as e:
        raise ExternalDependencyError("Retell returned a non-JSON body") from e

    if not data.get("call_id") or not data.get("access_token"):
        raise ExternalDependencyError("Retell response missing call_id or access_token")
    return data
