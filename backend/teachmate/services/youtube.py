"""YouTube Data API v3 client (search + video details)."""

import json
import logging
import re

import httpx

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError

logger = logging.getLogger(__name__)

YOUTUBE_BASE_URL = "https://www.googleapis.com/youtube/v3"

_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def parse_duration(iso: str) -> float:
    """ISO-8601 duration ('PT1H2M30S') to minutes."""
    match = _ISO_DURATION.match(iso or "")
    if not match:
        return 0.0
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return hours * 60 + minutes + seconds / 60


def format_duration(minutes: float) -> str:
    """12.5 -> '12:30'."""
    whole = int(minutes)
    seconds = round((minutes - whole) * 60)
    if seconds == 60:
        whole, seconds = whole + 1, 0
    return f"{whole}:{seconds:02d}"


async def _get(path: str, params: dict) -> dict:
    if not settings.YOUTUBE_API_KEY:
        raise ExternalDependencyError("YOUTUBE_API_KEY is not configured")
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{YOUTUBE_BASE_URL}{path}",
                params={**params, "key": settings.YOUTUBE_API_KEY},
            )
            response.raise_for_status()
            return response.json()
    except httpx.HTTPError as e:
        logger.error("YouTube %s failed: %s", path, e)
        raise ExternalDependencyError(f"YouTube request failed: {e}") from e
    except json.JSONDecodeError as e:
        raise ExternalDependencyError("YouTube returned a non-JSON body") from e


async def search_video_ids(query: str, max_results: int = 10) -> list[str]:
    """Search embeddable, medium-length English videos."""
    data = await _get("/search", {
        "part": "snippet",
        "q": query,
        "type": "video",
        "maxResults": max_results,
        "videoDuration": "medium",
        "videoEmbeddable": "true",
        "relevanceLanguage": "en",
    })
    return [item["id"]["videoId"] for item in data.get("items", []) if item.get("id", {}).get("videoId")]


async def video_details(video_ids: list[str]) -> list[dict]:
    """Snippet, content details and statistics for each id."""
    if not video_ids:
        return []
    data = await _get("/videos", {
        "part": "snippet,contentDetails,statistics",
        "id": ",".join(video_ids),
        "hl": "en",
    })
    return data.get("items", [])
