"""Curriculum vector search: Pinecone data-plane REST API.

Chunks in the ``teachmate-resources`` index carry metadata such as
``subject``, ``grade`` (int), ``chapter`` (str), ``topic``, ``section``,
``contentType`` and ``textPreview``.
"""

import json
import logging
from typing import Optional

import httpx

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError
from teachmate.services import ai_client

logger = logging.getLogger(__name__)


def _index_url(path: str) -> str:
    host = settings.PINECONE_INDEX_HOST.strip().rstrip("/")
    if not host:
        raise ExternalDependencyError("PINECONE_INDEX_HOST is not configured")
    if not host.startswith("http"):
        host = f"https://{host}"
    return f"{host}{path}"


async def query(vector: list[float], top_k: int, filter: Optional[dict] = None) -> list[dict]:
    """Nearest-neighbour query; returns ``[{id, score, metadata}]``."""
    body: dict = {"vector": vector, "topK": top_k, "includeMetadata": True}
    if filter:
        body["filter"] = filter

    headers = {
        "Api-Key": settings.PINECONE_API_KEY,
        "Content-Type": "application/json",
        "X-Pinecone-API-Version": "2024-07",
    }
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(_index_url("/query"), headers=headers, json=body)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as e:
        logger.error("Pinecone query failed: %s", e)
        raise ExternalDependencyError(f"Vector search failed: {e}") from e
    except json.JSONDecodeError as e:
        raise ExternalDependencyError("Vector search returned a non-JSON body") from e

    return [
        {"id": m.get("id"), "score": m.get("score", 0.0), "metadata": m.get("metadata") or {}}
        for m in data.get("matches", [])
    ]


async def search(text: str, top_k: int, filter: Optional[dict] = None) -> list[dict]:
    """Embed ``text`` and query the index with it."""
    vector = await ai_client.embed(text)
    return await query(vector, top_k, filter)


def group_by_content_type(matches: list[dict], limits: dict[str, int]) -> dict[str, list[dict]]:
    """Bucket chunks by ``metadata.contentType`` keeping at most ``limits[type]`` each.

    Unknown content types fall into ``explanation``.
    """
    grouped: dict[str, list[dict]] = {key: [] for key in limits}
    for match in matches:
        meta = match.get("metadata", {})
        kind = meta.get("contentType", "explanation")
        if kind not in grouped:
            kind = "explanation" if "explanation" in grouped else next(iter(grouped))
        if len(grouped[kind]) < limits[kind]:
            grouped[kind].append({
                "text": meta.get("textPreview", ""),
                "section": meta.get("section", ""),
                "topic": meta.get("topic", ""),
                "chapter": meta.get("chapter"),
            })
    return grouped
