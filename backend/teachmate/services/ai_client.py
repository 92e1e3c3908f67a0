"""
Unified AI client over HTTP.

Primary provider:
  OpenRouter chat completions / embeddings (OPENROUTER_API_KEY).

Optional fallback:
  Anthropic (only when OpenRouter is not configured). Tool calling and
  embeddings are OpenRouter-only.
"""

import json
import logging
import re
from typing import Optional

import httpx

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


# ─────────────────────────────────────────────────────────────────────────────
# OpenRouter
# ─────────────────────────────────────────────────────────────────────────────

def _openrouter_headers() -> dict:
    return {
        "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.OPENROUTER_REFERER,
        "X-Title": settings.OPENROUTER_TITLE,
    }


async def _openrouter_post(path: str, payload: dict, timeout: float) -> dict:
    url = f"{settings.OPENROUTER_BASE_URL.rstrip('/')}{path}"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, headers=_openrouter_headers(), json=payload)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPError as e:
        logger.error("OpenRouter %s failed: %s", path, e)
        raise ExternalDependencyError(f"OpenRouter request failed: {e}") from e
    except json.JSONDecodeError as e:
        raise ExternalDependencyError("OpenRouter returned a non-JSON body") from e


async def chat_completion(
    messages: list[dict],
    tools: Optional[list[dict]] = None,
    model: Optional[str] = None,
    max_tokens: int = 1000,
    temperature: float = 0.7,
    timeout: Optional[float] = None,
) -> dict:
    """Raw OpenAI-style completion; returns the assistant message dict.

    The returned dict may carry ``tool_calls``. Without OpenRouter the
    Anthropic fallback answers in plain text and never requests tools.
    """
    if _openrouter_configured():
        payload = {
            "model": model or settings.CHAT_MODEL,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if tools:
            payload["tools"] = tools
        data = await _openrouter_post("/chat/completions", payload, timeout or settings.LLM_TIMEOUT_SECONDS)
        try:
            return data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalDependencyError("OpenRouter response had no choices") from e

    system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
    convo = [
        {"role": m["role"], "content": m.get("content") or ""}
        for m in messages
        if m.get("role") in ("user", "assistant") and m.get("content")
    ]
    text = await chat(system, convo, max_tokens=max_tokens, temperature=temperature)
    return {"role": "assistant", "content": text}


async def embed(text: str) -> list[float]:
    """Embed one string with the configured embedding model."""
    if not _openrouter_configured():
        raise ExternalDependencyError("Embeddings require OPENROUTER_API_KEY")
    data = await _openrouter_post(
        "/embeddings",
        {"model": settings.EMBEDDING_MODEL, "input": text},
        settings.HTTP_TIMEOUT_SECONDS,
    )
    try:
        return data["data"][0]["embedding"]
    except (KeyError, IndexError, TypeError) as e:
        raise ExternalDependencyError("Embedding response had no vector") from e


# ─────────────────────────────────────────────────────────────────────────────
# Anthropic, used only when OPENROUTER_API_KEY is NOT set
# ─────────────────────────────────────────────────────────────────────────────

async def _anthropic_chat(system: str, messages: list[dict], max_tokens: int, temperature: float) -> str:
    import anthropic

    try:
        client = anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
        response = await client.messages.create(
            model=settings.ANTHROPIC_MODEL,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=messages,
        )
        return response.content[0].text
    except anthropic.APIError as e:
        logger.error("Anthropic call failed: %s", e)
        raise ExternalDependencyError(f"Anthropic error: {e}") from e


# ─────────────────────────────────────────────────────────────────────────────
# Status helpers
# ─────────────────────────────────────────────────────────────────────────────

def _openrouter_configured() -> bool:
    return bool(settings.OPENROUTER_API_KEY)


def _anthropic_configured() -> bool:
    return bool(settings.ANTHROPIC_API_KEY)


def ai_provider_name() -> str:
    if _openrouter_configured():
        return f"OpenRouter ({settings.GENERATION_MODEL})"
    if _anthropic_configured():
        return f"Anthropic ({settings.ANTHROPIC_MODEL})"
    return "none"


async def ai_health_check() -> dict:
    """Live connectivity test, called by /api/health/ai."""
    provider = ai_provider_name()
    if provider == "none":
        return {
            "provider": "none",
            "status": "unconfigured",
            "message": "Set OPENROUTER_API_KEY (or ANTHROPIC_API_KEY) in .env.",
        }

    try:
        reply = await chat(
            system="You are a test assistant.",
            messages=[{"role": "user", "content": "Reply with exactly: OK"}],
            max_tokens=10,
            temperature=0.0,
        )
        return {"provider": provider, "status": "ok", "test_reply": reply.strip()}
    except ExternalDependencyError as e:
        return {"provider": provider, "status": "error", "error": str(e)}


# ─────────────────────────────────────────────────────────────────────────────
# Public chat(): the single text entry point used by the agents
# ─────────────────────────────────────────────────────────────────────────────

async def chat(
    system: str,
    messages: list[dict],
    max_tokens: int = 1000,
    temperature: float = 0.7,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Send a chat completion request and return the reply text.

    Provider priority:
      1. OpenRouter: when OPENROUTER_API_KEY is set
      2. Anthropic: when ANTHROPIC_API_KEY is set and OpenRouter is not
      3. Stub text: when neither key is configured
    """
    if _openrouter_configured():
        full = ([{"role": "system", "content": system}] if system else []) + messages
        message = await chat_completion(
            full,
            model=model or settings.GENERATION_MODEL,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=timeout,
        )
        return message.get("content") or ""

    if _anthropic_configured():
        return await _anthropic_chat(system, messages, max_tokens, temperature)

    return "[AI not configured] Set OPENROUTER_API_KEY in .env and restart."


def extract_json(text: str) -> dict:
    """Pull the outermost JSON object out of a model reply.

    Markdown fences and leading prose are tolerated; no object at all is an
    ExternalDependencyError.
    """
    cleaned = _FENCE.sub("", (text or "").strip())
    match = _JSON_OBJECT.search(cleaned)
    if not match:
        raise ExternalDependencyError("No JSON found in AI response")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExternalDependencyError(f"AI response contained invalid JSON: {e}") from e
