"""app/swarm/llm.py — Gemini LLM Client.

Thin async client for Google's Generative Language REST API. Every failure
(missing key, transport error, non-200, empty candidate) comes back as None:
callers always keep a static answer ready.
"""
import time
from typing import Any, Optional, Protocol

import httpx
import structlog

logger = structlog.get_logger()


class TextCompleter(Protocol):
    """Anything that can turn a prompt into text, or None when unavailable."""

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 512,
    ) -> Optional[str]: ...


def _extract_text(data: dict[str, Any]) -> str:
    """Join all text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "\n".join(str(p.get("text", "")) for p in parts if isinstance(p, dict)).strip()


class GeminiClient:
    """Gemini ``generateContent`` client.

    Usage:
        llm = GeminiClient(api_key=settings.google_api_key)
        text = await llm.complete("List symptoms of dengue", system="Be concise.")
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 20.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 512,
    ) -> Optional[str]:
        """Single-turn completion. Returns None if the backend is unavailable."""
        if not self._api_key:
            logger.debug("llm.skipped", reason="no_api_key")
            return None

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        url = f"{self._base_url}/models/{self._model}:generateContent"
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, params={"key": self._api_key}, json=payload)
                latency = round((time.time() - start_time) * 1000)

                if resp.status_code != 200:
                    logger.error(
                        "llm.provider_error",
                        status=resp.status_code,
                        detail=resp.text[:200],
                        latency_ms=latency,
                    )
                    return None

                content = _extract_text(resp.json())
        except Exception as e:
            logger.error("llm.request_failed", error=str(e))
            return None

        if not content:
            logger.warning("llm.empty_response", model=self._model, latency_ms=latency)
            return None

        logger.info("llm.success", model=self._model, latency_ms=latency, chars=len(content))
        return content
