"""Sehat Sathi – Generative Fallback.

Free-form answers from the LLM, always under the same safety preamble
(general guidance only, no diagnosis or prescriptions).
"""

from __future__ import annotations

from typing import Optional, Protocol

import structlog

from app.core.instrumentation import GENERATIVE_FALLBACK_COUNT
from app.prompts.engine import PromptEngine, get_engine
from app.swarm.llm import TextCompleter

logger = structlog.get_logger()


class TextGenerator(Protocol):
    """What the resolver needs from a generative backend; None means no answer."""

    async def symptoms(self, disease: str, language: str) -> Optional[str]: ...

    async def open_question(self, text: str, language: str) -> Optional[str]: ...


class GenerativeFallback:
    """Wraps a :class:`TextCompleter` with the safety preamble.

    Returns None for any failure or empty answer so the caller can fall back
    to static content.
    """

    def __init__(self, llm: TextCompleter, prompts: PromptEngine | None = None) -> None:
        self._llm = llm
        self._prompts = prompts or get_engine()

    def preamble(self, language: str) -> str:
        return self._prompts.render("assistant/system.j2", language=language)

    async def generate(self, prompt: str, language: str) -> Optional[str]:
        try:
            text = await self._llm.complete(prompt, system=self.preamble(language))
        except Exception as e:
            logger.error("generative.failed", error=str(e))
            text = None

        text = (text or "").strip()
        if not text:
            GENERATIVE_FALLBACK_COUNT.labels(outcome="unavailable").inc()
            return None
        GENERATIVE_FALLBACK_COUNT.labels(outcome="answered").inc()
        return text

    async def symptoms(self, disease: str, language: str) -> Optional[str]:
        prompt = self._prompts.render("assistant/symptoms.j2", disease=disease)
        return await self.generate(prompt, language)

    async def open_question(self, text: str, language: str) -> Optional[str]:
        prompt = self._prompts.render("assistant/open_question.j2", text=text)
        return await self.generate(prompt, language)
