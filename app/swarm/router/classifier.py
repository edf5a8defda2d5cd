"""Sehat Sathi – AI Intent Classifier.

Asks the LLM for a minified JSON intent when the keyword rules give up.
The answer is treated as untrusted text: the JSON object is cut out of
whatever surrounds it and validated against the Intent variants.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from app.prompts.engine import PromptEngine, get_engine
from app.swarm.llm import TextCompleter
from app.swarm.router.intents import INTENT_ADAPTER, Intent, IntentName

logger = structlog.get_logger()


def extract_json_object(raw: str | None) -> dict[str, Any] | None:
    """Parse the outermost ``{...}`` in ``raw``. None if there is none or it is not JSON."""
    if not raw:
        return None
    start = raw.find("{")
    end = raw.rfind("}")
    candidate = raw[start:end + 1] if start != -1 and end > start else raw
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def intent_from_payload(payload: dict[str, Any] | None) -> Optional[Intent]:
    """Lenient conversion of classifier JSON into an Intent.

    Unknown keys are ignored and non-string entity values are dropped; a
    missing or unrecognised ``name`` yields None.
    """
    if not payload or not payload.get("name"):
        return None
    cleaned: dict[str, Any] = {"name": str(payload["name"]).strip().lower()}
    for key in ("disease", "area", "childName", "child_name", "dob"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            cleaned[key] = value.strip()
    try:
        return INTENT_ADAPTER.validate_python(cleaned)
    except ValidationError:
        logger.warning("classifier.invalid_payload", name=cleaned["name"])
        return None


class IntentClassifier:
    """LLM-backed multilingual intent classifier."""

    def __init__(self, llm: TextCompleter, prompts: PromptEngine | None = None) -> None:
        self._llm = llm
        self._prompts = prompts or get_engine()

    async def classify(self, text: str, language: str) -> Optional[Intent]:
        """Classify raw user text. None means "no classification"."""
        if not text or not text.strip():
            return None
        try:
            prompt = self._prompts.render(
                "router/classifier.j2",
                text=text,
                language=language,
                intent_names=[i.value for i in IntentName],
            )
            raw = await self._llm.complete(prompt, temperature=0.1, max_tokens=200)
        except Exception as e:
            logger.error("classifier.failed", error=str(e))
            return None

        intent = intent_from_payload(extract_json_object(raw))
        logger.info("classifier.result", intent=intent.name if intent else None)
        return intent
