"""Sehat Sathi – Response Resolver.

Turns an Intent into reply text for a profile.

Resolution chain:
1. Static content / knowledge base for recognised intents
2. AI intent classifier when the rules return ``unknown``
3. Welcome text for first-time users
4. Generative fallback, then the static "didn't understand" text
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Protocol

import structlog

from app.knowledge.content import ContentBundle
from app.profiles.store import Dependent, UserProfile
from app.swarm.generative import TextGenerator
from app.swarm.router.intents import (
    DEFAULT_DISEASE,
    AddChildIntent,
    HelpIntent,
    HygieneIntent,
    Intent,
    IntentName,
    SetLocationIntent,
    SubscribeIntent,
    SymptomsIntent,
    UnknownIntent,
    UnsubscribeIntent,
    VaccinesIntent,
)

logger = structlog.get_logger()


class IntentClassifierBackend(Protocol):
    async def classify(self, text: str, language: str) -> Optional[Intent]: ...


@dataclass
class Resolution:
    """Reply produced for one inbound message.

    Attributes:
        content: Text to send back to the user.
        intent: Name of the intent that produced the reply.
        effects: Profile mutations applied while resolving.
    """

    content: str
    intent: str
    effects: list[str] = field(default_factory=list)


class ResponseResolver:
    def __init__(
        self,
        content: ContentBundle,
        generator: TextGenerator,
        classifier: IntentClassifierBackend,
    ) -> None:
        self._content = content
        self._generator = generator
        self._classifier = classifier

    async def resolve(self, intent: Intent, profile: UserProfile, raw_text: str = "") -> Resolution:
        """Produce the reply for ``intent``, mutating ``profile`` where the intent asks for it.

        Args:
            intent: Rule-parser result.
            profile: Caller holds the profile's lock.
            raw_text: Untouched user text, used for the AI classifier and the
                open-ended fallback.
        """
        resolution = await self._dispatch(intent, profile)
        if resolution is not None:
            return resolution

        classified = await self._classifier.classify(raw_text, profile.language.value)
        if classified is not None and not isinstance(classified, UnknownIntent):
            logger.info(
                "resolver.classifier_hit",
                pseudonymous_id=profile.pseudonymous_id,
                intent=classified.name,
            )
            resolution = await self._dispatch(classified, profile)
            if resolution is not None:
                return resolution

        return await self._unresolved(profile, raw_text)

    async def _dispatch(self, intent: Intent, profile: UserProfile) -> Resolution | None:
        """Handle a recognised intent. None for ``unknown``."""
        lang = profile.language.value
        t = self._content

        if isinstance(intent, HelpIntent):
            return Resolution(self._welcome(lang), IntentName.HELP.value)

        if isinstance(intent, HygieneIntent):
            return Resolution(t.text(lang, "hygiene_info"), IntentName.HYGIENE.value)

        if isinstance(intent, VaccinesIntent):
            return Resolution(t.text(lang, "vaccines_info"), IntentName.VACCINES.value)

        if isinstance(intent, SymptomsIntent):
            return await self._symptoms(intent, lang)

        if isinstance(intent, SubscribeIntent):
            profile.subscribed = True
            return Resolution(t.text(lang, "subscribed"), IntentName.SUBSCRIBE.value, ["subscribed"])

        if isinstance(intent, UnsubscribeIntent):
            profile.subscribed = False
            return Resolution(t.text(lang, "unsubscribed"), IntentName.UNSUBSCRIBE.value, ["unsubscribed"])

        if isinstance(intent, SetLocationIntent):
            area = (intent.area or "").strip()
            if not area:
                return Resolution(t.text(lang, "unknown"), IntentName.SET_LOCATION.value)
            profile.location = area
            return Resolution(t.text(lang, "set_location_ok"), IntentName.SET_LOCATION.value, ["location_set"])

        if isinstance(intent, AddChildIntent):
            return self._add_child(intent, profile)

        return None

    async def _symptoms(self, intent: SymptomsIntent, lang: str) -> Resolution:
        disease = (intent.disease or DEFAULT_DISEASE).strip().lower() or DEFAULT_DISEASE
        prefix = self._content.text(lang, "symptoms_prefix", disease=disease)

        known = self._content.symptoms(lang, disease)
        if known:
            return Resolution(_bullets(prefix, known), IntentName.SYMPTOMS.value)

        generated = await self._generator.symptoms(disease, lang)
        if generated:
            return Resolution(generated, IntentName.SYMPTOMS.value, ["generated"])

        logger.warning("resolver.symptoms_placeholder", disease=disease)
        return Resolution(_bullets(prefix, self._content.symptoms_placeholder), IntentName.SYMPTOMS.value)

    def _add_child(self, intent: AddChildIntent, profile: UserProfile) -> Resolution:
        lang = profile.language.value
        dob = _parse_date(intent.dob)
        if not intent.child_name or dob is None:
            return Resolution(self._content.text(lang, "help"), IntentName.ADD_CHILD.value)

        profile.dependents.append(Dependent(name=intent.child_name, date_of_birth=dob))
        logger.info(
            "resolver.dependent_added",
            pseudonymous_id=profile.pseudonymous_id,
            dependents=len(profile.dependents),
        )
        return Resolution(
            self._content.text(lang, "added_child", name=intent.child_name),
            IntentName.ADD_CHILD.value,
            ["dependent_added"],
        )

    async def _unresolved(self, profile: UserProfile, raw_text: str) -> Resolution:
        lang = profile.language.value
        if not profile.has_been_welcomed:
            profile.has_been_welcomed = True
            return Resolution(self._welcome(lang), IntentName.UNKNOWN.value, ["welcomed"])

        generated = await self._generator.open_question(raw_text, lang)
        if generated:
            return Resolution(generated, IntentName.UNKNOWN.value, ["generated"])
        return Resolution(self._content.text(lang, "unknown"), IntentName.UNKNOWN.value)

    def _welcome(self, lang: str) -> str:
        return f"{self._content.text(lang, 'welcome')}\n{self._content.text(lang, 'help')}"


def _bullets(prefix: str, items: list[str]) -> str:
    return prefix + "".join(f"\n- {item}" for item in items)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None
