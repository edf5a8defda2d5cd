"""Sehat Sathi – Rule-Based Intent Parser.

Deterministic keyword rules, checked in a fixed priority order. First match
wins, so "vaccines" and "need a vaccine" both land on the same intent.
"""

import re

from app.swarm.router.intents import (
    DEFAULT_DISEASE,
    AddChildIntent,
    HelpIntent,
    HygieneIntent,
    Intent,
    SetLocationIntent,
    SubscribeIntent,
    SymptomsIntent,
    UnknownIntent,
    UnsubscribeIntent,
    VaccinesIntent,
)

HELP_WORDS = {"hi", "hello", "help"}
HYGIENE_KEYWORDS = ("hygiene", "prevent", "clean")

SET_LOCATION_PATTERN = re.compile(r"^set location(.*)$", re.IGNORECASE | re.DOTALL)
ADD_CHILD_PATTERN = re.compile(r"^add child\s+(\S+)\s+(\d{4}-\d{2}-\d{2})", re.IGNORECASE)


def normalize(text: str | None) -> str:
    return (text or "").strip().lower()


def parse_intent(text: str | None) -> Intent:
    """Turn a user message into an :data:`Intent`.

    Matching runs on the trimmed, lowercased text. Free-text entities (area,
    child name) are cut from the trimmed original so their casing survives.
    """
    original = (text or "").strip()
    lowered = original.lower()
    if not lowered:
        return UnknownIntent()

    if lowered in HELP_WORDS:
        return HelpIntent()

    if lowered.startswith("symptoms"):
        disease = " ".join(lowered.split()[1:]).strip()
        return SymptomsIntent(disease=disease or DEFAULT_DISEASE)

    if any(kw in lowered for kw in HYGIENE_KEYWORDS):
        return HygieneIntent()

    if lowered.startswith("vaccines") or "vaccine" in lowered:
        return VaccinesIntent()

    if lowered == "subscribe":
        return SubscribeIntent()
    if lowered == "unsubscribe":
        return UnsubscribeIntent()

    if lowered.startswith("set location"):
        match = SET_LOCATION_PATTERN.match(original)
        area = match.group(1).strip() if match else lowered[len("set location"):].strip()
        return SetLocationIntent(area=area)

    if lowered.startswith("add child"):
        match = ADD_CHILD_PATTERN.match(original)
        if match:
            return AddChildIntent(child_name=match.group(1), dob=match.group(2))
        return AddChildIntent()

    return UnknownIntent()
