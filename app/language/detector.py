"""Sehat Sathi – Language Detector.

Statistical language identification (langdetect) mapped onto the small set of
languages the bot can answer in. Short or ambiguous text is indeterminate.
"""

from __future__ import annotations

from enum import Enum

import structlog
from langdetect import DetectorFactory, LangDetectException, detect

logger = structlog.get_logger()

# langdetect is non-deterministic unless seeded.
DetectorFactory.seed = 0


class Language(str, Enum):
    """Languages with a full content table."""

    ENGLISH = "en"
    HINDI = "hi"
    BENGALI = "bn"
    TELUGU = "te"
    MARATHI = "mr"


# ISO 639-1 code from langdetect → supported language
LANGUAGE_MAP: dict[str, Language] = {
    "en": Language.ENGLISH,
    "hi": Language.HINDI,
    "bn": Language.BENGALI,
    "te": Language.TELUGU,
    "mr": Language.MARATHI,
}


class LanguageDetector:
    """Maps free text to a supported :class:`Language`.

    Usage:
        detector = LanguageDetector()
        detector.detect("नमस्ते, मुझे बुखार है")   # Language.HINDI
        detector.identify("ok")                  # None (too short)
    """

    def __init__(self, fallback: Language = Language.ENGLISH, min_length: int = 3) -> None:
        self.fallback = fallback
        self._min_length = min_length

    def identify(self, text: str | None) -> Language | None:
        """Return the supported language of ``text`` or None when indeterminate."""
        sample = (text or "").strip()
        if len("".join(sample.split())) < self._min_length:
            return None
        try:
            code = detect(sample)
        except LangDetectException:
            return None
        except Exception as e:
            logger.warning("language.detect_failed", error=str(e))
            return None
        return LANGUAGE_MAP.get(code)

    def detect(self, text: str | None) -> Language:
        """Like :meth:`identify`, but never returns None."""
        return self.identify(text) or self.fallback
