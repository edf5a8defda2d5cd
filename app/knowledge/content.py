"""Sehat Sathi – Static Content Bundle.

Localized dialogue strings, the symptom knowledge base and the rotating
advisories, loaded once from ``config/content.yaml``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

_DEFAULT_PATH = Path(__file__).resolve().parents[2] / "config" / "content.yaml"


class ContentBundle:
    """Resource bundle keyed by language, then content key.

    Lookups for an unknown language fall back to the bundle's default language,
    so callers never need to guard against a missing table.
    """

    def __init__(self, data: dict[str, Any]) -> None:
        self.default_language: str = data.get("default_language", "en")
        self._strings: dict[str, dict[str, str]] = data.get("strings", {})
        self._symptoms: dict[str, dict[str, list[str]]] = data.get("symptoms", {})
        self.symptoms_placeholder: list[str] = list(data.get("symptoms_placeholder", []))
        self.advisories: list[str] = list(data.get("advisories", []))

        if self.default_language not in self._strings:
            raise ValueError(f"content bundle has no strings for default language '{self.default_language}'")

    @classmethod
    def from_file(cls, path: str | Path) -> "ContentBundle":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("content.loaded", path=str(path), languages=sorted(data.get("strings", {})))
        return cls(data)

    @property
    def languages(self) -> list[str]:
        return list(self._strings)

    def text(self, language: str, key: str, **params: Any) -> str:
        """Localized string for ``key``, formatted with ``params``."""
        table = self._strings.get(language) or self._strings[self.default_language]
        template = table.get(key)
        if template is None:
            template = self._strings[self.default_language][key]
        return template.format(**params) if params else template

    def symptoms(self, language: str, disease: str) -> list[str] | None:
        """Knowledge-base symptoms for ``disease``: language table first, then default language."""
        found = self._symptoms.get(language, {}).get(disease)
        if found:
            return found
        return self._symptoms.get(self.default_language, {}).get(disease)


@lru_cache(maxsize=1)
def get_content(path: str = "") -> ContentBundle:
    """Load the bundle once per process."""
    return ContentBundle.from_file(path or _DEFAULT_PATH)
