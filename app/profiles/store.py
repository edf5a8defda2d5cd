"""Sehat Sathi – User Profile Store.

Process-wide in-memory profile state keyed by raw channel identity. Nothing
here survives a restart.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import AsyncIterator

import structlog

from app.core.crypto import pseudonymize
from app.language.detector import Language, LanguageDetector

logger = structlog.get_logger()


@dataclass
class Dependent:
    """A child registered for vaccination reminders.

    Attributes:
        name: Name as typed by the user.
        date_of_birth: Calendar date of birth.
        reminders_sent: Dedup ledger of reminder keys already issued.
    """

    name: str
    date_of_birth: date
    reminders_sent: set[str] = field(default_factory=set)


@dataclass
class UserProfile:
    pseudonymous_id: str
    language: Language
    subscribed: bool = False
    location: str | None = None
    dependents: list[Dependent] = field(default_factory=list)
    last_active_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    has_been_welcomed: bool = False


class ProfileStore:
    """Get-or-create profile store with per-identity locking.

    The inbound pipeline holds ``lock(identity)`` while it mutates a profile;
    different identities never contend for the same lock. Sweeps read from a
    snapshot of ``profiles()``.

    Growth is unbounded: there is no eviction.
    """

    def __init__(self, detector: LanguageDetector, pseudonym_secret: str = "") -> None:
        self._detector = detector
        self._secret = pseudonym_secret
        self._profiles: dict[str, UserProfile] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._profiles)

    def get(self, identity: str) -> UserProfile | None:
        return self._profiles.get(identity)

    def profiles(self) -> list[tuple[str, UserProfile]]:
        """Snapshot of ``(identity, profile)`` pairs."""
        return list(self._profiles.items())

    @asynccontextmanager
    async def lock(self, identity: str) -> AsyncIterator[None]:
        """Serialize mutations of a single identity's profile."""
        lock = self._locks.setdefault(identity, asyncio.Lock())
        async with lock:
            yield

    async def ensure(self, identity: str, sample_text: str | None) -> UserProfile:
        """Load or create the profile for ``identity``.

        A new profile takes its language from ``sample_text`` (fallback when
        indeterminate). An existing profile only switches language when the
        text is confidently in a different supported language.
        """
        profile = self._profiles.get(identity)
        if profile is None:
            language = await asyncio.to_thread(self._detector.detect, sample_text)
            profile = self._profiles.setdefault(
                identity,
                UserProfile(
                    pseudonymous_id=pseudonymize(identity, self._secret),
                    language=language,
                ),
            )
            logger.info(
                "profiles.created",
                pseudonymous_id=profile.pseudonymous_id,
                language=profile.language.value,
            )
        else:
            detected = await asyncio.to_thread(self._detector.identify, sample_text)
            if detected is not None and detected != profile.language:
                logger.info(
                    "profiles.language_changed",
                    pseudonymous_id=profile.pseudonymous_id,
                    old=profile.language.value,
                    new=detected.value,
                )
                profile.language = detected

        profile.last_active_at = datetime.now(timezone.utc)
        return profile
