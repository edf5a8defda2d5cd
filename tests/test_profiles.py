"""Sehat Sathi – Profile Store & Pseudonym Tests."""

import asyncio

import pytest

from app.core.crypto import pseudonymize
from app.language.detector import Language
from app.profiles.store import ProfileStore

from tests.fakes import StubDetector

PHONE = "919876543210"


class TestPseudonymize:
    def test_deterministic(self) -> None:
        assert pseudonymize(PHONE) == pseudonymize(PHONE)

    def test_shape(self) -> None:
        pid = pseudonymize(PHONE)
        assert pid.startswith("u_")
        assert len(pid) == 18

    def test_does_not_contain_identity(self) -> None:
        assert PHONE not in pseudonymize(PHONE)

    def test_distinct_identities_differ(self) -> None:
        assert pseudonymize(PHONE) != pseudonymize("919876543211")

    def test_secret_changes_digest(self) -> None:
        assert pseudonymize(PHONE, secret="pepper") != pseudonymize(PHONE)
        assert pseudonymize(PHONE, secret="pepper") == pseudonymize(PHONE, secret="pepper")


class TestProfileStore:
    @pytest.mark.anyio
    async def test_creates_profile_with_defaults(self) -> None:
        store = ProfileStore(StubDetector())
        profile = await store.ensure(PHONE, "hello")

        assert profile.pseudonymous_id == pseudonymize(PHONE)
        assert profile.language == Language.ENGLISH
        assert profile.subscribed is False
        assert profile.location is None
        assert profile.dependents == []
        assert profile.has_been_welcomed is False
        assert len(store) == 1

    @pytest.mark.anyio
    async def test_new_profile_takes_detected_language(self) -> None:
        store = ProfileStore(StubDetector({"నమస్కారం అండి": Language.TELUGU}))
        profile = await store.ensure(PHONE, "నమస్కారం అండి")
        assert profile.language == Language.TELUGU

    @pytest.mark.anyio
    async def test_ensure_returns_same_profile(self) -> None:
        store = ProfileStore(StubDetector())
        first = await store.ensure(PHONE, "hello")
        second = await store.ensure(PHONE, "help")
        assert first is second
        assert store.get(PHONE) is first
        assert len(store) == 1

    @pytest.mark.anyio
    async def test_indeterminate_text_keeps_language(self) -> None:
        store = ProfileStore(StubDetector({"मुझे बुखार है": Language.HINDI}))
        profile = await store.ensure(PHONE, "मुझे बुखार है")
        assert profile.language == Language.HINDI

        await store.ensure(PHONE, "ok")
        assert profile.language == Language.HINDI

    @pytest.mark.anyio
    async def test_confident_switch_changes_language(self) -> None:
        detector = StubDetector({
            "मुझे बुखार है": Language.HINDI,
            "I have a fever since yesterday": Language.ENGLISH,
        })
        store = ProfileStore(detector)
        profile = await store.ensure(PHONE, "मुझे बुखार है")

        await store.ensure(PHONE, "I have a fever since yesterday")
        assert profile.language == Language.ENGLISH

    @pytest.mark.anyio
    async def test_last_active_refreshed(self) -> None:
        store = ProfileStore(StubDetector())
        profile = await store.ensure(PHONE, "hi")
        first_seen = profile.last_active_at
        await asyncio.sleep(0.001)
        await store.ensure(PHONE, "hi")
        assert profile.last_active_at > first_seen

    @pytest.mark.anyio
    async def test_profiles_is_a_snapshot(self) -> None:
        store = ProfileStore(StubDetector())
        await store.ensure("111", "hi")
        snapshot = store.profiles()
        await store.ensure("222", "hi")
        assert len(snapshot) == 1
        assert len(store.profiles()) == 2

    @pytest.mark.anyio
    async def test_locks_are_per_identity(self) -> None:
        store = ProfileStore(StubDetector())
        order: list[str] = []

        async def hold(identity: str, label: str, delay: float) -> None:
            async with store.lock(identity):
                order.append(f"{label}:start")
                await asyncio.sleep(delay)
                order.append(f"{label}:end")

        await asyncio.gather(hold("A", "a1", 0.02), hold("A", "a2", 0), hold("B", "b", 0))

        # Same identity is serialized; another identity is not held up by it
        assert order.index("a1:end") < order.index("a2:start")
        assert order.index("b:end") < order.index("a1:end")

    @pytest.mark.anyio
    async def test_pseudonym_secret_is_used(self) -> None:
        store = ProfileStore(StubDetector(), pseudonym_secret="pepper")
        profile = await store.ensure(PHONE, "hi")
        assert profile.pseudonymous_id == pseudonymize(PHONE, secret="pepper")
