"""Sehat Sathi – Pytest Configuration.

Shared fixtures wiring the real components to the fakes in ``tests.fakes``,
so no test touches the network.
"""

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["META_VERIFY_TOKEN"] = "test-verify-token"
os.environ["META_APP_SECRET"] = ""
os.environ["GOOGLE_API_KEY"] = ""
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime

import pytest

from app.audit.log import AuditLog
from app.gateway.pipeline import InboundPipeline
from app.knowledge.content import get_content
from app.profiles.store import ProfileStore
from app.scheduler.sweeps import NotificationScheduler
from app.swarm.generative import GenerativeFallback
from app.swarm.resolver import ResponseResolver
from tests.fakes import FakeAdvisorySource, FakeClassifier, FakeCompleter, FakeSender, StubDetector


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def content():
    return get_content()


@pytest.fixture
def detector():
    return StubDetector()


@pytest.fixture
def store(detector):
    return ProfileStore(detector)


@pytest.fixture
def audit():
    return AuditLog()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def completer():
    return FakeCompleter()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def advisories():
    return FakeAdvisorySource()


@pytest.fixture
def resolver(content, completer, classifier):
    return ResponseResolver(
        content=content,
        generator=GenerativeFallback(completer),
        classifier=classifier,
    )


@pytest.fixture
def pipeline(store, resolver, sender, audit):
    return InboundPipeline(store, resolver, sender, audit)


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 19, 8, 0, 0)


@pytest.fixture
def scheduler(store, sender, advisories, audit, content, fixed_now):
    return NotificationScheduler(
        store=store,
        sender=sender,
        advisories=advisories,
        audit=audit,
        content=content,
        clock=lambda: fixed_now,
    )
