"""Shared test fixtures for extratheme."""

from __future__ import annotations

import pytest

from extratheme.client import ThemeClient
from tests.fakes import FAST_POLICY, FakeTransport, RecordingSleep

SOURCE = 1001
TARGET = 2002


@pytest.fixture
def transport() -> FakeTransport:
    fake = FakeTransport()
    fake.add_theme(SOURCE, "Dawn (staging)")
    fake.add_theme(TARGET, "Dawn", role="main")
    return fake


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def client(transport: FakeTransport, sleep: RecordingSleep) -> ThemeClient:
    return ThemeClient(transport, policy=FAST_POLICY, sleep=sleep)
