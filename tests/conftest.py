"""Shared pytest fixtures.

Provides a controllable clock for cache expiry, an in-memory durable store and
ready-wired orchestrators whose backoff sleeps return immediately.
"""
from __future__ import annotations

from typing import Optional, Sequence
from unittest.mock import AsyncMock

import pytest

from subtitle_ingest.cache.entry_cache import EntryCache
from subtitle_ingest.config.settings import reset_settings
from subtitle_ingest.services.orchestrator import UploadOrchestrator
from subtitle_ingest.services.transcription import TranscriptionClient
from subtitle_ingest.storage.memory import InMemoryDurableStore
from tests.fakes import SAMPLE_TRANSCRIPT, FakeClock, ScriptedBackend, ScriptStep


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real credentials and cached settings out of every test."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> EntryCache:
    return EntryCache(default_ttl=3600, max_items=1000, clock=clock)


@pytest.fixture
def store() -> InMemoryDurableStore:
    return InMemoryDurableStore()


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_orchestrator(store: InMemoryDurableStore, cache: EntryCache, no_sleep: AsyncMock):
    """Factory building an orchestrator around a scripted backend."""

    def _make(script: Sequence[ScriptStep] = (), default: Optional[str] = SAMPLE_TRANSCRIPT):
        backend = ScriptedBackend(script, default=default)
        client = TranscriptionClient(backend, sleep=no_sleep)
        return UploadOrchestrator(store=store, transcription_client=client, cache=cache), backend

    return _make
