"""Shared pytest fixtures for reservation agent tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer
from fakes import FakeAssistant, RecordingApp

from reservas.config import Settings


def build_settings(**overrides) -> Settings:
    """Create a Settings object with safe test defaults."""
    base = {
        "openai_api_key": "test-openai-key",
        "n8n_webhook_url": "http://n8n.test/webhook/reservas",
        "assistant_id": "asst_test",
        "run_poll_interval_seconds": 0,
        "run_max_wait_seconds": 30,
        "http_timeout_seconds": 2,
    }
    base.update(overrides)
    return Settings(**base)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return a factory to build Settings with overrides."""
    return build_settings


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    """Default Settings fixture."""
    return settings_factory()


@pytest.fixture
def assistant() -> FakeAssistant:
    """Scripted in-memory assistant."""
    return FakeAssistant()


@pytest.fixture
def webhook() -> AsyncMock:
    """Webhook client double; availability answers 'disponible:false' by default."""
    client = AsyncMock()
    client.post_availability_check.return_value = "disponible:false"
    client.post_reservation.return_value = {"ok": True}
    return client


@pytest_asyncio.fixture
async def http_app() -> AsyncGenerator[tuple[RecordingApp, str], None]:
    """Recording aiohttp server; yields the app and its base URL."""
    recording = RecordingApp()
    server = TestServer(recording.app)
    await server.start_server()
    try:
        yield recording, str(server.make_url("")).rstrip("/")
    finally:
        await server.close()
