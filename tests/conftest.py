"""Pytest configuration and fixtures.

Backends are never contacted: the gateway's ``BackendClient`` gets a
``MagicMock`` in place of its ``httpx.AsyncClient`` whose ``request`` is
routed to ``FakeBackends``.  Responses are real ``httpx.Response`` objects
so status/JSON handling runs through httpx itself.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from genjazz.config import GatewaySettings
from genjazz.main import create_app
from genjazz.services.backend_client import BackendClient
from genjazz.services.metrics_log import MetricsRecorder
from tests.helpers import CHORDS_URL, SOLO_URL, FakeBackends


def pytest_configure(config):
    """Ensure asyncio_mode is auto so async fixtures work when pyproject is not in cwd."""
    if hasattr(config.option, "asyncio_mode") and config.option.asyncio_mode is None:
        config.option.asyncio_mode = "auto"
    logging.getLogger("httpcore").setLevel(logging.CRITICAL)


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "gateway_requests_log.csv"


@pytest.fixture
def settings(log_path: Path) -> GatewaySettings:
    return GatewaySettings(
        chords_service_url=CHORDS_URL + "/",
        impro_service_url=SOLO_URL,
        metrics_log_path=str(log_path),
    )


@pytest.fixture
def fake_backends() -> FakeBackends:
    return FakeBackends()


@pytest.fixture
def backend(settings: GatewaySettings, fake_backends: FakeBackends) -> BackendClient:
    client = BackendClient(settings)
    client._client = MagicMock()
    client._client.request = AsyncMock(side_effect=fake_backends.handle)
    client._client.aclose = AsyncMock()
    return client


@pytest.fixture
def recorder(log_path: Path) -> MetricsRecorder:
    return MetricsRecorder(log_path)


@pytest_asyncio.fixture
async def client(
    settings: GatewaySettings, backend: BackendClient, recorder: MetricsRecorder
) -> AsyncIterator[AsyncClient]:
    """Async test client for the gateway app, wired to the fake backends."""
    app = create_app(settings, backend=backend, recorder=recorder)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
