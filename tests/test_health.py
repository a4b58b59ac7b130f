"""Tests for the gateway health endpoint."""
import pytest

from tests.helpers import CHORDS_URL, SOLO_URL


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "services": {"chords": CHORDS_URL, "solo": SOLO_URL},
    }


@pytest.mark.asyncio
async def test_health_does_not_call_backends(client, fake_backends):
    await client.get("/health")
    assert fake_backends.calls == []
