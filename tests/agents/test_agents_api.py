import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.agents.router import router
from apps.agents.service import AgentCatalog, paginate
from core.config import settings
from shared.exceptions import UpstreamFetchError

AGENTS = [
    {
        "agent_id": f"agent-{index}",
        "name": name,
        "conversation_config": {"tts": {"voice_id": "voice-1"}},
    }
    for index, name in enumerate(["EMI Reminder Agent", "Doctor Appointment Bot", "Zebra", "Cyber Sentinel", "Trip Booking"])
]


class FakeAgentsClient:
    def __init__(self, agents=AGENTS, error=None):
        self.agents = agents
        self.error = error
        self.agent_calls = 0
        self.voice_calls = 0

    async def list_agents(self):
        self.agent_calls += 1
        if self.error:
            raise self.error
        return [dict(agent) for agent in self.agents]

    async def get_voice(self, voice_id):
        self.voice_calls += 1
        return {"voice_id": voice_id, "labels": {"gender": "female", "language": "en"}}


def make_app(client) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.state.agent_catalog = AgentCatalog(client)
    return app


def test_catalog_caches_agents_and_voices():
    async def scenario():
        client = FakeAgentsClient()
        catalog = AgentCatalog(client)

        first = await catalog.list_agents()
        second = await catalog.list_agents()
        assert first is second
        assert client.agent_calls == 1
        voice_calls = client.voice_calls

        catalog.invalidate()
        await catalog.list_agents()
        assert client.agent_calls == 2
        assert client.voice_calls == voice_calls

    asyncio.run(scenario())


def test_paginate_by_page():
    result = paginate(list(range(10)), limit=3, page=2)
    assert result == {
        "agents": [3, 4, 5],
        "pagination": {"total": 10, "limit": 3, "offset": 3, "page": 2, "totalPages": 4, "hasMore": True},
    }


def test_paginate_by_offset_reaches_the_end():
    result = paginate(list(range(10)), limit=3, offset=9)
    assert result["agents"] == [9]
    assert result["pagination"]["page"] == 4
    assert result["pagination"]["hasMore"] is False


def test_list_all_agents():
    with TestClient(make_app(FakeAgentsClient())) as client:
        response = client.get("/api/agents")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 5
    first = body["agents"][0]
    assert first["category"] == "Banking"
    assert first["voiceGender"] == "female"
    assert first["voiceLanguage"] == "en"
    assert first["description"]


def test_list_agents_paginated():
    with TestClient(make_app(FakeAgentsClient())) as client:
        response = client.get("/api/agents", params={"limit": 2, "page": 3})

    body = response.json()
    assert [agent["agent_id"] for agent in body["agents"]] == ["agent-4"]
    assert body["pagination"]["totalPages"] == 3
    assert body["pagination"]["hasMore"] is False


def test_invalid_limit_is_rejected():
    with TestClient(make_app(FakeAgentsClient())) as client:
        assert client.get("/api/agents", params={"limit": 0}).status_code == 422


def test_upstream_failure_is_reported():
    error = UpstreamFetchError("ElevenLabs API error (401)", status_code=401, details={"detail": "invalid key"})
    with TestClient(make_app(FakeAgentsClient(error=error))) as client:
        response = client.get("/api/agents")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch agents", "details": {"detail": "invalid key"}}


def test_phone_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "ELEVENLABS_PHONE_NUMBER", "+911234567890")
    monkeypatch.setattr(settings, "ELEVENLABS_PHONE_NUMBER_ID", "phnum_123")

    with TestClient(make_app(FakeAgentsClient())) as client:
        response = client.get("/api/agents/phone-config")

    assert response.json() == {"phone_number": "+911234567890", "phone_number_id": "phnum_123"}
