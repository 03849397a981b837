import asyncio
import json

import httpx
import pytest

from apps.integrations.elevenlabs.client import ElevenLabsClient
from shared.exceptions import ConversationNotFoundException, UpstreamFetchError


def make_client(handler, **kwargs):
    kwargs.setdefault("api_key", "test-key")
    kwargs.setdefault("base_url", "https://api.elevenlabs.test/")
    kwargs.setdefault("phone_number_id", "phnum_1")
    return ElevenLabsClient(transport=httpx.MockTransport(handler), **kwargs)


def run(client, coro_factory):
    async def scenario():
        try:
            return await coro_factory(client)
        finally:
            await client.aclose()

    return asyncio.run(scenario())


def test_conversations_follow_cursor_pagination():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        cursor = request.url.params.get("cursor")
        if cursor is None:
            return httpx.Response(200, json={"conversations": [{"conversation_id": "c1"}], "has_more": True, "next_cursor": "p2"})
        return httpx.Response(200, json={"conversations": [{"conversation_id": "c2"}], "has_more": False, "next_cursor": None})

    conversations = run(make_client(handler), lambda c: c.list_conversations(agent_id="agent-1", page_size=50))

    assert [conv["conversation_id"] for conv in conversations] == ["c1", "c2"]
    assert len(seen) == 2
    assert seen[0].url.path == "/v1/convai/conversations"
    assert seen[0].url.params["agent_id"] == "agent-1"
    assert seen[0].url.params["page_size"] == "50"
    assert seen[1].url.params["cursor"] == "p2"
    assert seen[0].headers["xi-api-key"] == "test-key"


def test_conversation_pages_can_be_capped():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"conversations": [{"conversation_id": "c"}], "has_more": True, "next_cursor": "again"})

    conversations = run(make_client(handler), lambda c: c.list_conversations(max_pages=3))
    assert len(conversations) == 3


def test_error_status_raises_with_details():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"detail": {"status": "invalid_api_key"}})

    with pytest.raises(UpstreamFetchError) as excinfo:
        run(make_client(handler), lambda c: c.list_conversations())

    assert excinfo.value.status_code == 401
    assert excinfo.value.details == {"detail": {"status": "invalid_api_key"}}


def test_transport_errors_are_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(UpstreamFetchError, match="request failed"):
        run(make_client(handler), lambda c: c.list_agents())


def test_missing_conversation_is_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    with pytest.raises(ConversationNotFoundException):
        run(make_client(handler), lambda c: c.get_conversation("nope"))


def test_voice_lookup_failure_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    assert run(make_client(handler), lambda c: c.get_voice("voice-1")) is None


def test_list_agents_unwraps_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/convai/agents"
        return httpx.Response(200, json={"agents": [{"agent_id": "a1", "name": "EMI Reminder Agent"}]})

    assert run(make_client(handler), lambda c: c.list_agents()) == [{"agent_id": "a1", "name": "EMI Reminder Agent"}]


def test_outbound_call_payload():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/v1/convai/sip-trunk/outbound-call"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "conversation_id": "conv-1"})

    session = {"dynamic_variables": {"customer_id": "c-7"}, "user_id": "c-7"}
    result = run(make_client(handler), lambda c: c.initiate_outbound_call("agent-1", "+919876543210", session))

    assert result == {"success": True, "conversation_id": "conv-1"}
    assert bodies == [
        {
            "agent_id": "agent-1",
            "agent_phone_number_id": "phnum_1",
            "to_number": "+919876543210",
            "conversation_initiation_client_data": session,
        }
    ]


def test_outbound_call_without_session_omits_client_data():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    run(make_client(handler), lambda c: c.initiate_outbound_call("agent-1", "+919876543210"))
    assert "conversation_initiation_client_data" not in bodies[0]
