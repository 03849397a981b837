from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.conversations.router import router
from shared.exceptions import ConversationNotFoundException, UpstreamFetchError
from tests.conftest import make_conversation


class FakeConversationsClient:
    def __init__(self, conversations=(), error=None):
        self.conversations = list(conversations)
        self.error = error
        self.agent_filters = []

    async def list_conversations(self, agent_id=None):
        self.agent_filters.append(agent_id)
        if self.error:
            raise self.error
        return [conv for conv in self.conversations if agent_id is None or conv["agent_id"] == agent_id]

    async def get_conversation(self, conversation_id):
        if self.error:
            raise self.error
        for conv in self.conversations:
            if conv["conversation_id"] == conversation_id:
                return {**conv, "transcript": [{"role": "agent", "message": "Namaste"}]}
        raise ConversationNotFoundException(f"Conversation {conversation_id} not found")


def make_client(fake) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.state.elevenlabs = fake
    return TestClient(app)


CONVERSATIONS = [
    make_conversation("c1", status="in_progress"),
    make_conversation("c2", status="done"),
    make_conversation("c3", status="initiated", agent_id="agent-2"),
]


def test_list_passes_agent_filter_upstream():
    fake = FakeConversationsClient(CONVERSATIONS)
    with make_client(fake) as client:
        response = client.get("/api/conversations", params={"agent_id": "agent-2"})

    assert response.status_code == 200
    assert [conv["conversation_id"] for conv in response.json()["conversations"]] == ["c3"]
    assert fake.agent_filters == ["agent-2"]


def test_live_flag_keeps_running_conversations_only():
    with make_client(FakeConversationsClient(CONVERSATIONS)) as client:
        response = client.get("/api/conversations", params={"live": "true"})

    assert [conv["conversation_id"] for conv in response.json()["conversations"]] == ["c1", "c3"]


def test_list_reports_upstream_failure():
    error = UpstreamFetchError("ElevenLabs request failed: timed out")
    with make_client(FakeConversationsClient(error=error)) as client:
        response = client.get("/api/conversations")

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to fetch conversations",
        "details": "ElevenLabs request failed: timed out",
    }


def test_detail_includes_transcript():
    with make_client(FakeConversationsClient(CONVERSATIONS)) as client:
        response = client.get("/api/conversations/c1")

    assert response.status_code == 200
    assert response.json()["transcript"][0]["message"] == "Namaste"


def test_unknown_conversation_is_404():
    with make_client(FakeConversationsClient(CONVERSATIONS)) as client:
        response = client.get("/api/conversations/missing")

    assert response.status_code == 404
    assert response.json() == {"detail": "Conversation missing not found"}


def test_detail_reports_upstream_failure():
    error = UpstreamFetchError("ElevenLabs API error (500)", status_code=500, details={"detail": "oops"})
    with make_client(FakeConversationsClient(error=error)) as client:
        response = client.get("/api/conversations/c1")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch conversation details", "details": {"detail": "oops"}}
