import httpx
from fastapi.testclient import TestClient

from apps.integrations.elevenlabs.client import ElevenLabsClient
from main import create_app


def _offline_client() -> ElevenLabsClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"conversations": [], "has_more": False})

    return ElevenLabsClient(api_key="test-key", transport=httpx.MockTransport(handler))


def test_health_endpoint():
    with TestClient(create_app(_offline_client())) as client:
        response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_app_wires_live_calls_broadcaster():
    with TestClient(create_app(_offline_client())) as client:
        with client.websocket_connect("/ws/live-calls") as ws:
            assert ws.receive_json() == {"event": "live-calls-update", "data": []}
        assert client.get("/api/live-calls").json() == {"calls": []}
