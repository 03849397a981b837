from __future__ import annotations

import os
import socket
from typing import Any, Dict, List, Optional

import pytest

from shared.exceptions import UpstreamFetchError

NOW = 1_760_000_000.0


class NetworkBlockedError(RuntimeError):
    pass


def _blocked(*_args: Any, **_kwargs: Any) -> Any:
    raise NetworkBlockedError(
        "Network access is disabled during tests. Set ALLOW_NETWORK=1 to override."
    )


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent accidental outbound network calls in unit tests."""

    if os.getenv("ALLOW_NETWORK") == "1":
        return

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket, "getaddrinfo", _blocked)


def make_conversation(
    conversation_id: str,
    status: str = "in_progress",
    started_ago: Optional[float] = 30,
    **extra: Any,
) -> Dict[str, Any]:
    conv: Dict[str, Any] = {
        "conversation_id": conversation_id,
        "agent_id": "agent-1",
        "agent_name": "EMI Reminder Agent",
        "status": status,
        "metadata": {"caller_number": "+919876543210"},
    }
    if started_ago is not None:
        conv["start_time_unix_secs"] = int(NOW - started_ago)
    conv.update(extra)
    return conv


class FakeConversationSource:
    """Returns queued responses in order, repeating the last one forever."""

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses) or [[]]
        self.calls = 0
        self.max_pages_requested: List[Optional[int]] = []

    def push(self, response: Any) -> None:
        self.responses.append(response)

    async def list_conversations(self, max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        self.calls += 1
        self.max_pages_requested.append(max_pages)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class Clock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def upstream_error() -> UpstreamFetchError:
    return UpstreamFetchError("ElevenLabs API error (503)", status_code=503, details={"detail": "busy"})
