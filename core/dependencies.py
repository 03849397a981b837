from __future__ import annotations

from typing import Any

from fastapi.requests import HTTPConnection


def _state(conn: HTTPConnection, name: str) -> Any:
    value = getattr(conn.app.state, name, None)
    if value is None:
        raise RuntimeError(f"Application state '{name}' not initialized")
    return value


def get_elevenlabs_client(conn: HTTPConnection):
    return _state(conn, "elevenlabs")


def get_agent_catalog(conn: HTTPConnection):
    return _state(conn, "agent_catalog")


def get_live_calls_broadcaster(conn: HTTPConnection):
    return _state(conn, "live_calls")
