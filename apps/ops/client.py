from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Set

import websockets
from pydantic import ValidationError
from websockets.exceptions import WebSocketException

from core.config import settings
from shared.constants import (
    EVENT_LIVE_CALLS_ERROR,
    EVENT_LIVE_CALLS_UPDATE,
    EVENT_REFRESH_LIVE_CALLS,
)

from .models import Snapshot, snapshot_from_wire

logger = logging.getLogger(__name__)

Listener = Callable[["LiveCallsSubscriber"], None]

RECONNECT_FAILED_MESSAGE = "Failed to connect to server. Please refresh the page."
NOT_CONNECTED_MESSAGE = "Not connected to server"


class LiveCallsSubscriber:
    """Client side of the live calls socket.

    Keeps the latest snapshot plus connection state, and notifies listeners
    after every change. Meant to be shared by everything in one process; use
    :func:`get_live_calls_subscriber` rather than constructing one per view.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        reconnect_attempts: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self.url = url or settings.LIVE_CALLS_WS_URL
        self.reconnect_attempts = (
            reconnect_attempts if reconnect_attempts is not None else settings.LIVE_CALLS_RECONNECT_ATTEMPTS
        )
        self.reconnect_delay = (
            reconnect_delay if reconnect_delay is not None else settings.LIVE_CALLS_RECONNECT_DELAY_SECONDS
        )
        self._connect = connect

        self.live_calls: Snapshot = []
        self.is_connected = False
        self.is_loading = True
        self.error: Optional[str] = None

        self._ws: Any = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []
        self._pending_sends: Set[asyncio.Task] = set()

    def state(self) -> Dict[str, Any]:
        return {
            "liveCalls": self.live_calls,
            "isConnected": self.is_connected,
            "isLoading": self.is_loading,
            "error": self.error,
        }

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Live calls listener failed")

    # Lifecycle

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.is_connected = False

    async def run(self) -> None:
        """Hold the connection open, reconnecting a bounded number of times."""
        attempt = 0
        while True:
            try:
                async with self._connect(self.url) as ws:
                    self._ws = ws
                    attempt = 0
                    self._on_connected()
                    async for raw in ws:
                        self.handle_message(raw)
                self._on_disconnected("server closed the connection")
            except (OSError, WebSocketException) as exc:
                if self.is_connected:
                    self._on_disconnected(str(exc))
                else:
                    logger.error("Live calls connection error: %s", exc)
                    self.error = f"Connection failed: {exc}"
                    self.is_loading = False
                    self._notify()
            finally:
                self._ws = None

            attempt += 1
            if attempt > self.reconnect_attempts:
                logger.error("Failed to reconnect to live calls socket")
                self.error = RECONNECT_FAILED_MESSAGE
                self._notify()
                return
            logger.info("Reconnection attempt %d...", attempt)
            self.error = f"Reconnecting... (attempt {attempt})"
            self._notify()
            await asyncio.sleep(self.reconnect_delay)

    def _on_connected(self) -> None:
        logger.info("Live calls socket connected")
        self.is_connected = True
        self.is_loading = False
        self.error = None
        self._notify()

    def _on_disconnected(self, reason: str) -> None:
        logger.info("Live calls socket disconnected: %s", reason)
        self.is_connected = False
        self._notify()

    # Inbound events

    def handle_message(self, raw: Any) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed live calls message")
            return
        if not isinstance(message, dict):
            logger.warning("Ignoring malformed live calls message")
            return

        event = message.get("event")
        data = message.get("data")
        if event == EVENT_LIVE_CALLS_UPDATE:
            try:
                self.live_calls = snapshot_from_wire(data)
            except ValidationError as exc:
                logger.warning("Ignoring invalid live calls update: %s", exc)
                return
            self.is_loading = False
            self.error = None
            logger.debug("Received live calls update: %d calls", len(self.live_calls))
        elif event == EVENT_LIVE_CALLS_ERROR:
            # Keep the last snapshot visible
            message_text = data.get("message") if isinstance(data, dict) else None
            self.error = message_text or "Unknown error"
            self.is_loading = False
            logger.error("Live calls error: %s", self.error)
        else:
            logger.debug("Ignoring live calls event %r", event)
            return
        self._notify()

    # Outbound requests

    def refresh(self) -> None:
        """Ask the server for a fresh snapshot; the answer arrives as a normal push."""
        if self._ws is None or not self.is_connected:
            logger.warning("Cannot refresh: live calls socket not connected")
            self.error = NOT_CONNECTED_MESSAGE
            self._notify()
            return
        task = asyncio.create_task(self._ws.send(json.dumps({"event": EVENT_REFRESH_LIVE_CALLS})))
        self._pending_sends.add(task)
        task.add_done_callback(self._send_done)

    def _send_done(self, task: asyncio.Task) -> None:
        self._pending_sends.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Refresh request failed: %s", task.exception())


_shared_subscriber: Optional[LiveCallsSubscriber] = None


def get_live_calls_subscriber(url: Optional[str] = None) -> LiveCallsSubscriber:
    """Return the process-wide subscriber, creating it on first use."""
    global _shared_subscriber
    if _shared_subscriber is None:
        _shared_subscriber = LiveCallsSubscriber(url=url)
    return _shared_subscriber
