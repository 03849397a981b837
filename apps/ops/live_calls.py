from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from shared.constants import EVENT_LIVE_CALLS_ERROR, EVENT_LIVE_CALLS_UPDATE
from shared.exceptions import UpstreamFetchError

from .models import Snapshot, snapshot_to_wire
from .snapshot import SnapshotBuilder, has_changed

logger = logging.getLogger(__name__)

Event = Dict[str, Any]


def update_event(snapshot: Snapshot) -> Event:
    return {"event": EVENT_LIVE_CALLS_UPDATE, "data": snapshot_to_wire(snapshot)}


def error_event(message: str) -> Event:
    return {"event": EVENT_LIVE_CALLS_ERROR, "data": {"message": message}}


class LiveCallsBroadcaster:
    """Polls upstream for live calls while clients are attached and pushes changes.

    Each attached client is represented by a bounded queue of outbound events.
    The subscriber set and the last broadcast snapshot are owned here and
    nowhere else. Build/compare/broadcast cycles run one at a time: a scheduled
    tick that finds a cycle in flight is skipped, a manual refresh waits for it.
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        poll_interval: float = 2.0,
        queue_size: int = 100,
    ) -> None:
        self._builder = builder
        self.poll_interval = poll_interval
        self.queue_size = queue_size
        self._subscribers: Set[asyncio.Queue] = set()
        self._previous: Snapshot = []
        self._poll_task: Optional[asyncio.Task] = None
        self._cycle_lock = asyncio.Lock()

    @property
    def connected_clients(self) -> int:
        return len(self._subscribers)

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def last_snapshot(self) -> Snapshot:
        return list(self._previous)

    def is_subscribed(self, queue: asyncio.Queue) -> bool:
        return queue in self._subscribers

    # Connection registry

    async def connect(self) -> asyncio.Queue:
        """Attach a client and queue the current live calls for it alone."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        logger.info("Client connected to live calls. Total clients: %d", self.connected_clients)
        try:
            if self.connected_clients == 1:
                self.start_polling()
            await self._send_current_state(queue)
        except BaseException:
            self.disconnect(queue)
            raise
        return queue

    def disconnect(self, queue: asyncio.Queue) -> None:
        if queue not in self._subscribers:
            return
        self._subscribers.discard(queue)
        logger.info("Client disconnected from live calls. Total clients: %d", self.connected_clients)
        if not self._subscribers:
            self.stop_polling()

    async def refresh(self, queue: Optional[asyncio.Queue] = None) -> Optional[Snapshot]:
        """Run one cycle now. The requesting client always gets the result."""
        logger.info("Manual live calls refresh requested")
        async with self._cycle_lock:
            try:
                snapshot = await self._builder.build()
            except UpstreamFetchError as exc:
                logger.error("Manual refresh failed: %s", exc.message)
                if queue is not None:
                    self._deliver(queue, error_event(exc.message))
                return None
            broadcasted = self._publish_if_changed(snapshot)
            if queue is not None and not broadcasted:
                self._deliver(queue, update_event(snapshot))
            return snapshot

    async def current_snapshot(self) -> Snapshot:
        return await self._builder.build()

    def status(self) -> Dict[str, Any]:
        return {
            "isPolling": self.is_polling,
            "connectedClients": self.connected_clients,
            "pollingFrequency": int(self.poll_interval * 1000),
            "currentLiveCalls": len(self._previous),
        }

    async def shutdown(self) -> None:
        self.stop_polling()
        for queue in list(self._subscribers):
            self._close(queue)
        self._subscribers.clear()

    # Poll scheduler

    def start_polling(self) -> None:
        if self.is_polling:
            return
        logger.info("Starting live calls polling (every %.1fs)", self.poll_interval)
        self._poll_task = asyncio.create_task(self._poll_loop())

    def stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        logger.info("Stopping live calls polling (no clients connected)")
        task.cancel()

    async def _poll_loop(self) -> None:
        while True:
            # An in-flight fetch outlives stop_polling(); its result is discarded.
            cycle = asyncio.ensure_future(self.poll_once())
            cycle.add_done_callback(self._cycle_done)
            try:
                await asyncio.shield(cycle)
            except asyncio.CancelledError:
                raise
            except Exception:
                pass  # reported by _cycle_done
            await asyncio.sleep(self.poll_interval)

    @staticmethod
    def _cycle_done(cycle: asyncio.Future) -> None:
        if cycle.cancelled():
            return
        exc = cycle.exception()
        if exc is not None:
            logger.error("Unexpected error in live calls poll cycle", exc_info=exc)

    async def poll_once(self) -> bool:
        """One scheduled cycle. Returns True when an update was fanned out."""
        if self._cycle_lock.locked():
            logger.debug("Live calls cycle already in flight; skipping tick")
            return False
        async with self._cycle_lock:
            try:
                snapshot = await self._builder.build()
            except UpstreamFetchError as exc:
                logger.error("Error fetching live calls: %s", exc.message)
                self._broadcast(error_event(exc.message))
                return False
            return self._publish_if_changed(snapshot)

    # Fan-out

    def _publish_if_changed(self, snapshot: Snapshot) -> bool:
        if not self._subscribers:
            logger.debug("No clients attached; discarding snapshot of %d calls", len(snapshot))
            return False
        if not has_changed(self._previous, snapshot):
            return False
        self._previous = snapshot
        logger.info("Broadcasting %d live calls to %d clients", len(snapshot), self.connected_clients)
        self._broadcast(update_event(snapshot))
        return True

    async def _send_current_state(self, queue: asyncio.Queue) -> None:
        try:
            snapshot = await self._builder.build()
        except UpstreamFetchError as exc:
            logger.error("Error sending live calls to client: %s", exc.message)
            self._deliver(queue, error_event(exc.message))
            return
        self._deliver(queue, update_event(snapshot))

    def _broadcast(self, event: Event) -> None:
        for queue in list(self._subscribers):
            self._deliver(queue, event)

    def _deliver(self, queue: asyncio.Queue, event: Event) -> None:
        if queue not in self._subscribers:
            return
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Dropping live calls client with a full queue")
            self._close(queue)
            self.disconnect(queue)

    @staticmethod
    def _close(queue: asyncio.Queue) -> None:
        """Replace pending events with the end-of-stream marker (None)."""
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(None)
