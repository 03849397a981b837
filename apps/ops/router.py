from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from core.dependencies import get_live_calls_broadcaster
from shared.constants import EVENT_REFRESH_LIVE_CALLS
from shared.exceptions import UpstreamFetchError

from .live_calls import LiveCallsBroadcaster
from .models import snapshot_to_wire

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/api/live-calls")
async def get_live_calls(broadcaster: LiveCallsBroadcaster = Depends(get_live_calls_broadcaster)):
    """Build a snapshot on demand without touching the broadcast state."""
    try:
        snapshot = await broadcaster.current_snapshot()
    except UpstreamFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    return {"calls": snapshot_to_wire(snapshot)}


@router.get("/api/live-calls/status")
async def live_calls_status(broadcaster: LiveCallsBroadcaster = Depends(get_live_calls_broadcaster)):
    return broadcaster.status()


async def _pump_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        if event is None:
            await websocket.close()
            return
        await websocket.send_json(event)


async def _read_requests(websocket: WebSocket, broadcaster: LiveCallsBroadcaster, queue: asyncio.Queue) -> None:
    while True:
        raw = await websocket.receive_text()
        try:
            message: Dict[str, Any] = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed live calls frame: %r", raw[:200])
            continue
        event = message.get("event") if isinstance(message, dict) else None
        if event == EVENT_REFRESH_LIVE_CALLS:
            await broadcaster.refresh(queue)
        else:
            logger.warning("Ignoring unknown live calls event: %r", event)


@router.websocket("/ws/live-calls")
async def live_calls_ws(
    websocket: WebSocket,
    broadcaster: LiveCallsBroadcaster = Depends(get_live_calls_broadcaster),
):
    await websocket.accept()
    queue: Optional[asyncio.Queue] = None
    tasks: List[asyncio.Task] = []
    try:
        queue = await broadcaster.connect()
        tasks = [
            asyncio.create_task(_pump_events(websocket, queue)),
            asyncio.create_task(_read_requests(websocket, broadcaster, queue)),
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Live calls socket closed with error: %s", exc)
    finally:
        for task in tasks:
            task.cancel()
        if queue is not None:
            broadcaster.disconnect(queue)
