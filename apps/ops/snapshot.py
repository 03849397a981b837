from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from shared.constants import (
    DEFAULT_AGENT_NAME,
    MAX_LIVE_CALL_AGE_SECONDS,
    UNKNOWN_PHONE_NUMBER,
    is_live_status,
)
from shared.exceptions import UpstreamFetchError
from shared.utils import parse_epoch_seconds

from .models import LiveCallRecord, Snapshot

logger = logging.getLogger(__name__)


class ConversationSource(Protocol):
    """Anything able to list upstream conversation records."""

    async def list_conversations(self, max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        ...


def _phone_number(conv: Dict[str, Any]) -> str:
    metadata = conv.get("metadata") or {}
    phone_call = metadata.get("phone_call") or {}
    return metadata.get("caller_number") or phone_call.get("external_number") or UNKNOWN_PHONE_NUMBER


def _start_time_secs(conv: Dict[str, Any]) -> Optional[float]:
    metadata = conv.get("metadata") or {}
    return parse_epoch_seconds(conv.get("start_time_unix_secs")) or parse_epoch_seconds(
        metadata.get("start_time_unix_secs")
    )


class SnapshotBuilder:
    """Turns the upstream conversation list into the current set of live calls."""

    def __init__(
        self,
        source: ConversationSource,
        max_age_seconds: int = MAX_LIVE_CALL_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
        max_pages: Optional[int] = 1,
    ) -> None:
        self._source = source
        self.max_age_seconds = max_age_seconds
        # Live calls sit on the newest page; older pages are history
        self.max_pages = max_pages
        self._clock = clock

    async def build(self) -> Snapshot:
        try:
            conversations = await self._source.list_conversations(max_pages=self.max_pages)
        except UpstreamFetchError:
            raise
        except Exception as exc:
            raise UpstreamFetchError(f"Failed to fetch conversations: {exc}") from exc

        now = self._clock()
        records: Snapshot = []
        seen: set = set()
        live = stale = 0
        for conv in conversations:
            if not is_live_status(conv.get("status")):
                continue
            live += 1
            record = self._to_record(conv, now)
            if record is None:
                continue
            if now - record.start_time.timestamp() > self.max_age_seconds:
                stale += 1
                continue
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)

        logger.info(
            "Scanned %d conversations: %d live, %d stale filtered, %d returned",
            len(conversations),
            live,
            stale,
            len(records),
        )
        return records

    def _to_record(self, conv: Dict[str, Any], now: float) -> Optional[LiveCallRecord]:
        conversation_id = conv.get("conversation_id")
        if not conversation_id:
            logger.warning("Skipping live conversation without an id: %s", conv)
            return None
        started = _start_time_secs(conv) or now
        try:
            start_time = datetime.fromtimestamp(started, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning("Unusable start time for conversation %s; using now", conversation_id)
            started = now
            start_time = datetime.fromtimestamp(now, tz=timezone.utc)
        agent_id = conv.get("agent_id")
        return LiveCallRecord(
            id=str(conversation_id),
            agent_id=str(agent_id) if agent_id is not None else None,
            agent_name=str(conv.get("agent_name") or DEFAULT_AGENT_NAME),
            phone_number=str(_phone_number(conv)),
            status=conv["status"],
            duration=max(0, math.floor(now - started)),
            start_time=start_time,
        )


def has_changed(previous: Snapshot, current: Snapshot) -> bool:
    """Decide whether ``current`` is worth broadcasting after ``previous``.

    Only call membership and per-call status are compared. Duration and start
    time move every second and never count as a change on their own.
    """
    if len(current) != len(previous):
        return True

    previous_status = {record.id: record.status for record in previous}
    current_status = {record.id: record.status for record in current}
    if previous_status.keys() != current_status.keys():
        return True

    for call_id, status in current_status.items():
        if previous_status[call_id] != status:
            logger.info("Status changed for call %s: %s -> %s", call_id, previous_status[call_id], status)
            return True
    return False
