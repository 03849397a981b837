from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.constants import DEFAULT_AGENT_NAME, UNKNOWN_PHONE_NUMBER


class LiveCallRecord(BaseModel):
    """One live call as broadcast to dashboard clients."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    agent_id: Optional[str] = Field(None, alias="agentId")
    agent_name: str = Field(DEFAULT_AGENT_NAME, alias="agentName")
    phone_number: str = Field(UNKNOWN_PHONE_NUMBER, alias="phoneNumber")
    status: str
    duration: int = Field(0, ge=0, description="Seconds since start, computed at snapshot time")
    start_time: datetime = Field(..., alias="startTime")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


Snapshot = List[LiveCallRecord]


def snapshot_to_wire(snapshot: Snapshot) -> List[Dict[str, Any]]:
    return [record.to_wire() for record in snapshot]


def snapshot_from_wire(payload: Any) -> Snapshot:
    """Re-hydrate a pushed snapshot, turning serialized startTime back into datetimes."""
    return [LiveCallRecord.model_validate(item) for item in payload or []]
