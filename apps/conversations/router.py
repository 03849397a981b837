from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from apps.integrations.elevenlabs.client import ElevenLabsClient
from core.dependencies import get_elevenlabs_client
from shared.constants import is_live_status
from shared.exceptions import ConversationNotFoundException, UpstreamFetchError

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/api/conversations")
async def list_conversations(
    agent_id: Optional[str] = Query(None),
    live: bool = Query(False, description="Only conversations that are still running"),
    client: ElevenLabsClient = Depends(get_elevenlabs_client),
):
    try:
        conversations = await client.list_conversations(agent_id=agent_id)
    except UpstreamFetchError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch conversations", "details": exc.details or exc.message},
        )
    if live:
        conversations = [conv for conv in conversations if is_live_status(conv.get("status"))]
    return {"conversations": conversations}


@router.get("/api/conversations/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    client: ElevenLabsClient = Depends(get_elevenlabs_client),
):
    """Full conversation detail, transcript included."""
    try:
        return await client.get_conversation(conversation_id)
    except ConversationNotFoundException as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc
    except UpstreamFetchError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch conversation details", "details": exc.details or exc.message},
        )
