from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.integrations.elevenlabs.client import ElevenLabsClient
from core.dependencies import get_elevenlabs_client
from shared.exceptions import InvalidPhoneNumberException, TelephonyException

from .service import place_call

router = APIRouter()

logger = logging.getLogger(__name__)


class CallRequest(BaseModel):
    """Outbound call request"""
    agent_id: Optional[str] = None
    to_number: Optional[str] = None
    language: Optional[str] = Field(None, description="Hindi or English; sent as an agent override")
    custom_variables: Optional[Dict[str, Any]] = Field(None, description="Dynamic variables for the agent")


def _failure(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.post("/api/call")
async def initiate_call(
    request: CallRequest,
    client: ElevenLabsClient = Depends(get_elevenlabs_client),
):
    if not request.agent_id or not request.to_number:
        return _failure(status.HTTP_400_BAD_REQUEST, "agent_id and to_number are required")

    try:
        data = await place_call(
            client,
            agent_id=request.agent_id,
            to_number=request.to_number,
            custom_variables=request.custom_variables,
            language=request.language,
        )
    except InvalidPhoneNumberException as exc:
        return _failure(status.HTTP_400_BAD_REQUEST, exc.message)
    except TelephonyException as exc:
        logger.error("Error initiating call: %s", exc.message)
        cause = exc.__cause__
        return _failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to initiate call",
            getattr(cause, "details", None) or exc.message,
        )

    return {"success": True, "data": data, "message": "Call initiated successfully"}
