from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from core.config import settings
from core.dependencies import get_agent_catalog
from shared.exceptions import UpstreamFetchError

from .service import AgentCatalog, paginate

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/api/agents")
async def list_agents(
    limit: Optional[int] = Query(None, ge=1, description="Page size; omit for all agents"),
    offset: Optional[int] = Query(None, ge=0),
    page: Optional[int] = Query(None, ge=1),
    catalog: AgentCatalog = Depends(get_agent_catalog),
):
    try:
        agents = await catalog.list_agents()
    except UpstreamFetchError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch agents", "details": exc.details or exc.message},
        )

    if limit:
        result = paginate(agents, limit=limit, offset=offset, page=page)
        logger.info(
            "Paginated agents: %d of %d (limit: %d, offset: %d)",
            len(result["agents"]),
            len(agents),
            limit,
            result["pagination"]["offset"],
        )
        return result
    return {"agents": agents, "total": len(agents)}


@router.get("/api/agents/phone-config")
async def phone_config() -> Dict[str, Any]:
    return {
        "phone_number": settings.ELEVENLABS_PHONE_NUMBER,
        "phone_number_id": settings.ELEVENLABS_PHONE_NUMBER_ID,
    }
