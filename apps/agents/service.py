from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from apps.integrations.elevenlabs.client import ElevenLabsClient
from core.config import settings
from shared.cache import TTLCache

from .catalog import agent_voice_id, enrich_agent

logger = logging.getLogger(__name__)


class AgentCatalog:
    """Lists upstream agents enriched with category, voice and description hints."""

    def __init__(
        self,
        client: ElevenLabsClient,
        agents_cache: Optional[TTLCache] = None,
        voice_cache: Optional[TTLCache] = None,
    ) -> None:
        self._client = client
        self._agents_cache = agents_cache or TTLCache(ttl_seconds=settings.AGENTS_CACHE_TTL_SECONDS, max_items=4)
        self._voice_cache = voice_cache or TTLCache(ttl_seconds=settings.VOICE_CACHE_TTL_SECONDS, max_items=256)

    async def list_agents(self) -> List[Dict[str, Any]]:
        cached = self._agents_cache.get("agents")
        if cached is not None:
            return cached

        agents = await self._client.list_agents()
        logger.info("Found %d agents upstream", len(agents))
        enriched = await asyncio.gather(*(self._enrich(agent) for agent in agents))
        result = list(enriched)
        self._agents_cache.set("agents", result)
        return result

    async def _enrich(self, agent: Dict[str, Any]) -> Dict[str, Any]:
        voice_id = agent_voice_id(agent)
        voice = await self._voice(voice_id) if voice_id else None
        enriched = enrich_agent(agent, voice)
        logger.debug(
            "Agent %r: voice=%s gender=%s lang=%s category=%s",
            agent.get("name"),
            voice_id,
            enriched["voiceGender"],
            enriched["voiceLanguage"],
            enriched["category"],
        )
        return enriched

    async def _voice(self, voice_id: str) -> Optional[Dict[str, Any]]:
        cached = self._voice_cache.get(voice_id)
        if cached is not None:
            return cached
        voice = await self._client.get_voice(voice_id)
        if voice is not None:
            self._voice_cache.set(voice_id, voice)
        return voice

    def invalidate(self) -> None:
        self._agents_cache.clear()


def paginate(items: List[Any], limit: int, offset: Optional[int] = None, page: Optional[int] = None) -> Dict[str, Any]:
    """Slice ``items`` and describe the window the way the dashboard expects."""
    if offset is None:
        offset = (page - 1) * limit if page else 0
    offset = max(0, offset)
    total = len(items)
    return {
        "agents": items[offset:offset + limit],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "page": page if page else offset // limit + 1,
            "totalPages": -(-total // limit),
            "hasMore": offset + limit < total,
        },
    }
