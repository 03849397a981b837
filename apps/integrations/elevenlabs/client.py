from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from core.config import settings
from shared.exceptions import ConversationNotFoundException, UpstreamFetchError

logger = logging.getLogger(__name__)


def _error_details(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class ElevenLabsClient:
    """Thin async wrapper around the ElevenLabs Conversational AI REST API.

    Docs: https://elevenlabs.io/docs/api-reference
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.ELEVENLABS_API_KEY
        self.base_url = (base_url or settings.ELEVENLABS_BASE_URL).rstrip("/")
        self.phone_number_id = (
            phone_number_id if phone_number_id is not None else settings.ELEVENLABS_PHONE_NUMBER_ID
        )
        if not self.api_key:
            logger.warning("ELEVENLABS_API_KEY not set; upstream requests will be rejected.")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"xi-api-key": self.api_key, "Content-Type": "application/json"},
            timeout=timeout or settings.ELEVENLABS_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("ElevenLabs request %s %s failed: %s", method, path, exc)
            raise UpstreamFetchError(f"ElevenLabs request failed: {exc}") from exc
        if resp.status_code >= 400:
            logger.error("ElevenLabs API error: %s %s -> %s %s", method, path, resp.status_code, resp.text)
            raise UpstreamFetchError(
                f"ElevenLabs API error ({resp.status_code})",
                status_code=resp.status_code,
                details=_error_details(resp),
            )
        return resp

    async def list_conversations(
        self,
        agent_id: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch conversations newest first, following the cursor until exhausted."""
        conversations: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        pages = 0
        while True:
            params: Dict[str, Any] = {"page_size": page_size or settings.ELEVENLABS_PAGE_SIZE}
            if agent_id:
                params["agent_id"] = agent_id
            if cursor:
                params["cursor"] = cursor
            resp = await self._request("GET", "/v1/convai/conversations", params=params)
            payload = resp.json()
            conversations.extend(payload.get("conversations") or [])
            pages += 1
            cursor = payload.get("next_cursor")
            if not payload.get("has_more") or not cursor:
                break
            if max_pages is not None and pages >= max_pages:
                break
        logger.debug("Fetched %d conversations in %d page(s)", len(conversations), pages)
        return conversations

    async def get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        try:
            resp = await self._request("GET", f"/v1/convai/conversations/{conversation_id}")
        except UpstreamFetchError as exc:
            if exc.status_code == 404:
                raise ConversationNotFoundException(f"Conversation {conversation_id} not found") from exc
            raise
        return resp.json()

    async def list_agents(self) -> List[Dict[str, Any]]:
        resp = await self._request("GET", "/v1/convai/agents")
        return resp.json().get("agents") or []

    async def get_voice(self, voice_id: str) -> Optional[Dict[str, Any]]:
        """Voice metadata is decorative; failures are logged and reported as None."""
        try:
            resp = await self._request("GET", f"/v1/voices/{voice_id}")
        except UpstreamFetchError as exc:
            logger.warning("Error fetching voice %s: %s", voice_id, exc.message)
            return None
        return resp.json()

    async def initiate_outbound_call(
        self,
        agent_id: str,
        to_number: str,
        session: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "agent_id": agent_id,
            "agent_phone_number_id": self.phone_number_id,
            "to_number": to_number,
        }
        if session:
            payload["conversation_initiation_client_data"] = session
        logger.info("Initiating outbound call agent=%s to=%s", agent_id, to_number)
        resp = await self._request("POST", "/v1/convai/sip-trunk/outbound-call", json=payload)
        return resp.json()
