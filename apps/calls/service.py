from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from apps.integrations.elevenlabs.client import ElevenLabsClient
from shared.exceptions import TelephonyException, UpstreamFetchError
from shared.utils import format_phone_number

logger = logging.getLogger(__name__)

# Dynamic variable keys that identify the callee, in priority order
USER_ID_KEYS = ("customer_id", "user_id", "account_id")


def build_session(
    custom_variables: Optional[Dict[str, Any]],
    language: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Build ``conversation_initiation_client_data`` from the per-agent form values."""
    if not custom_variables:
        return None

    session: Dict[str, Any] = {"dynamic_variables": dict(custom_variables)}
    user_id = next((custom_variables[key] for key in USER_ID_KEYS if custom_variables.get(key)), None)
    if user_id:
        session["user_id"] = str(user_id)
    if language:
        session["conversation_config_override"] = {
            "agent": {"language": "hi" if language == "Hindi" else "en"},
        }
    return session


async def place_call(
    client: ElevenLabsClient,
    agent_id: str,
    to_number: str,
    custom_variables: Optional[Dict[str, Any]] = None,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    formatted = format_phone_number(to_number)
    session = build_session(custom_variables, language)
    if session is None:
        logger.info("No custom variables provided, placing basic call")
    else:
        logger.info("Session built with %d dynamic variables", len(session["dynamic_variables"]))
    try:
        return await client.initiate_outbound_call(agent_id, formatted, session)
    except UpstreamFetchError as exc:
        raise TelephonyException(exc.message) from exc
