from typing import FrozenSet, Optional

# Upstream conversation statuses counted as a live call
ACTIVE_CALL_STATUSES: FrozenSet[str] = frozenset(
    {
        "in_progress",
        "active",
        "ongoing",
        "in-progress",
        "initiated",
    }
)

# Upstream conversation statuses that always mean the call is over
ENDED_CALL_STATUSES: FrozenSet[str] = frozenset(
    {
        "done",
        "completed",
        "failed",
        "cancelled",
        "terminated",
        "ended",
        "disconnected",
        "hung_up",
        "finished",
        "closed",
    }
)

# Calls older than this are dropped even if upstream still reports them live
MAX_LIVE_CALL_AGE_SECONDS = 15 * 60

# Placeholders for missing upstream fields
UNKNOWN_PHONE_NUMBER = "Unknown"
DEFAULT_AGENT_NAME = "AI Agent"

# Real-time events
EVENT_LIVE_CALLS_UPDATE = "live-calls-update"
EVENT_LIVE_CALLS_ERROR = "live-calls-error"
EVENT_REFRESH_LIVE_CALLS = "refresh-live-calls"

# Phone numbers without a country code are assumed Indian
DEFAULT_COUNTRY_CODE = "91"


def is_live_status(status: Optional[str]) -> bool:
    """True when an upstream status describes a call that is still running."""
    if not status:
        return False
    return status in ACTIVE_CALL_STATUSES and status not in ENDED_CALL_STATUSES
