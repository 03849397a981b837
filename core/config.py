import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

class Settings:
    # Project settings
    PROJECT_NAME: str = "Conversational AI Call Console"
    PROJECT_VERSION: str = "0.1.0"
    PROJECT_DESCRIPTION: str = "Browse AI agents, place outbound calls and watch live conversations"

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    # CORS settings
    ALLOWED_ORIGINS: List[str] = os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://localhost:3001",
    ).split(",")

    # ElevenLabs settings
    ELEVENLABS_API_KEY: str = os.getenv("ELEVENLABS_API_KEY", "")
    ELEVENLABS_BASE_URL: str = os.getenv("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io")
    ELEVENLABS_PHONE_NUMBER_ID: str = os.getenv("ELEVENLABS_PHONE_NUMBER_ID", "")
    ELEVENLABS_PHONE_NUMBER: str = os.getenv("ELEVENLABS_PHONE_NUMBER", "")
    ELEVENLABS_TIMEOUT_SECONDS: float = float(os.getenv("ELEVENLABS_TIMEOUT_SECONDS", "20"))
    ELEVENLABS_PAGE_SIZE: int = int(os.getenv("ELEVENLABS_PAGE_SIZE", "100"))

    # Live call broadcasting
    LIVE_CALLS_POLL_INTERVAL_SECONDS: float = float(os.getenv("LIVE_CALLS_POLL_INTERVAL_SECONDS", "2.0"))
    LIVE_CALLS_MAX_AGE_SECONDS: int = int(os.getenv("LIVE_CALLS_MAX_AGE_SECONDS", str(15 * 60)))
    LIVE_CALLS_QUEUE_SIZE: int = int(os.getenv("LIVE_CALLS_QUEUE_SIZE", "100"))
    LIVE_CALLS_MAX_PAGES: int = int(os.getenv("LIVE_CALLS_MAX_PAGES", "1"))
    LIVE_CALLS_WS_URL: str = os.getenv("LIVE_CALLS_WS_URL", f"ws://localhost:{PORT}/ws/live-calls")
    LIVE_CALLS_RECONNECT_ATTEMPTS: int = int(os.getenv("LIVE_CALLS_RECONNECT_ATTEMPTS", "5"))
    LIVE_CALLS_RECONNECT_DELAY_SECONDS: float = float(os.getenv("LIVE_CALLS_RECONNECT_DELAY_SECONDS", "1.0"))

    # Agent catalog caching
    AGENTS_CACHE_TTL_SECONDS: int = int(os.getenv("AGENTS_CACHE_TTL_SECONDS", "30"))
    VOICE_CACHE_TTL_SECONDS: int = int(os.getenv("VOICE_CACHE_TTL_SECONDS", "3600"))

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
