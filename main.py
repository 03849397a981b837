from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
import logging
import uvicorn

from core.config import settings
from core.logging_config import configure_logging
from apps.integrations.elevenlabs.client import ElevenLabsClient
from apps.agents.service import AgentCatalog
from apps.ops.live_calls import LiveCallsBroadcaster
from apps.ops.snapshot import SnapshotBuilder

# Import routers
from apps.agents.router import router as agents_router
from apps.calls.router import router as calls_router
from apps.conversations.router import router as conversations_router
from apps.ops.router import router as live_calls_router

logger = logging.getLogger(__name__)


def build_live_calls_broadcaster(client: ElevenLabsClient) -> LiveCallsBroadcaster:
    """One broadcaster per process; it owns all live call polling state."""
    builder = SnapshotBuilder(
        client,
        max_age_seconds=settings.LIVE_CALLS_MAX_AGE_SECONDS,
        max_pages=settings.LIVE_CALLS_MAX_PAGES,
    )
    return LiveCallsBroadcaster(
        builder,
        poll_interval=settings.LIVE_CALLS_POLL_INTERVAL_SECONDS,
        queue_size=settings.LIVE_CALLS_QUEUE_SIZE,
    )


def create_app(elevenlabs_client: Optional[ElevenLabsClient] = None) -> FastAPI:
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = elevenlabs_client or ElevenLabsClient()
        app.state.elevenlabs = client
        app.state.agent_catalog = AgentCatalog(client)
        app.state.live_calls = build_live_calls_broadcaster(client)
        logger.info("%s ready (upstream %s)", settings.PROJECT_NAME, client.base_url)
        try:
            yield
        finally:
            await app.state.live_calls.shutdown()
            if elevenlabs_client is None:
                await client.aclose()
            logger.info("%s stopped", settings.PROJECT_NAME)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.PROJECT_DESCRIPTION,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(agents_router, tags=["agents"])
    app.include_router(calls_router, tags=["calls"])
    app.include_router(conversations_router, tags=["conversations"])
    app.include_router(live_calls_router, tags=["live-calls"])

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=True)
