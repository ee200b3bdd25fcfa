"""Application entrypoint for the Workflow360 auth service.

This module wires together the FastAPI application with its lifespan hooks,
the shared HTTP client and flow registry, Redis cleanup, and CORS
configuration. It is the root that other modules depend on when the API
process starts.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow360.api.routes import auth_router, flows_router
from workflow360.core.config import Settings, get_settings, settings
from workflow360.core.logging_config import setup_logging, warn_unconfigured
from workflow360.core.redis import close_redis_client
from workflow360.flows.registry import FlowRegistry
from workflow360.schemas.common import ConfigStatus

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create shared clients on startup and tear every live flow down on shutdown.

    Dependencies:
    - One pooled `httpx.AsyncClient` reused by all identity clients.
    - A `FlowRegistry`; closing it cancels flow timers and subscriptions.
    - The Redis client via `close_redis_client` when the Redis backend is used.
    """

    if not settings.identity_configured:
        warn_unconfigured(logger)

    app.state.http_client = httpx.AsyncClient(timeout=settings.IDENTITY_TIMEOUT_SECONDS)
    app.state.flows = FlowRegistry()
    yield
    await app.state.flows.close_all()
    await app.state.http_client.aclose()
    await close_redis_client()


def create_application() -> FastAPI:
    """Assemble and configure the FastAPI application instance.

    - Injects the lifespan manager defined above to manage startup/shutdown.
    - Applies CORS settings sourced from environment-driven `settings`.
    - Registers the flow and authentication routers.
    """

    setup_logging(settings.LOG_LEVEL)

    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(flows_router)
    application.include_router(auth_router)

    @application.get("/")
    async def healthcheck():
        """Lightweight health endpoint used by uptime monitors."""
        return {"message": "Workflow360 Auth is running!"}

    @application.get("/config/status", response_model=ConfigStatus)
    async def config_status(current: Settings = Depends(get_settings)) -> ConfigStatus:
        """Tell the frontend whether to show the 'not configured' banner."""
        return ConfigStatus(configured=current.identity_configured, session_backend=current.SESSION_BACKEND)

    return application


app = create_application()
