"""Dependency providers used by FastAPI endpoints.

These helpers expose settings, the flow registry, and a factory for
per-browser identity clients through FastAPI's dependency injection system so
route handlers remain thin.
"""

import uuid
from typing import Callable

import httpx
from fastapi import Depends, HTTPException, Request, status

from workflow360.core.config import Settings, get_settings
from workflow360.core.errors import IdentityNotConfiguredError
from workflow360.core.redis import get_redis_client
from workflow360.flows.registry import FlowRegistry
from workflow360.identity.client import IdentityProvider
from workflow360.identity.session import MemorySessionStore, RedisSessionStore, SessionStore

IdentityFactory = Callable[[], IdentityProvider]


def get_registry(request: Request) -> FlowRegistry:
    """Return the worker-wide registry created in the app lifespan."""
    return request.app.state.flows


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the pooled HTTP client shared by every identity client."""
    return request.app.state.http_client


def build_session_store(settings: Settings) -> SessionStore:
    """Fresh, empty store scoped to one browser context."""
    if settings.SESSION_BACKEND == "redis":
        return RedisSessionStore(get_redis_client(), scope=uuid.uuid4().hex)
    return MemorySessionStore()


def get_identity_factory(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> IdentityFactory:
    """Assemble a factory of IdentityProvider clients, each with its own session store.

    Dependencies:
    - `Settings` for the provider URL/key and the session backend.
    - the shared `httpx.AsyncClient` so flows reuse one connection pool.
    """

    if not settings.identity_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(IdentityNotConfiguredError("Identity provider is not configured.")),
        )

    def factory() -> IdentityProvider:
        return IdentityProvider(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY,
            build_session_store(settings),
            http_client=http_client,
        )

    return factory
