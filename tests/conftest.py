"""Shared fixtures: a scripted identity provider and session helpers."""

import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from workflow360.identity.client import AuthResult, IdentityProvider
from workflow360.identity.session import AuthEvent, MemorySessionStore, Session


def make_session(expires_in: int = 3600, **user) -> Session:
    return Session(
        access_token="access-token",
        refresh_token="refresh-token",
        expires_at=int(time.time()) + expires_in,
        user=user or {"id": "user-1", "email": "user@example.com"},
    )


def make_identity() -> MagicMock:
    """IdentityProvider stand-in whose remote calls all succeed by default.

    Session-bearing calls write to a real MemorySessionStore so that
    `get_current_session` and `subscribe` behave like the real client.
    """
    identity = MagicMock(spec=IdentityProvider)
    identity.store = MemorySessionStore()
    session = make_session()

    async def verify(email, code, type="recovery"):
        await identity.store.set(session, AuthEvent.PASSWORD_RECOVERY)
        return AuthResult(session=session, user=session.user)

    async def sign_out():
        await identity.store.clear()
        return AuthResult()

    identity.send_recovery_code = AsyncMock(return_value=AuthResult())
    identity.verify_recovery_code = AsyncMock(side_effect=verify)
    identity.verify_otp = AsyncMock(return_value=AuthResult(session=session, user=session.user))
    identity.get_current_session = AsyncMock(side_effect=identity.store.get)
    identity.update_password = AsyncMock(return_value=AuthResult(session=session, user=session.user))
    identity.sign_out = AsyncMock(side_effect=sign_out)
    identity.resend_signup_code = AsyncMock(return_value=AuthResult())
    identity.set_session = AsyncMock(return_value=AuthResult(session=session))
    identity.exchange_code_for_session = AsyncMock(return_value=AuthResult(session=session))
    identity.sign_in_with_password = AsyncMock(
        return_value=AuthResult(
            session=session, user={"id": "user-1", "email_confirmed_at": "2024-01-01T00:00:00Z"}
        )
    )
    identity.sign_up = AsyncMock(return_value=AuthResult(user={"id": "user-1"}))
    identity.subscribe = MagicMock(side_effect=identity.store.subscribe)
    identity.aclose = AsyncMock()
    return identity


@pytest.fixture
def identity():
    return make_identity()


@pytest.fixture
def session():
    return make_session()
