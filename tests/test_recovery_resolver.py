"""Tests for recovery session detection on the reset-password landing page."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from workflow360.core.errors import AuthError, IdentityUnavailableError
from workflow360.flows.recovery import (
    AuthEventProbe,
    RecoveryContext,
    RecoverySessionResolver,
    default_probes,
)
from workflow360.identity.client import AuthResult
from workflow360.identity.session import AuthEvent

from tests.conftest import make_session


BASE = "https://app.example.com/auth/reset-password"


def test_context_reads_query_and_fragment():
    context = RecoveryContext.from_url(BASE + "?code=abc#access_token=a&type=recovery")

    assert context.query == {"code": "abc"}
    assert context.fragment == {"access_token": "a", "type": "recovery"}


def test_link_error_prefers_fragment():
    context = RecoveryContext.from_url(
        BASE + "?error_description=query+side#error=access_denied&error_description=Email+link+is+invalid+or+has+expired"
    )

    assert context.link_error == "Email link is invalid or has expired"


def test_empty_url_has_no_context():
    context = RecoveryContext.from_url("")

    assert context.query == {}
    assert context.fragment == {}
    assert context.link_error is None


@pytest.mark.asyncio
async def test_fragment_tokens_win_first(identity):
    resolver = RecoverySessionResolver(identity, event_timeout=0.05)
    resolution = await resolver.resolve(BASE + "#access_token=a&refresh_token=r&type=recovery&code=x")

    assert resolution.update_mode
    assert resolution.strategy == "fragment-token"
    identity.set_session.assert_awaited_once_with("a", "r", event=AuthEvent.PASSWORD_RECOVERY)
    identity.exchange_code_for_session.assert_not_awaited()


@pytest.mark.asyncio
async def test_fragment_tokens_without_recovery_type_are_ignored(identity):
    resolver = RecoverySessionResolver(identity, event_timeout=0.01)
    resolution = await resolver.resolve(BASE + "#access_token=a&refresh_token=r&type=signup")

    identity.set_session.assert_not_awaited()
    assert not resolution.update_mode


@pytest.mark.asyncio
async def test_code_is_exchanged(identity):
    resolver = RecoverySessionResolver(identity, event_timeout=0.05)
    resolution = await resolver.resolve(BASE + "?code=one-time")

    assert resolution.update_mode
    assert resolution.strategy == "exchange-code"
    identity.exchange_code_for_session.assert_awaited_once_with("one-time")


@pytest.mark.asyncio
async def test_failed_exchange_falls_through(identity):
    identity.exchange_code_for_session.return_value = AuthResult(error=AuthError("invalid flow state"))
    resolver = RecoverySessionResolver(identity, event_timeout=0.01)
    resolution = await resolver.resolve(BASE + "?code=used")

    assert not resolution.update_mode
    assert resolution.strategy is None


@pytest.mark.asyncio
async def test_recovery_type_uses_stored_session(identity, session):
    await identity.store.set(session)
    resolver = RecoverySessionResolver(identity, event_timeout=0.05)
    resolution = await resolver.resolve(BASE + "?type=recovery")

    assert resolution.update_mode
    assert resolution.strategy == "recovery-type"
    assert resolution.session is session


@pytest.mark.asyncio
async def test_recovery_type_without_session_waits_for_event(identity, session):
    resolver = RecoverySessionResolver(identity, event_timeout=1.0)

    async def announce():
        await asyncio.sleep(0.02)
        await identity.store.set(session, AuthEvent.PASSWORD_RECOVERY)

    task = asyncio.create_task(announce())
    resolution = await resolver.resolve(BASE)
    await task

    assert resolution.update_mode
    assert resolution.strategy == "auth-event"
    assert identity.store.listener_count == 0


@pytest.mark.asyncio
async def test_unrelated_event_is_ignored(identity, session):
    probe = AuthEventProbe(timeout=0.05)

    async def announce():
        await asyncio.sleep(0.01)
        await identity.store.set(session, AuthEvent.TOKEN_REFRESHED)

    task = asyncio.create_task(announce())
    found = await probe(RecoveryContext(), identity)
    await task

    assert found is None
    assert identity.store.listener_count == 0


@pytest.mark.asyncio
async def test_no_signal_times_out_into_request_mode(identity):
    resolver = RecoverySessionResolver(identity, event_timeout=0.05)
    resolution = await resolver.resolve(BASE + "#error=access_denied&error_description=Link+expired")

    assert not resolution.update_mode
    assert resolution.session is None
    assert resolution.link_error == "Link expired"
    assert identity.store.listener_count == 0


@pytest.mark.asyncio
async def test_unreachable_provider_moves_to_next_probe(identity):
    identity.exchange_code_for_session.side_effect = IdentityUnavailableError("connect timeout")
    identity.get_current_session.side_effect = None
    identity.get_current_session.return_value = make_session()
    resolver = RecoverySessionResolver(identity, event_timeout=0.01)

    resolution = await resolver.resolve(BASE + "?code=abc&type=recovery")

    # the recovery-type probe defers to the code exchange whenever a code is present
    assert not resolution.update_mode


@pytest.mark.asyncio
async def test_close_releases_pending_wait(identity):
    resolver = RecoverySessionResolver(identity, event_timeout=5.0)
    task = asyncio.create_task(resolver.resolve(BASE))
    await asyncio.sleep(0.02)

    assert identity.store.listener_count == 1

    resolver.close()
    resolution = await asyncio.wait_for(task, timeout=1.0)

    assert not resolution.update_mode
    assert identity.store.listener_count == 0


@pytest.mark.asyncio
async def test_closed_resolver_runs_no_probes(identity):
    probe = AsyncMock(return_value=make_session())
    probe.name = "stub"
    resolver = RecoverySessionResolver(identity, probes=[probe])
    resolver.close()

    resolution = await resolver.resolve(BASE)

    probe.assert_not_awaited()
    assert not resolution.update_mode


def test_default_probe_order():
    assert [probe.name for probe in default_probes()] == [
        "fragment-token",
        "exchange-code",
        "recovery-type",
        "auth-event",
    ]
