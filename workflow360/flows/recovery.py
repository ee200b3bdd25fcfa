"""Detects, once per page load, whether the browser already holds a recovery session.

Each strategy is a probe `(context, identity) -> Session | None`. Probes run in
a fixed order and the first one that yields a session wins:

1. tokens in the URL fragment tagged `type=recovery`
2. a one-time `?code=` to exchange
3. `?type=recovery` with a session already in the store
4. a `PASSWORD_RECOVERY` / `SIGNED_IN` event arriving within a short wait
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import parse_qsl, urlsplit

import anyio

from workflow360.core.errors import IdentityUnavailableError
from workflow360.identity.client import IdentityProvider
from workflow360.identity.session import AuthEvent, Session, Subscription

logger = logging.getLogger(__name__)

RECOVERY_TYPE = "recovery"


@dataclass(frozen=True)
class RecoveryContext:
    """The parts of the landing URL the probes look at."""

    query: dict[str, str] = field(default_factory=dict)
    fragment: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str) -> "RecoveryContext":
        parts = urlsplit(url or "")
        return cls(query=dict(parse_qsl(parts.query)), fragment=dict(parse_qsl(parts.fragment)))

    @property
    def link_error(self) -> Optional[str]:
        """Error the provider appended to an expired/invalid link, if any."""
        for source in (self.fragment, self.query):
            if source.get("error_description"):
                return source["error_description"]
        return None


class Probe(Protocol):
    name: str

    async def __call__(self, context: RecoveryContext, identity: IdentityProvider) -> Optional[Session]: ...


class FragmentTokenProbe:
    name = "fragment-token"

    async def __call__(self, context: RecoveryContext, identity: IdentityProvider) -> Optional[Session]:
        access_token = context.fragment.get("access_token")
        refresh_token = context.fragment.get("refresh_token")
        if not access_token or not refresh_token or context.fragment.get("type") != RECOVERY_TYPE:
            return None
        result = await identity.set_session(access_token, refresh_token, event=AuthEvent.PASSWORD_RECOVERY)
        return result.session if result.ok else None


class ExchangeCodeProbe:
    name = "exchange-code"

    async def __call__(self, context: RecoveryContext, identity: IdentityProvider) -> Optional[Session]:
        code = context.query.get("code")
        if not code:
            return None
        result = await identity.exchange_code_for_session(code)
        return result.session if result.ok else None


class RecoveryTypeProbe:
    name = "recovery-type"

    async def __call__(self, context: RecoveryContext, identity: IdentityProvider) -> Optional[Session]:
        if context.query.get("type") != RECOVERY_TYPE or context.query.get("code"):
            return None
        return await identity.get_current_session()


class AuthEventProbe:
    """Waits up to `timeout` seconds for the provider to announce a session.

    The subscription is released on every exit path, including cancellation.
    Each flow starts with an empty store, so on a plain visit nothing can
    announce a session and this probe waits out the whole `timeout`. That
    wait is kept so late provider events are still caught, and it puts a
    floor of `timeout` (1 s by default) under request-mode page loads.
    """

    name = "auth-event"
    events = (AuthEvent.PASSWORD_RECOVERY, AuthEvent.SIGNED_IN)

    def __init__(self, timeout: float = 1.0):
        self.timeout = timeout
        self._subscription: Optional[Subscription] = None
        self._arrived: Optional[anyio.Event] = None

    async def __call__(self, context: RecoveryContext, identity: IdentityProvider) -> Optional[Session]:
        received: list[Session] = []
        arrived = anyio.Event()

        def on_event(event: AuthEvent, session: Optional[Session]) -> None:
            if event in self.events and session is not None and not received:
                received.append(session)
                arrived.set()

        self._arrived = arrived
        self._subscription = identity.subscribe(on_event)
        try:
            with anyio.move_on_after(self.timeout):
                await arrived.wait()
        finally:
            self.release()
        return received[0] if received else None

    def release(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._arrived is not None:
            # wake a pending wait so it returns instead of sitting out the timeout
            self._arrived.set()
            self._arrived = None


@dataclass
class Resolution:
    update_mode: bool
    session: Optional[Session] = None
    strategy: Optional[str] = None
    link_error: Optional[str] = None


def default_probes(event_timeout: float = 1.0) -> list:
    return [FragmentTokenProbe(), ExchangeCodeProbe(), RecoveryTypeProbe(), AuthEventProbe(event_timeout)]


class RecoverySessionResolver:
    def __init__(self, identity: IdentityProvider, probes: list | None = None, event_timeout: float = 1.0):
        self.identity = identity
        self.probes = probes if probes is not None else default_probes(event_timeout)
        self.closed = False

    async def resolve(self, url: str) -> Resolution:
        context = RecoveryContext.from_url(url)
        for probe in self.probes:
            if self.closed:
                break
            try:
                session = await probe(context, self.identity)
            except IdentityUnavailableError as exc:
                logger.warning("Recovery probe %s could not reach the provider: %s", probe.name, exc)
                session = None
            if session is not None:
                logger.info("Recovery session found via %s", probe.name)
                return Resolution(update_mode=True, session=session, strategy=probe.name)
        return Resolution(update_mode=False, link_error=context.link_error)

    def close(self) -> None:
        self.closed = True
        for probe in self.probes:
            release = getattr(probe, "release", None)
            if release is not None:
                release()
