"""Session proofs and the stores that hold them between remote calls.

The identity provider issues an access/refresh token pair once a user proves
control of an account. Flows never look inside it beyond "is there a live
one?"; the store is the only place that keeps it, and every change to it is
broadcast to subscribers as an `AuthEvent`.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from jose import JWTError, jwt
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@dataclass
class Session:
    """Opaque token pair plus the little metadata needed to judge liveness."""

    access_token: str
    refresh_token: str
    expires_at: Optional[int] = None
    token_type: str = "bearer"
    user: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None) -> Optional["Session"]:
        """Build a session from a provider token response; None when tokens are absent."""
        if not data:
            return None
        # /verify and /token answer with the session at the top level; some
        # proxies wrap it as {"session": {...}}.
        if "session" in data and isinstance(data["session"], dict):
            data = data["session"]
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not access_token or not refresh_token:
            return None

        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = int(time.time()) + int(data["expires_in"])
        if expires_at is None:
            expires_at = _claims_expiry(access_token)

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires_at) if expires_at is not None else None,
            token_type=data.get("token_type") or "bearer",
            user=data.get("user") or {},
        )

    def is_live(self, now: float | None = None) -> bool:
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > (now if now is not None else time.time())

    @property
    def email_confirmed(self) -> bool:
        return bool(self.user.get("email_confirmed_at"))


def _claims_expiry(access_token: str) -> Optional[int]:
    """Read `exp` from the JWT without verifying it; the provider owns the signature."""
    try:
        claims = jwt.get_unverified_claims(access_token)
    except JWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if exp is not None else None


AuthListener = Callable[[AuthEvent, Optional[Session]], Any]


class Subscription:
    """Handle returned by `SessionStore.subscribe`; `unsubscribe()` is idempotent."""

    def __init__(self, store: "SessionStore", listener: AuthListener):
        self._store = store
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._store._listeners.discard(self)
            self.active = False

    def __call__(self, event: AuthEvent, session: Optional[Session]) -> None:
        self._listener(event, session)


class SessionStore:
    """Get/set/subscribe access to the current session of one browser context."""

    def __init__(self) -> None:
        self._listeners: set[Subscription] = set()

    async def get(self) -> Optional[Session]:
        raise NotImplementedError

    async def _save(self, session: Session) -> None:
        raise NotImplementedError

    async def _delete(self) -> None:
        raise NotImplementedError

    async def set(self, session: Session, event: AuthEvent = AuthEvent.SIGNED_IN) -> None:
        await self._save(session)
        self.emit(event, session)

    async def clear(self) -> None:
        await self._delete()
        self.emit(AuthEvent.SIGNED_OUT, None)

    def subscribe(self, listener: AuthListener) -> Subscription:
        subscription = Subscription(self, listener)
        self._listeners.add(subscription)
        return subscription

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for subscription in list(self._listeners):
            try:
                subscription(event, session)
            except Exception:
                logger.exception("Auth listener failed on %s", event.value)

    async def close(self) -> None:
        for subscription in list(self._listeners):
            subscription.unsubscribe()


class MemorySessionStore(SessionStore):
    """In-process store; enough for a single worker and for tests."""

    def __init__(self, session: Optional[Session] = None) -> None:
        super().__init__()
        self._session = session

    async def get(self) -> Optional[Session]:
        return self._session

    async def _save(self, session: Session) -> None:
        self._session = session

    async def _delete(self) -> None:
        self._session = None


def _session_key(scope: str) -> str:
    """Generate the Redis key that scopes a session to one flow."""
    return f"session:{scope}"


class RedisSessionStore(SessionStore):
    """Session kept in Redis so any worker can pick up a flow's tokens.

    The key expires together with the access token.
    """

    def __init__(self, redis_client: Redis, scope: str) -> None:
        super().__init__()
        self.redis = redis_client
        self.key = _session_key(scope)

    async def get(self) -> Optional[Session]:
        raw = await self.redis.get(self.key)
        if raw is None:
            return None
        return Session(**json.loads(raw))

    async def _save(self, session: Session) -> None:
        ttl = None
        if session.expires_at is not None:
            ttl = max(1, session.expires_at - int(time.time()))
        await self.redis.set(self.key, json.dumps(asdict(session)), ex=ttl)

    async def _delete(self) -> None:
        await self.redis.delete(self.key)

    async def close(self) -> None:
        await super().close()
        await self._delete()
