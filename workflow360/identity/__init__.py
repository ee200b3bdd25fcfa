from workflow360.identity.client import AuthResult, IdentityProvider
from workflow360.identity.session import (
    AuthEvent,
    MemorySessionStore,
    RedisSessionStore,
    Session,
    SessionStore,
    Subscription,
)

__all__ = [
    "AuthEvent",
    "AuthResult",
    "IdentityProvider",
    "MemorySessionStore",
    "RedisSessionStore",
    "Session",
    "SessionStore",
    "Subscription",
]
