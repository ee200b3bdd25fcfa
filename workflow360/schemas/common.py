"""Shared lightweight schemas."""

from pydantic import BaseModel


class Message(BaseModel):
    """Standard response envelope used for plain text messages."""

    message: str


class ConfigStatus(BaseModel):
    """Whether the identity provider credentials are usable."""

    configured: bool
    session_backend: str
