"""Pydantic schemas for sign in, sign up and sign out."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Payload for login attempts; `redirect` is where to go afterwards."""

    email: str
    password: str
    redirect: str | None = None


class SignupRequest(BaseModel):
    """Payload for registration requests."""

    full_name: str
    email: str
    password: str
    confirm_password: str


class LogoutRequest(BaseModel):
    access_token: str
    refresh_token: str = ""


class AuthOutcomeResponse(BaseModel):
    """Either an inline error or a redirect, plus the session when one was issued."""

    redirect_to: str | None = None
    error: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
    token_type: str = "bearer"
