"""Pydantic schemas for flow events and flow snapshots."""

from typing import Literal

from pydantic import BaseModel, Field


class EmailSubmit(BaseModel):
    """Email typed into the first step; validated by the flow, not here."""

    email: str


class OtpInputEvent(BaseModel):
    """One input event on a code cell: a keystroke or a paste."""

    index: int = Field(..., ge=0)
    value: str = Field("", max_length=64)


class OtpKeyEvent(BaseModel):
    """A key press on a code cell (only Backspace has an effect)."""

    index: int = Field(..., ge=0)
    key: str


class OtpSubmit(BaseModel):
    """Submit the code; `code` replaces the cells when given."""

    code: str | None = None


class PasswordSubmit(BaseModel):
    password: str
    confirm_password: str


class ResetStart(BaseModel):
    """Full landing URL of the reset page, fragment included."""

    url: str = ""


class VerifyEmailStart(BaseModel):
    email: str = ""


class FlowSnapshot(BaseModel):
    """Everything the page needs to render the current step."""

    id: str
    kind: Literal["forgot-password", "reset-password", "verify-email"]
    step: str
    error: str | None = None
    loading: bool = False
    redirect_to: str | None = None

    email: str | None = None
    otp_digits: list[str] | None = None
    focus: int | None = None
    resend_cooldown_seconds: int | None = None
    can_resend: bool | None = None
    resend_success: bool | None = None

    update_mode: bool | None = None
    reset_email_sent: bool | None = None
    strategy: str | None = None
