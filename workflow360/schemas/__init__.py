from workflow360.schemas.auth import AuthOutcomeResponse, LoginRequest, LogoutRequest, SignupRequest
from workflow360.schemas.common import ConfigStatus, Message
from workflow360.schemas.flows import (
    EmailSubmit,
    FlowSnapshot,
    OtpInputEvent,
    OtpKeyEvent,
    OtpSubmit,
    PasswordSubmit,
    ResetStart,
    VerifyEmailStart,
)

__all__ = [
    "AuthOutcomeResponse",
    "ConfigStatus",
    "EmailSubmit",
    "FlowSnapshot",
    "LoginRequest",
    "LogoutRequest",
    "Message",
    "OtpInputEvent",
    "OtpKeyEvent",
    "OtpSubmit",
    "PasswordSubmit",
    "ResetStart",
    "SignupRequest",
    "VerifyEmailStart",
]
