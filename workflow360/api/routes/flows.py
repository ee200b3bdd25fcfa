"""HTTP route handlers that host the recovery and verification flows.

A page creates its flow once, then posts each user action to it and renders
the returned snapshot. Deleting the flow is the page's teardown.
"""

from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, status

from workflow360.api import deps
from workflow360.core.config import Settings, get_settings
from workflow360.core.errors import FlowNotFoundError, FlowStateError
from workflow360.flows.base import Flow
from workflow360.flows.forgot_password import ForgotPasswordFlow
from workflow360.flows.registry import FlowRegistry
from workflow360.flows.reset_password import ResetPasswordFlow
from workflow360.flows.verify_email import VerifyEmailFlow
from workflow360.schemas.common import Message
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

router = APIRouter(prefix="/flows", tags=["flows"])


@contextmanager
def _flow_errors() -> Iterator[None]:
    """Translate flow-level exceptions into HTTP errors."""
    try:
        yield
    except FlowNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except FlowStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


def _lookup(registry: FlowRegistry, flow_id: str, kind: str) -> Flow:
    with _flow_errors():
        return registry.get(flow_id, kind)


def _snapshot(flow: Flow) -> FlowSnapshot:
    return FlowSnapshot(**flow.snapshot())


# -----------------------
# Forgot password (code based)
# -----------------------
@router.post("/forgot-password", response_model=FlowSnapshot, status_code=status.HTTP_201_CREATED)
async def start_forgot_password(
    settings: Settings = Depends(get_settings),
    identity_factory: deps.IdentityFactory = Depends(deps.get_identity_factory),
    registry: FlowRegistry = Depends(deps.get_registry),
) -> FlowSnapshot:
    """Open the email -> code -> new password wizard."""

    flow = ForgotPasswordFlow(
        identity_factory(),
        cooldown_seconds=settings.RESEND_COOLDOWN_SECONDS,
        redirect_seconds=settings.SUCCESS_REDIRECT_SECONDS,
        otp_length=settings.OTP_LENGTH,
    )
    await registry.add(flow)
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/email", response_model=FlowSnapshot)
async def forgot_password_email(
    flow_id: str, payload: EmailSubmit, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    """Send a recovery code to the submitted address."""

    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        await flow.submit_email(payload.email)
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/otp/input", response_model=FlowSnapshot)
async def forgot_password_otp_input(
    flow_id: str, payload: OtpInputEvent, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        flow.input_otp(payload.index, payload.value)
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/otp/keydown", response_model=FlowSnapshot)
async def forgot_password_otp_keydown(
    flow_id: str, payload: OtpKeyEvent, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        flow.otp_key_down(payload.index, payload.key)
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/otp", response_model=FlowSnapshot)
async def forgot_password_verify(
    flow_id: str, payload: OtpSubmit, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    """Verify the recovery code; on success the flow moves to the password step."""

    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        await flow.submit_otp(payload.code)
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/resend", response_model=FlowSnapshot)
async def forgot_password_resend(flow_id: str, registry: FlowRegistry = Depends(deps.get_registry)) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        await flow.resend()
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/different-email", response_model=FlowSnapshot)
async def forgot_password_different_email(
    flow_id: str, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        flow.use_different_email()
    return _snapshot(flow)


@router.post("/forgot-password/{flow_id}/password", response_model=FlowSnapshot)
async def forgot_password_update(
    flow_id: str, payload: PasswordSubmit, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ForgotPasswordFlow.kind)
    with _flow_errors():
        await flow.submit_password(payload.password, payload.confirm_password)
    return _snapshot(flow)


# -----------------------
# Reset password (link based)
# -----------------------
@router.post("/reset-password", response_model=FlowSnapshot, status_code=status.HTTP_201_CREATED)
async def start_reset_password(
    payload: ResetStart,
    settings: Settings = Depends(get_settings),
    identity_factory: deps.IdentityFactory = Depends(deps.get_identity_factory),
    registry: FlowRegistry = Depends(deps.get_registry),
) -> FlowSnapshot:
    """Open the reset page; the landing URL decides between request and update mode."""

    flow = ResetPasswordFlow(
        identity_factory(),
        site_url=settings.SITE_URL,
        redirect_seconds=settings.SUCCESS_REDIRECT_SECONDS,
        event_timeout=settings.AUTH_EVENT_TIMEOUT_SECONDS,
    )
    await registry.add(flow)
    await flow.start(payload.url)
    return _snapshot(flow)


@router.post("/reset-password/{flow_id}/request", response_model=FlowSnapshot)
async def reset_password_request(
    flow_id: str, payload: EmailSubmit, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ResetPasswordFlow.kind)
    with _flow_errors():
        await flow.request_reset(payload.email)
    return _snapshot(flow)


@router.post("/reset-password/{flow_id}/password", response_model=FlowSnapshot)
async def reset_password_update(
    flow_id: str, payload: PasswordSubmit, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, ResetPasswordFlow.kind)
    with _flow_errors():
        await flow.update_password(payload.password, payload.confirm_password)
    return _snapshot(flow)


# -----------------------
# Verify email (signup code)
# -----------------------
@router.post("/verify-email", response_model=FlowSnapshot, status_code=status.HTTP_201_CREATED)
async def start_verify_email(
    payload: VerifyEmailStart,
    settings: Settings = Depends(get_settings),
    identity_factory: deps.IdentityFactory = Depends(deps.get_identity_factory),
    registry: FlowRegistry = Depends(deps.get_registry),
) -> FlowSnapshot:
    flow = VerifyEmailFlow(
        identity_factory(),
        payload.email,
        cooldown_seconds=settings.RESEND_COOLDOWN_SECONDS,
        redirect_seconds=settings.SUCCESS_REDIRECT_SECONDS,
        otp_length=settings.OTP_LENGTH,
        fallback_types=settings.EMAIL_OTP_FALLBACK_TYPES,
    )
    await registry.add(flow)
    return _snapshot(flow)


@router.post("/verify-email/{flow_id}/otp/input", response_model=FlowSnapshot)
async def verify_email_otp_input(
    flow_id: str, payload: OtpInputEvent, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, VerifyEmailFlow.kind)
    with _flow_errors():
        flow.input_otp(payload.index, payload.value)
    return _snapshot(flow)


@router.post("/verify-email/{flow_id}/otp/keydown", response_model=FlowSnapshot)
async def verify_email_otp_keydown(
    flow_id: str, payload: OtpKeyEvent, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, VerifyEmailFlow.kind)
    with _flow_errors():
        flow.otp_key_down(payload.index, payload.key)
    return _snapshot(flow)


@router.post("/verify-email/{flow_id}/otp", response_model=FlowSnapshot)
async def verify_email_verify(
    flow_id: str, payload: OtpSubmit, registry: FlowRegistry = Depends(deps.get_registry)
) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, VerifyEmailFlow.kind)
    with _flow_errors():
        await flow.verify(payload.code)
    return _snapshot(flow)


@router.post("/verify-email/{flow_id}/resend", response_model=FlowSnapshot)
async def verify_email_resend(flow_id: str, registry: FlowRegistry = Depends(deps.get_registry)) -> FlowSnapshot:
    flow = _lookup(registry, flow_id, VerifyEmailFlow.kind)
    with _flow_errors():
        await flow.resend()
    return _snapshot(flow)


# -----------------------
# Any flow
# -----------------------
@router.get("/{flow_id}", response_model=FlowSnapshot)
async def get_flow(flow_id: str, registry: FlowRegistry = Depends(deps.get_registry)) -> FlowSnapshot:
    """Poll a flow; used for the cooldown display and the pending redirect."""

    with _flow_errors():
        flow = registry.get(flow_id)
    return _snapshot(flow)


@router.delete("/{flow_id}", response_model=Message)
async def delete_flow(flow_id: str, registry: FlowRegistry = Depends(deps.get_registry)) -> Message:
    """Tear the flow down: timers cancelled, subscriptions and session dropped."""

    with _flow_errors():
        await registry.discard(flow_id)
    return Message(message="Flow closed.")
