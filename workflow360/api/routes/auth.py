"""HTTP route handlers for sign in, sign up and sign out."""

from fastapi import APIRouter, Depends

from workflow360.api import deps
from workflow360.flows import sign_in as actions
from workflow360.flows.navigation import DASHBOARD_PATH
from workflow360.identity.session import AuthEvent, Session
from workflow360.schemas.auth import AuthOutcomeResponse, LoginRequest, LogoutRequest, SignupRequest

router = APIRouter(prefix="/auth", tags=["authentication"])


def _response(outcome: actions.AuthOutcome) -> AuthOutcomeResponse:
    session = outcome.session
    return AuthOutcomeResponse(
        redirect_to=outcome.redirect_to,
        error=outcome.error,
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
        expires_at=session.expires_at if session else None,
    )


@router.post("/login", response_model=AuthOutcomeResponse)
async def login(
    payload: LoginRequest,
    identity_factory: deps.IdentityFactory = Depends(deps.get_identity_factory),
) -> AuthOutcomeResponse:
    """Authenticate with email and password, or point an unconfirmed user at verify-email."""

    identity = identity_factory()
    try:
        outcome = await actions.sign_in(
            identity, payload.email, payload.password, redirect_to=payload.redirect or DASHBOARD_PATH
        )
    finally:
        await identity.store.close()
        await identity.aclose()
    return _response(outcome)


@router.post("/signup", response_model=AuthOutcomeResponse)
async def signup(
    payload: SignupRequest,
    identity_factory: deps.IdentityFactory = Depends(deps.get_identity_factory),
) -> AuthOutcomeResponse:
    """Create an account; the provider mails a signup code."""

    identity = identity_factory()
    try:
        outcome = await actions.sign_up(
            identity, payload.full_name, payload.email, payload.password, payload.confirm_password
        )
    finally:
        await identity.store.close()
        await identity.aclose()
    return _response(outcome)


@router.post("/logout", response_model=AuthOutcomeResponse)
async def logout(
    payload: LogoutRequest,
    identity_factory: deps.IdentityFactory = Depends(deps.get_identity_factory),
) -> AuthOutcomeResponse:
    """Revoke the given session and send the browser back to the login page."""

    identity = identity_factory()
    try:
        await identity.store.set(
            Session(access_token=payload.access_token, refresh_token=payload.refresh_token), AuthEvent.SIGNED_IN
        )
        outcome = await actions.sign_out(identity)
    finally:
        await identity.store.close()
        await identity.aclose()
    return _response(outcome)
