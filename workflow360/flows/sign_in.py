"""Single-request auth actions: sign in, sign up, sign out."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from workflow360.core import errors
from workflow360.core.errors import IdentityUnavailableError
from workflow360.flows.navigation import DASHBOARD_PATH, LOGIN_PATH, VERIFY_EMAIL_PATH
from workflow360.flows.validation import check_password_strength, is_valid_email
from workflow360.identity.client import IdentityProvider
from workflow360.identity.session import Session

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred"


@dataclass
class AuthOutcome:
    """What the page should do next: show `error`, or go to `redirect_to`."""

    redirect_to: Optional[str] = None
    error: Optional[str] = None
    session: Optional[Session] = None


def verify_email_path(email: str) -> str:
    return f"{VERIFY_EMAIL_PATH}?{urlencode({'email': email})}"


async def sign_in(
    identity: IdentityProvider, email: str, password: str, redirect_to: str = DASHBOARD_PATH
) -> AuthOutcome:
    """Password sign-in; unconfirmed accounts are sent to the code entry page."""
    email = email.strip()
    if not is_valid_email(email):
        return AuthOutcome(error=errors.INVALID_EMAIL)
    if not password:
        return AuthOutcome(error=errors.PASSWORD_REQUIRED)

    try:
        result = await identity.sign_in_with_password(email, password)
        if result.error:
            if result.error.is_email_not_confirmed:
                return AuthOutcome(redirect_to=verify_email_path(email))
            return AuthOutcome(error=result.error.message)

        user = result.user or (result.session.user if result.session else {})
        if not user.get("email_confirmed_at"):
            await identity.sign_out()
            return AuthOutcome(redirect_to=verify_email_path(email))
    except IdentityUnavailableError:
        logger.exception("Sign in failed to reach the identity provider")
        return AuthOutcome(error=UNEXPECTED_ERROR)

    return AuthOutcome(redirect_to=redirect_to or DASHBOARD_PATH, session=result.session)


async def sign_up(
    identity: IdentityProvider, full_name: str, email: str, password: str, confirm_password: str
) -> AuthOutcome:
    """Create an account; the provider mails a signup code and the user lands on verify-email."""
    full_name = full_name.strip()
    email = email.strip()
    if not full_name:
        return AuthOutcome(error=errors.NAME_REQUIRED)
    if len(full_name) < 2:
        return AuthOutcome(error=errors.NAME_TOO_SHORT)
    if not is_valid_email(email):
        return AuthOutcome(error=errors.INVALID_EMAIL)
    if check_password_strength(password).score < 3:
        return AuthOutcome(error=errors.SIGNUP_PASSWORD_TOO_WEAK)
    if password != confirm_password:
        return AuthOutcome(error=errors.PASSWORDS_MISMATCH)

    try:
        result = await identity.sign_up(email, password, data={"full_name": full_name})
    except IdentityUnavailableError:
        logger.exception("Sign up failed to reach the identity provider")
        return AuthOutcome(error=UNEXPECTED_ERROR)

    if result.error:
        return AuthOutcome(error=result.error.message)
    if not result.user:
        return AuthOutcome(error="Failed to create user account")
    return AuthOutcome(redirect_to=verify_email_path(email), session=result.session)


async def sign_out(identity: IdentityProvider) -> AuthOutcome:
    try:
        result = await identity.sign_out()
    except IdentityUnavailableError:
        logger.exception("Sign out failed to reach the identity provider")
        return AuthOutcome(redirect_to=LOGIN_PATH)
    return AuthOutcome(redirect_to=LOGIN_PATH, error=result.error.message if result.error else None)
