"""Error types and the user-facing strings the auth flows surface."""

from dataclasses import dataclass


# Validation (local, before any remote call)
INVALID_EMAIL = "Please enter a valid email address"
INCOMPLETE_CODE = "Please enter the complete 6-digit code"
WEAK_PASSWORD = "Please meet all password requirements"
PASSWORD_TOO_SHORT = "Password must be at least 8 characters long"
PASSWORDS_MISMATCH = "Passwords do not match"
PASSWORD_REQUIRED = "Please enter your password"
NAME_REQUIRED = "Please enter your full name"
NAME_TOO_SHORT = "Name must be at least 2 characters long"
SIGNUP_PASSWORD_TOO_WEAK = "Password is too weak. Please meet at least 3 of the requirements below."

# Remote rejection
INVALID_CODE = "Invalid or expired code. Please try again."
SESSION_EXPIRED = "Session expired. Please restart the password reset process."
RESEND_FAILED = "Failed to resend code. Please try again."
INVALID_VERIFICATION_LINK = "This verification link is invalid or has expired."

# Unexpected
SOMETHING_WENT_WRONG = "Something went wrong. Please try again."

EMAIL_NOT_CONFIRMED_CODE = "email_not_confirmed"


@dataclass(frozen=True)
class AuthError:
    """A rejection reported by the identity provider.

    Returned as a value (never raised) so callers can decide whether to show
    the provider's message or a generic one.
    """

    message: str
    code: str | None = None
    status: int | None = None

    @property
    def is_email_not_confirmed(self) -> bool:
        return self.code == EMAIL_NOT_CONFIRMED_CODE or "email not confirmed" in self.message.lower()


class Workflow360Error(Exception):
    """Base class for errors raised inside the service."""


class IdentityNotConfiguredError(Workflow360Error):
    """Provider URL/key are missing, so no flow can talk to it."""


class IdentityUnavailableError(Workflow360Error):
    """The provider could not be reached or answered with garbage."""


class FlowNotFoundError(Workflow360Error):
    """No live flow exists for the given id (expired, finished, or never created)."""

    def __init__(self, flow_id: str):
        super().__init__(f"Flow {flow_id} not found")
        self.flow_id = flow_id


class FlowStateError(Workflow360Error):
    """An action was sent to a flow that is not in a step accepting it."""

    def __init__(self, action: str, step: str):
        super().__init__(f"Cannot {action} while in step '{step}'")
        self.action = action
        self.step = step
