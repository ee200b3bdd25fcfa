"""Link-based password reset: request a link, or set a new password when the link worked."""

import logging
from enum import Enum

from workflow360.core import errors
from workflow360.flows.base import Flow
from workflow360.flows.navigation import DASHBOARD_PATH, RESET_PASSWORD_PATH, Navigator
from workflow360.flows.recovery import RecoverySessionResolver, Resolution
from workflow360.flows.validation import MIN_PASSWORD_LENGTH, check_password_strength, is_plausible_email
from workflow360.identity.client import IdentityProvider

logger = logging.getLogger(__name__)


class Step(str, Enum):
    REQUEST = "request"
    UPDATE = "update"
    SUCCESS = "success"


class ResetPasswordFlow(Flow):
    """Step controller behind `/auth/reset-password`.

    `start()` runs the recovery resolver once; the flow stays in `request`
    unless one of its probes produced a session.
    """

    kind = "reset-password"

    def __init__(
        self,
        identity: IdentityProvider,
        navigator: Navigator | None = None,
        *,
        site_url: str = "",
        redirect_seconds: float = 2.0,
        event_timeout: float = 1.0,
        resolver: RecoverySessionResolver | None = None,
    ):
        super().__init__(identity, navigator, redirect_seconds)
        self._step = Step.REQUEST
        self.site_url = site_url.rstrip("/")
        self.resolver = resolver or RecoverySessionResolver(identity, event_timeout=event_timeout)
        self.resolution: Resolution | None = None
        self.reset_email_sent = False
        self.email = ""

    @property
    def step(self) -> Step:
        return self._step

    @property
    def update_mode(self) -> bool:
        return bool(self.resolution and self.resolution.update_mode)

    async def start(self, url: str) -> Resolution:
        if self.resolution is not None:
            return self.resolution
        self.loading = True
        try:
            self.resolution = await self.resolver.resolve(url)
        finally:
            self.loading = False
        if self.closed:
            return self.resolution
        if self.resolution.update_mode:
            self._step = Step.UPDATE
        elif self.resolution.link_error:
            self.error = self.resolution.link_error
        return self.resolution

    async def request_reset(self, email: str) -> None:
        self._require("request a reset link", Step.REQUEST)
        if self.loading:
            return
        self.error = ""
        self.email = email.strip()

        if not is_plausible_email(self.email):
            self.error = errors.INVALID_EMAIL
            return

        with self._busy():
            result = await self.identity.send_recovery_code(
                self.email, redirect_to=f"{self.site_url}{RESET_PASSWORD_PATH}"
            )
            if result.error:
                self.error = result.error.message
                return
            self.reset_email_sent = True
            self._step = Step.SUCCESS

    async def update_password(self, password: str, confirm_password: str) -> None:
        self._require("set a password", Step.UPDATE)
        if self.loading:
            return
        self.error = ""

        if password != confirm_password:
            self.error = errors.PASSWORDS_MISMATCH
            return
        if len(password) < MIN_PASSWORD_LENGTH:
            self.error = errors.PASSWORD_TOO_SHORT
            return
        if not check_password_strength(password).meets_policy:
            self.error = errors.WEAK_PASSWORD
            return

        with self._busy():
            if await self.identity.get_current_session() is None:
                self.error = errors.SESSION_EXPIRED
                return
            result = await self.identity.update_password(password)
            if result.error:
                self.error = result.error.message
                return
            self._step = Step.SUCCESS
            self._redirect_later(DASHBOARD_PATH)

    async def close(self) -> None:
        self.resolver.close()
        await super().close()

    def snapshot(self) -> dict:
        data = super().snapshot()
        data.update(
            email=self.email,
            update_mode=self.update_mode,
            reset_email_sent=self.reset_email_sent,
            strategy=self.resolution.strategy if self.resolution else None,
        )
        return data
