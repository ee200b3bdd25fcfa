"""Three-step password recovery by emailed code: email -> otp -> password -> success."""

import logging
from enum import Enum

from workflow360.core import errors
from workflow360.flows.base import Flow
from workflow360.flows.navigation import LOGIN_PATH, Navigator
from workflow360.flows.otp_input import OtpInput
from workflow360.flows.timers import Countdown
from workflow360.flows.validation import check_password_strength, is_plausible_email, passwords_match
from workflow360.identity.client import IdentityProvider

logger = logging.getLogger(__name__)


class Step(str, Enum):
    EMAIL = "email"
    OTP = "otp"
    PASSWORD = "password"
    SUCCESS = "success"


class ForgotPasswordFlow(Flow):
    """Step controller behind `/auth/forgot-password`.

    Steps only move forward, except `use_different_email` which goes back from
    `otp` to `email`. The `password` step is entered only with a live session,
    and that session is checked again right before the update call.
    """

    kind = "forgot-password"

    def __init__(
        self,
        identity: IdentityProvider,
        navigator: Navigator | None = None,
        *,
        cooldown_seconds: int = 60,
        redirect_seconds: float = 2.0,
        otp_length: int = 6,
        tick: float = 1.0,
    ):
        super().__init__(identity, navigator, redirect_seconds)
        self._step = Step.EMAIL
        self.email = ""
        self.otp = OtpInput(otp_length)
        self.cooldown = Countdown(tick)
        self.cooldown_seconds = cooldown_seconds

    @property
    def step(self) -> Step:
        return self._step

    async def submit_email(self, email: str) -> None:
        self._require("send a code", Step.EMAIL)
        if self.loading:
            return
        self.error = ""
        self.email = email.strip()

        if not is_plausible_email(self.email):
            self.error = errors.INVALID_EMAIL
            return

        with self._busy():
            result = await self.identity.send_recovery_code(self.email)
            if result.error:
                self.error = result.error.message
                return
            self._step = Step.OTP
            self.cooldown.start(self.cooldown_seconds)
            logger.info("Recovery code sent for flow %s", self.id)

    def input_otp(self, index: int, value: str) -> None:
        self._require("edit the code", Step.OTP)
        if self.loading:
            return
        self.otp.change(index, value)

    def otp_key_down(self, index: int, key: str) -> None:
        self._require("edit the code", Step.OTP)
        if self.loading:
            return
        self.otp.key_down(index, key)

    async def submit_otp(self, code: str | None = None) -> None:
        self._require("verify a code", Step.OTP)
        if self.loading:
            return
        self.error = ""
        if code is not None:
            self.otp.clear()
            self.otp.change(0, code)

        if not self.otp.is_complete:
            self.error = errors.INCOMPLETE_CODE
            return

        with self._busy():
            result = await self.identity.verify_recovery_code(self.email, self.otp.code, type="recovery")
            if result.error:
                # The provider's own wording is not shown for this step.
                logger.info("Recovery code rejected for flow %s: %s", self.id, result.error.code)
                self.error = errors.INVALID_CODE
                return
            if result.session is None or not result.session.is_live():
                logger.warning("Recovery code accepted without a session for flow %s", self.id)
                self.error = errors.INVALID_CODE
                return
            self._step = Step.PASSWORD

    async def resend(self) -> None:
        self._require("resend a code", Step.OTP)
        if self.loading or self.cooldown.active:
            return
        self.error = ""

        with self._busy(errors.RESEND_FAILED):
            result = await self.identity.send_recovery_code(self.email)
            if result.error:
                self.error = errors.RESEND_FAILED
                return
            self.otp.clear()
            self.cooldown.start(self.cooldown_seconds)

    def use_different_email(self) -> None:
        self._require("change the email", Step.OTP)
        if self.loading:
            return
        self._step = Step.EMAIL
        self.otp.clear()
        self.error = ""

    async def submit_password(self, password: str, confirm_password: str) -> None:
        self._require("set a password", Step.PASSWORD)
        if self.loading:
            return
        self.error = ""

        if not check_password_strength(password).meets_policy:
            self.error = errors.WEAK_PASSWORD
            return
        if not passwords_match(password, confirm_password):
            self.error = errors.PASSWORDS_MISMATCH
            return

        with self._busy():
            session = await self.identity.get_current_session()
            if session is None:
                self.error = errors.SESSION_EXPIRED
                return

            result = await self.identity.update_password(password)
            if result.error:
                self.error = result.error.message
                return

            await self.identity.sign_out()
            self._step = Step.SUCCESS
            self._redirect_later(LOGIN_PATH)
            logger.info("Password reset completed for flow %s", self.id)

    async def close(self) -> None:
        self.cooldown.cancel()
        await super().close()

    def snapshot(self) -> dict:
        data = super().snapshot()
        data.update(
            email=self.email,
            otp_digits=list(self.otp.digits),
            focus=self.otp.focus,
            resend_cooldown_seconds=self.cooldown.remaining,
            can_resend=self.step == Step.OTP and not self.cooldown.active and not self.loading,
        )
        return data
