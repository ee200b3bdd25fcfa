"""Sign-up email confirmation by 6-digit code, with resend cooldown."""

import logging
from enum import Enum
from typing import Sequence

from workflow360.core import errors
from workflow360.flows.base import Flow
from workflow360.flows.navigation import DASHBOARD_PATH, Navigator
from workflow360.flows.otp_input import OtpInput
from workflow360.flows.timers import Countdown
from workflow360.identity.client import AuthResult, IdentityProvider

logger = logging.getLogger(__name__)

SIGNUP_TYPE = "signup"
INVALID_VERIFICATION_CODE = "Invalid verification code. Please try again."


class Step(str, Enum):
    CODE = "code"
    SUCCESS = "success"
    INVALID = "invalid"


class VerifyEmailFlow(Flow):
    """Backs `/auth/verify-email?email=...`.

    Codes are checked as `signup` codes. `fallback_types` lists further code
    types to try when that fails; it is empty unless the deployment's provider
    is known to issue codes under another type.
    """

    kind = "verify-email"

    def __init__(
        self,
        identity: IdentityProvider,
        email: str,
        navigator: Navigator | None = None,
        *,
        cooldown_seconds: int = 60,
        redirect_seconds: float = 2.0,
        otp_length: int = 6,
        tick: float = 1.0,
        fallback_types: Sequence[str] = (),
    ):
        super().__init__(identity, navigator, redirect_seconds)
        self.email = (email or "").strip()
        self.otp = OtpInput(otp_length)
        self.cooldown = Countdown(tick)
        self.cooldown_seconds = cooldown_seconds
        self.fallback_types = tuple(fallback_types)
        self.resend_success = False
        if self.email:
            self._step = Step.CODE
        else:
            self._step = Step.INVALID
            self.error = errors.INVALID_VERIFICATION_LINK

    @property
    def step(self) -> Step:
        return self._step

    def input_otp(self, index: int, value: str) -> None:
        self._require("edit the code", Step.CODE)
        if self.loading:
            return
        self.otp.change(index, value)

    def otp_key_down(self, index: int, key: str) -> None:
        self._require("edit the code", Step.CODE)
        if self.loading:
            return
        self.otp.key_down(index, key)

    async def _verify_with_fallbacks(self, code: str) -> AuthResult:
        result = await self.identity.verify_otp(self.email, code, SIGNUP_TYPE)
        for code_type in self.fallback_types:
            if result.ok:
                break
            logger.info("Signup code rejected for flow %s, retrying as %s", self.id, code_type)
            result = await self.identity.verify_otp(self.email, code, code_type)
        return result

    async def verify(self, code: str | None = None) -> None:
        self._require("verify a code", Step.CODE)
        if self.loading:
            return
        if code is not None:
            self.otp.clear()
            self.otp.change(0, code)
        if not self.otp.is_complete:
            self.error = errors.INCOMPLETE_CODE
            return
        self.error = ""

        with self._busy("An unexpected error occurred. Please try again."):
            result = await self._verify_with_fallbacks(self.otp.code)
            if result.error:
                self.error = result.error.message or INVALID_VERIFICATION_CODE
                return
            if not result.user and result.session is None:
                self.error = INVALID_VERIFICATION_CODE
                return
            self._step = Step.SUCCESS
            self._redirect_later(DASHBOARD_PATH)

    async def resend(self) -> None:
        self._require("resend a code", Step.CODE)
        if self.loading or self.cooldown.active:
            return
        self.error = ""
        self.resend_success = False

        with self._busy("Failed to resend verification code"):
            result = await self.identity.resend_signup_code(self.email)
            if result.error:
                self.error = result.error.message or errors.RESEND_FAILED
                return
            self.cooldown.start(self.cooldown_seconds)
            self.resend_success = True
            self.otp.clear()

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
            can_resend=self.step == Step.CODE and not self.cooldown.active and not self.loading,
            resend_success=self.resend_success,
        )
        return data
