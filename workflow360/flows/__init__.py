from workflow360.flows.forgot_password import ForgotPasswordFlow
from workflow360.flows.otp_input import OtpInput
from workflow360.flows.recovery import RecoverySessionResolver
from workflow360.flows.registry import FlowRegistry
from workflow360.flows.reset_password import ResetPasswordFlow
from workflow360.flows.verify_email import VerifyEmailFlow

__all__ = [
    "FlowRegistry",
    "ForgotPasswordFlow",
    "OtpInput",
    "RecoverySessionResolver",
    "ResetPasswordFlow",
    "VerifyEmailFlow",
]
