"""Email and password checks run before any remote call."""

import re
from dataclasses import astuple, dataclass

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_SPECIAL = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

MIN_PASSWORD_LENGTH = 8


def is_plausible_email(email: str) -> bool:
    """Lenient check used by the recovery pages: non-blank and contains '@'."""
    return bool(email.strip()) and "@" in email


def is_valid_email(email: str) -> bool:
    """Strict format check used by sign in and sign up."""
    return bool(EMAIL_REGEX.match(email))


@dataclass(frozen=True)
class PasswordStrength:
    has_min_length: bool
    has_uppercase: bool
    has_lowercase: bool
    has_number: bool
    has_special_char: bool

    @property
    def meets_policy(self) -> bool:
        """8+ characters with upper, lower and a digit; special characters optional."""
        return self.has_min_length and self.has_uppercase and self.has_lowercase and self.has_number

    @property
    def score(self) -> int:
        return sum(astuple(self))

    @property
    def label(self) -> str:
        if self.score <= 2:
            return "Weak"
        if self.score <= 3:
            return "Fair"
        if self.score <= 4:
            return "Good"
        return "Strong"


def check_password_strength(password: str) -> PasswordStrength:
    return PasswordStrength(
        has_min_length=len(password) >= MIN_PASSWORD_LENGTH,
        has_uppercase=re.search(r"[A-Z]", password) is not None,
        has_lowercase=re.search(r"[a-z]", password) is not None,
        has_number=re.search(r"[0-9]", password) is not None,
        has_special_char=_SPECIAL.search(password) is not None,
    )


def passwords_match(password: str, confirm: str) -> bool:
    return len(confirm) > 0 and password == confirm
