"""Where a flow sends the browser once it is done."""

LOGIN_PATH = "/auth/login"
DASHBOARD_PATH = "/dashboard"
VERIFY_EMAIL_PATH = "/auth/verify-email"
RESET_PASSWORD_PATH = "/auth/reset-password"


class Navigator:
    """Records redirects for the browser to pick up from the flow snapshot.

    `history` keeps every push so a flow can never redirect twice unnoticed.
    """

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def location(self) -> str | None:
        return self.history[-1] if self.history else None

    def push(self, path: str) -> None:
        self.history.append(path)
