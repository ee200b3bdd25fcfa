"""Async client for the hosted identity provider's auth REST API.

Speaks the GoTrue dialect (`/auth/v1/...`) used by Supabase projects. Every
remote rejection comes back as an `AuthError` inside an `AuthResult`; only
transport failures raise (`IdentityUnavailableError`). Sessions obtained here
are written to the injected `SessionStore`, which broadcasts the matching
`AuthEvent` to anyone subscribed through `subscribe`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from workflow360.core.errors import AuthError, IdentityUnavailableError
from workflow360.identity.session import AuthEvent, AuthListener, Session, SessionStore, Subscription

logger = logging.getLogger(__name__)

SESSION_MISSING = AuthError(message="Auth session missing!", code="session_missing", status=401)


@dataclass
class AuthResult:
    """Outcome of one remote call; `error` is None on success."""

    session: Optional[Session] = None
    user: Optional[dict[str, Any]] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _error_from_response(response: httpx.Response) -> AuthError:
    """Normalize the several error shapes the auth API uses into one AuthError."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or (body.get("error") if isinstance(body.get("error"), str) else None)
        or response.text
        or response.reason_phrase
    )
    code = body.get("error_code")
    if code is None and isinstance(body.get("error"), str):
        code = body["error"]
    return AuthError(message=str(message), code=code, status=response.status_code)


class IdentityProvider:
    """Thin async wrapper over the auth endpoints the flows consume."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        store: SessionStore,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.auth_url = f"{base_url.rstrip('/')}/auth/v1"
        self.anon_key = anon_key
        self.store = store
        self._owns_client = http_client is None
        # No explicit timeout unless configured; the provider's defaults apply.
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -----------------------
    # Transport
    # -----------------------
    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        access_token: str | None = None,
    ) -> tuple[dict[str, Any], Optional[AuthError]]:
        try:
            response = await self._client.request(
                method,
                f"{self.auth_url}{path}",
                json=json,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as exc:
            raise IdentityUnavailableError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            error = _error_from_response(response)
            logger.warning("Identity provider rejected %s %s: %s (%s)", method, path, error.message, error.code)
            return {}, error

        if not response.content:
            return {}, None
        try:
            data = response.json()
        except ValueError as exc:
            raise IdentityUnavailableError(f"{method} {path} returned a non-JSON body") from exc
        return (data if isinstance(data, dict) else {}), None

    async def _store_session(self, data: dict[str, Any], event: AuthEvent) -> Optional[Session]:
        session = Session.from_payload(data)
        if session is not None:
            await self.store.set(session, event)
        return session

    # -----------------------
    # Password recovery
    # -----------------------
    async def send_recovery_code(self, email: str, redirect_to: str | None = None) -> AuthResult:
        """Ask the provider to mail a recovery code (or a link, when `redirect_to` is set)."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        _, error = await self._request("POST", "/recover", json={"email": email}, params=params)
        return AuthResult(error=error)

    async def verify_otp(self, email: str, code: str, type: str) -> AuthResult:
        data, error = await self._request("POST", "/verify", json={"email": email, "token": code, "type": type})
        if error:
            return AuthResult(error=error)
        event = AuthEvent.PASSWORD_RECOVERY if type == "recovery" else AuthEvent.SIGNED_IN
        session = await self._store_session(data, event)
        user = data.get("user") or (session.user if session else None)
        return AuthResult(session=session, user=user)

    async def verify_recovery_code(self, email: str, code: str, type: str = "recovery") -> AuthResult:
        return await self.verify_otp(email, code, type)

    async def update_password(self, new_password: str) -> AuthResult:
        """Change the password of the user holding the current session."""
        session = await self.store.get()
        if session is None:
            return AuthResult(error=SESSION_MISSING)
        data, error = await self._request(
            "PUT", "/user", json={"password": new_password}, access_token=session.access_token
        )
        if error:
            return AuthResult(error=error)
        session.user = data or session.user
        await self.store.set(session, AuthEvent.USER_UPDATED)
        return AuthResult(session=session, user=data)

    # -----------------------
    # Sessions
    # -----------------------
    async def get_current_session(self) -> Optional[Session]:
        """Return the stored session, refreshing it first when the access token expired."""
        session = await self.store.get()
        if session is None or session.is_live():
            return session
        refreshed = await self.refresh_session()
        return refreshed.session if refreshed.ok else None

    async def refresh_session(self) -> AuthResult:
        session = await self.store.get()
        if session is None:
            return AuthResult(error=SESSION_MISSING)
        data, error = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
        )
        if error:
            await self.store.clear()
            return AuthResult(error=error)
        refreshed = await self._store_session(data, AuthEvent.TOKEN_REFRESHED)
        return AuthResult(session=refreshed, user=data.get("user"))

    async def set_session(
        self, access_token: str, refresh_token: str, event: AuthEvent = AuthEvent.SIGNED_IN
    ) -> AuthResult:
        """Adopt a token pair received out of band (e.g. from a recovery link)."""
        candidate = Session.from_payload({"access_token": access_token, "refresh_token": refresh_token})
        if candidate is None:
            return AuthResult(error=AuthError(message="Both access and refresh tokens are required"))

        if not candidate.is_live():
            data, error = await self._request(
                "POST",
                "/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": refresh_token},
            )
            if error:
                return AuthResult(error=error)
            session = await self._store_session(data, event)
            return AuthResult(session=session, user=data.get("user"))

        user, error = await self._request("GET", "/user", access_token=access_token)
        if error:
            return AuthResult(error=error)
        candidate.user = user
        await self.store.set(candidate, event)
        return AuthResult(session=candidate, user=user)

    async def exchange_code_for_session(self, code: str, code_verifier: str | None = None) -> AuthResult:
        """Trade a one-time `?code=` from a redirect for a session."""
        data, error = await self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier or ""},
        )
        if error:
            return AuthResult(error=error)
        session = await self._store_session(data, AuthEvent.SIGNED_IN)
        return AuthResult(session=session, user=data.get("user"))

    async def get_user(self) -> AuthResult:
        session = await self.store.get()
        if session is None:
            return AuthResult(error=SESSION_MISSING)
        data, error = await self._request("GET", "/user", access_token=session.access_token)
        return AuthResult(session=session, user=data or None, error=error)

    async def sign_out(self) -> AuthResult:
        """Revoke the session remotely and always drop it locally."""
        session = await self.store.get()
        error = None
        if session is not None:
            _, error = await self._request("POST", "/logout", access_token=session.access_token)
            # 401/404 mean the session is already gone server-side
            if error and error.status in (401, 403, 404):
                error = None
        await self.store.clear()
        return AuthResult(error=error)

    def subscribe(self, listener: AuthListener) -> Subscription:
        return self.store.subscribe(listener)

    # -----------------------
    # Sign up / sign in
    # -----------------------
    async def sign_up(
        self, email: str, password: str, data: dict[str, Any] | None = None, redirect_to: str | None = None
    ) -> AuthResult:
        params = {"redirect_to": redirect_to} if redirect_to else None
        body, error = await self._request(
            "POST", "/signup", json={"email": email, "password": password, "data": data or {}}, params=params
        )
        if error:
            return AuthResult(error=error)
        session = await self._store_session(body, AuthEvent.SIGNED_IN)
        # With confirmations on, the body is the user itself; otherwise a session with a user.
        user = body.get("user") if "user" in body else (body or None)
        return AuthResult(session=session, user=user)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        data, error = await self._request(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        if error:
            return AuthResult(error=error)
        session = await self._store_session(data, AuthEvent.SIGNED_IN)
        return AuthResult(session=session, user=data.get("user"))

    async def resend_signup_code(self, email: str) -> AuthResult:
        _, error = await self._request("POST", "/resend", json={"type": "signup", "email": email})
        return AuthResult(error=error)
