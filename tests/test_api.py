"""HTTP-level tests for the flow and auth endpoints."""

import time

import pytest
from fastapi.testclient import TestClient

from workflow360.api import deps
from workflow360.core import errors
from workflow360.core.config import Settings, get_settings
from workflow360.main import app


def configured_settings(**overrides) -> Settings:
    values = dict(
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_ANON_KEY="anon-key",
        SUCCESS_REDIRECT_SECONDS=0.05,
        AUTH_EVENT_TIMEOUT_SECONDS=0.05,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client(identity):
    app.dependency_overrides[get_settings] = lambda: configured_settings()
    app.dependency_overrides[deps.get_identity_factory] = lambda: (lambda: identity)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_healthcheck(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Workflow360 Auth is running!"}


def test_config_status(client):
    response = client.get("/config/status")

    assert response.json() == {"configured": True, "session_backend": "memory"}


def test_unconfigured_provider_returns_503():
    app.dependency_overrides[get_settings] = lambda: Settings(SUPABASE_URL="", SUPABASE_ANON_KEY="")
    try:
        with TestClient(app) as test_client:
            response = test_client.post("/flows/forgot-password")
            status = test_client.get("/config/status").json()
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert status["configured"] is False


def test_placeholder_credentials_are_unconfigured():
    assert not Settings(SUPABASE_URL="https://placeholder.supabase.co", SUPABASE_ANON_KEY="key").identity_configured


class TestForgotPassword:
    def test_full_wizard(self, client, identity):
        created = client.post("/flows/forgot-password")
        assert created.status_code == 201
        flow_id = created.json()["id"]
        assert created.json()["step"] == "email"

        snapshot = client.post(f"/flows/forgot-password/{flow_id}/email", json={"email": "user@example.com"}).json()
        assert snapshot["step"] == "otp"
        assert snapshot["resend_cooldown_seconds"] == 60
        assert snapshot["can_resend"] is False

        snapshot = client.post(
            f"/flows/forgot-password/{flow_id}/otp/input", json={"index": 0, "value": "123456"}
        ).json()
        assert snapshot["otp_digits"] == list("123456")
        assert snapshot["focus"] == 5

        snapshot = client.post(f"/flows/forgot-password/{flow_id}/otp", json={}).json()
        assert snapshot["step"] == "password"

        snapshot = client.post(
            f"/flows/forgot-password/{flow_id}/password",
            json={"password": "Abcdefg1", "confirm_password": "Abcdefg1"},
        ).json()
        assert snapshot["step"] == "success"
        assert snapshot["redirect_to"] is None

        time.sleep(0.2)
        assert client.get(f"/flows/{flow_id}").json()["redirect_to"] == "/auth/login"

    def test_incomplete_code_message(self, client, identity):
        flow_id = client.post("/flows/forgot-password").json()["id"]
        client.post(f"/flows/forgot-password/{flow_id}/email", json={"email": "user@example.com"})

        snapshot = client.post(f"/flows/forgot-password/{flow_id}/otp", json={"code": "123"}).json()

        assert snapshot["error"] == errors.INCOMPLETE_CODE
        identity.verify_recovery_code.assert_not_awaited()

    def test_wrong_step_is_conflict(self, client):
        flow_id = client.post("/flows/forgot-password").json()["id"]

        response = client.post(f"/flows/forgot-password/{flow_id}/resend")

        assert response.status_code == 409

    def test_cell_out_of_range(self, client):
        flow_id = client.post("/flows/forgot-password").json()["id"]
        client.post(f"/flows/forgot-password/{flow_id}/email", json={"email": "user@example.com"})

        response = client.post(f"/flows/forgot-password/{flow_id}/otp/input", json={"index": 9, "value": "1"})

        assert response.status_code == 422

    def test_unknown_flow(self, client):
        assert client.post("/flows/forgot-password/nope/resend").status_code == 404
        assert client.get("/flows/nope").status_code == 404

    def test_flow_kind_must_match_route(self, client):
        flow_id = client.post("/flows/forgot-password").json()["id"]

        response = client.post(f"/flows/verify-email/{flow_id}/resend")

        assert response.status_code == 404

    def test_delete_closes_flow(self, client, identity):
        flow_id = client.post("/flows/forgot-password").json()["id"]

        response = client.delete(f"/flows/{flow_id}")

        assert response.json() == {"message": "Flow closed."}
        assert client.get(f"/flows/{flow_id}").status_code == 404
        identity.aclose.assert_awaited()


class TestResetPassword:
    def test_recovery_link_opens_update_mode(self, client, identity):
        response = client.post(
            "/flows/reset-password",
            json={"url": "http://localhost:3000/auth/reset-password#access_token=a&refresh_token=r&type=recovery"},
        )

        assert response.status_code == 201
        assert response.json()["update_mode"] is True
        assert response.json()["step"] == "update"
        assert response.json()["strategy"] == "fragment-token"

    def test_request_link(self, client, identity):
        flow_id = client.post("/flows/reset-password", json={}).json()["id"]

        snapshot = client.post(
            f"/flows/reset-password/{flow_id}/request", json={"email": "user@example.com"}
        ).json()

        assert snapshot["reset_email_sent"] is True
        identity.send_recovery_code.assert_awaited_once_with(
            "user@example.com", redirect_to="http://localhost:3000/auth/reset-password"
        )


class TestVerifyEmail:
    def test_missing_email(self, client):
        snapshot = client.post("/flows/verify-email", json={}).json()

        assert snapshot["step"] == "invalid"
        assert snapshot["error"] == errors.INVALID_VERIFICATION_LINK

    def test_verify_code(self, client, identity):
        flow_id = client.post("/flows/verify-email", json={"email": "user@example.com"}).json()["id"]

        snapshot = client.post(f"/flows/verify-email/{flow_id}/otp", json={"code": "123456"}).json()

        assert snapshot["step"] == "success"
        identity.verify_otp.assert_awaited_once_with("user@example.com", "123456", "signup")


class TestAuth:
    def test_login(self, client, identity):
        response = client.post("/auth/login", json={"email": "user@example.com", "password": "Abcdefg1"})

        body = response.json()
        assert body["redirect_to"] == "/dashboard"
        assert body["access_token"] == "access-token"
        identity.aclose.assert_awaited_once()

    def test_signup(self, client):
        response = client.post(
            "/auth/signup",
            json={
                "full_name": "Ada Lovelace",
                "email": "ada@example.com",
                "password": "Abcdefg1",
                "confirm_password": "Abcdefg1",
            },
        )

        assert response.json()["redirect_to"] == "/auth/verify-email?email=ada%40example.com"

    def test_logout(self, client, identity):
        response = client.post("/auth/logout", json={"access_token": "a", "refresh_token": "r"})

        assert response.json()["redirect_to"] == "/auth/login"
        identity.sign_out.assert_awaited_once()
