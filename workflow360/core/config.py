"""Application configuration powered by pydantic-settings."""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized strongly-typed configuration loaded from `.env`."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PROJECT_NAME: str = "Workflow360 Auth"
    PROJECT_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Identity provider (GoTrue-compatible auth API, e.g. a Supabase project)
    SUPABASE_URL: str = Field("", description="Project URL, e.g. https://xyz.supabase.co")
    SUPABASE_ANON_KEY: str = Field("", description="Public anon key sent as the `apikey` header")
    IDENTITY_TIMEOUT_SECONDS: float | None = None

    # Where session proofs live between requests
    SESSION_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = Field("redis://localhost:6379/0", description="Redis URL for session storage")

    # Public origin of the web app; used to build recovery links
    SITE_URL: str = "http://localhost:3000"

    OTP_LENGTH: int = 6
    RESEND_COOLDOWN_SECONDS: int = 60
    SUCCESS_REDIRECT_SECONDS: float = 2.0
    AUTH_EVENT_TIMEOUT_SECONDS: float = 1.0

    # Extra verification types tried after "signup" fails on the verify-email page.
    # Empty by default; set to ["email"] for projects that send magic-link style codes.
    EMAIL_OTP_FALLBACK_TYPES: List[str] = []

    ALLOWED_ORIGINS: List[str] = [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ]

    @property
    def identity_configured(self) -> bool:
        """False when the provider URL/key are missing or still placeholders."""
        url, key = self.SUPABASE_URL, self.SUPABASE_ANON_KEY
        if not url or not key:
            return False
        return "placeholder" not in url and "placeholder" not in key


@lru_cache
def get_settings() -> Settings:
    """Cache and return a singleton Settings instance to avoid re-parsing env."""
    return Settings()


settings = get_settings()
