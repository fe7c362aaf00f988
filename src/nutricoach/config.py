"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    supabase_anon_key: str
    app_url: str = "http://localhost:3000"
    session_cookie_name: str = "nutricoach-session"
    default_timezone: str = "UTC"
    login_max_failed_attempts: int = 5
    login_window_minutes: int = 5
    signup_max_attempts: int = 3
    signup_window_minutes: int = 60
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    google_client_id: str | None = None
    github_client_id: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def secure_cookies(self) -> bool:
        """Return True when cookies must only travel over HTTPS."""
        return self.environment == "production"


def enabled_providers(settings: Settings) -> list[str]:
    """Return social providers that have a configured client id."""
    configured = {
        "github": settings.github_client_id,
        "google": settings.google_client_id,
    }
    return [name for name, client_id in configured.items() if client_id]
