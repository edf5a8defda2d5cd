"""Sehat Sathi – Application Configuration.

Pydantic Settings, loaded from a .env file or environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Gateway ---
    environment: str = "development"
    log_level: str = "info"
    gateway_host: str = "0.0.0.0"
    gateway_port: int = 3000

    # --- WhatsApp / Meta Cloud API ---
    meta_verify_token: str = "change-me"
    meta_access_token: str = ""
    meta_phone_number_id: str = ""
    meta_app_secret: str = ""  # HMAC-SHA256 webhook signature verification

    # --- Gemini (Generative Language API) ---
    google_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    llm_timeout_seconds: float = 20.0

    # --- Dialogue ---
    default_language: str = "en"
    language_min_length: int = 3
    pseudonym_secret: str = ""  # empty → plain SHA-256 digest
    content_path: str = ""  # empty → config/content.yaml

    # --- Scheduler ---
    scheduler_enabled: bool = True
    scheduler_poll_seconds: float = 30.0
    outbreak_alert_cron: str = "0 * * * *"  # hourly
    vaccination_reminder_cron: str = "0 8 * * *"  # daily 08:00 local time
    advisory_api_url: str = ""  # empty → built-in rotating advisories

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def get_settings() -> Settings:
    """Factory function for settings singleton."""
    return Settings()
