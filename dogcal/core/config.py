"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "DogCal"
    debug: bool = False
    app_url: str = "http://localhost:3000"  # Base for deep links in messages

    # CORS
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./dogcal.db"

    # WhatsApp via Twilio
    whatsapp_enabled: bool = False
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_whatsapp_from: str = ""  # e.g. "whatsapp:+14155238886"
    twilio_timeout_seconds: float = 10.0

    # Delay between sends when fanning out to several friends
    notification_spacing_seconds: float = 0.1

    # Scheduling policy
    series_all_or_nothing: bool = False
    approval_overlap_guard: bool = False

    # Background sweep marking finished hangouts as completed
    completion_sweep_enabled: bool = False
    completion_sweep_interval_minutes: int = 15


settings = Settings()
