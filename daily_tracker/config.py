"""Application configuration using Pydantic Settings."""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # Application
    app_name: str = Field(default="Daily Tracker", alias="APP_NAME")
    timezone: str = Field(default="Europe/Moscow", alias="TIMEZONE")
    device_name: str = Field(default="Unknown device", alias="DEVICE_NAME")
    device_identifier: str = Field(default="", alias="DEVICE_IDENTIFIER")

    # Database
    database_url: str = Field(default="sqlite:///./daily_tracker.db", alias="DATABASE_URL")

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # Reporting window (local wall-clock hours, end exclusive)
    report_start_hour: int = Field(default=8, alias="REPORT_START_HOUR")
    report_end_hour: int = Field(default=22, alias="REPORT_END_HOUR")
    allow_reevaluation: bool = Field(default=False, alias="ALLOW_REEVALUATION")

    # Telegram
    telegram_token: str = Field(default="", alias="TELEGRAM_TOKEN")
    telegram_chat_id: str = Field(default="", alias="TELEGRAM_CHAT_ID")
    telegram_api_url: str = Field(default="https://api.telegram.org", alias="TELEGRAM_API_URL")
    telegram_timeout: float = Field(default=30.0, alias="TELEGRAM_TIMEOUT")
    external_refresh_minutes: int = Field(default=15, alias="EXTERNAL_REFRESH_MINUTES")

    # Shared document
    shared_document_path: str = Field(default="./shared/reports.txt", alias="SHARED_DOCUMENT_PATH")

    # Observability
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @model_validator(mode="after")
    def check_report_window(self) -> "Settings":
        if not 0 <= self.report_start_hour < self.report_end_hour <= 24:
            raise ValueError(
                f"Invalid report window {self.report_start_hour}-{self.report_end_hour}"
            )
        return self

    @property
    def active_window(self):
        """Get the configured reporting window."""
        from daily_tracker.core.status import ActiveWindow

        return ActiveWindow(self.report_start_hour, self.report_end_hour)

    @property
    def telegram_enabled(self) -> bool:
        """Check if Telegram credentials are configured."""
        return bool(self.telegram_token)

    @property
    def telegram_chat_filter(self) -> Optional[str]:
        """Chat id that external messages must come from, if any."""
        return self.telegram_chat_id.strip() or None


settings = Settings()
