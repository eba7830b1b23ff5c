"""Configuration management for babcia."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gemini Configuration
    gemini_api_key: str = Field(default="", description="Gemini API key used for room analysis")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", description="Model used for analysis and verification")
    gemini_image_model: str = Field(
        default="gemini-2.0-flash-preview-image-generation",
        description="Model used for the stylized dream vision image",
    )

    # Home Assistant Configuration
    home_assistant_url: str = Field(default="", description="Home Assistant base URL (camera bridge)")
    home_assistant_token: str = Field(default="", description="Home Assistant long-lived access token")

    # Persona
    selected_persona: str = Field(default="classic", description="Active persona governing verification strictness")

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Directory for captured and generated images")
    sqlite_db_path: str = Field(default="data/babcia.db", description="SQLite database file for rooms")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="production", description="Deployment environment name")

    # Reminders
    enable_reminders: bool = Field(default=True, description="Deliver scan reminders for rooms without auto-scan")


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    ANALYSIS_TIMEOUT_SECONDS: int = 30
    CAMERA_LIST_TIMEOUT_SECONDS: int = 15
    CAMERA_SNAPSHOT_TIMEOUT_SECONDS: int = 30
    CONNECTION_TEST_TIMEOUT_SECONDS: int = 10

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_UNAUTHORIZED: int = 401
    HTTP_FORBIDDEN: int = 403

    # Image handling
    IMAGE_MAX_DIMENSION: int = 1024
    ANALYSIS_JPEG_QUALITY: int = 80
    CAPTURE_JPEG_QUALITY: int = 85

    # Gamification
    XP_PER_LEVEL: int = 100

    # Scheduler Configuration
    BACKGROUND_WAKE_JOB_ID: str = "autoscan_wake"
    REMINDER_JOB_PREFIX: str = "scan_reminder:"
    BACKGROUND_WAKE_EXPIRY_SECONDS: int = 120  # Host-granted runtime for a background wake
    WAKE_RETRY_DELAY_SECONDS: int = 900  # Earliest wake for an overdue room


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
