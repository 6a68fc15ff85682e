from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """PocketRot application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "PocketRot"
    DEBUG: bool = False
    USE_MOCK_API: bool = False
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # --- Database (MySQL 8.0+) ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "pocketrot"

    @property
    def DATABASE_URL(self) -> str:
        """Async MySQL connection string using asyncmy driver."""
        encoded_password = quote_plus(self.DB_PASSWORD)
        return (
            f"mysql+asyncmy://{self.DB_USER}:{encoded_password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            "?charset=utf8mb4"
        )

    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Blocking pymysql connection string for health checks."""
        encoded_password = quote_plus(self.DB_PASSWORD)
        return (
            f"mysql+pymysql://{self.DB_USER}:{encoded_password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            "?charset=utf8mb4"
        )

    # --- Redis ---
    REDIS_URL: str = "redis://localhost:6379/0"
    SUBJECT_LOCK_TTL: int = 900

    # --- Artifact storage ---
    ARTIFACT_BACKEND: str = "local"  # local | gcs
    MEDIA_VOLUME: str = "media_volume"
    MEDIA_BASE_URL: str = "http://localhost:8000/media"
    GCS_BUCKET: str = ""
    GCP_CREDENTIALS: str = ""  # service-account JSON, empty = default credentials
    PLACEHOLDER_IMAGE_BASE: str = "https://placehold.co/1024x576/1a1a2e/e94560"

    # --- Provider strategy ---
    IMAGE_PROVIDER: str = "gemini"  # gemini | mock
    VIDEO_PROVIDER: str = "veo"     # veo | sora | mock

    # --- Google Gemini / Veo ---
    GEMINI_API_KEY: str = ""
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TEXT_MODEL: str = "gemini-2.5-flash"
    GEMINI_IMAGE_MODEL: str = "gemini-2.5-flash-image"
    VEO_MODEL: str = "veo-3.1-fast-generate-preview"
    VEO_DURATION_SECONDS: int = 8

    # --- Sora (task API) ---
    SORA_API_KEY: str = ""
    SORA_BASE_URL: str = ""
    SORA_MODEL: str = "sora-2"

    # --- Polling / timeouts ---
    PROVIDER_TIMEOUT: float = 120.0
    POLL_INTERVAL_SECONDS: float = 5.0
    POLL_MAX_ATTEMPTS: int = 60
    LLM_MAX_RETRIES: int = 3

    # --- Operator auth ---
    OPERATOR_EMAIL: str = ""
    OPERATOR_PASSWORD: str = ""
    OPERATOR_TOKEN: str = ""
    CRON_SECRET: str = ""

    # --- YouTube ---
    YOUTUBE_CLIENT_ID: str = ""
    YOUTUBE_CLIENT_SECRET: str = ""
    YOUTUBE_REDIRECT_URI: str = "http://localhost:8000/api/youtube/auth"
    YOUTUBE_REFRESH_TOKEN: str = ""
    YOUTUBE_CATEGORY_ID: str = "24"  # Entertainment
    YOUTUBE_PRIVACY_STATUS: str = "private"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
