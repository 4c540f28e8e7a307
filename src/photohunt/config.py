"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with PHOTOHUNT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="PHOTOHUNT_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./photohunt.db"
    redis_url: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    log_format: str = "json"

    # --- JWT ---
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24
    jwt_issuer: str = "photohunt"

    # --- Accounts ---
    username_min_length: int = 3
    username_max_length: int = 32
    password_min_length: int = 6
    password_max_length: int = 128
    admin_username: str = "admin"
    admin_password: str = "YCCAdmin"

    # --- Booth ---
    booth_timezone: str = "UTC"
    seed_default_words: bool = True

    # --- Classifier ---
    classifier_provider: str = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    classifier_timeout_seconds: float = 30.0
    max_image_bytes: int = 8 * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
