"""Application configuration using Pydantic Settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str
    QUERY_TIMEOUT_MS: int = 10000  # Per-statement bound, 0 disables

    # HTTP
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Auth service (issues and verifies bearer tokens)
    AUTH_SERVICE_URL: str = "http://localhost:5001/api/auth"
    AUTH_TIMEOUT_SECONDS: float = 5.0

    # Log queries
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 1000
    EXPORT_MAX_ROWS: int = 50000

    # Metrics
    TOP_INTERFACES_LIMIT: int = 10

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
