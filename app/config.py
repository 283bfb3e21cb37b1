"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Document Store Configuration
    store_base_url: str = Field(
        default="http://localhost:5001/api",
        description="Base URL of the farm management backend exposing the farm collections"
    )
    store_api_key: str = Field(
        default="",
        description="Bearer token for the farm management backend"
    )
    store_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for a single store read"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=1,
        description="Attempts per store read on 5xx responses (1 disables retries)"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Hierarchy Parameters
    default_crop_type: str = Field(
        default="Mixed",
        description="Crop type reported for a section whose first block has none"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Farm Hierarchy Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )
    host: str = Field(
        default="127.0.0.1",
        description="Interface the HTTP server binds to"
    )
    port: int = Field(
        default=8000,
        description="Port the HTTP server listens on"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
