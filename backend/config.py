"""
Configuration management for the train fare estimator.
"""
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Remote price estimation API
    price_api_url: str = ""
    price_api_timeout: float = 10.0

    # Flat base fare quoted for every route when no API is configured
    default_base_fare: Optional[float] = None

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Frontend URL (for CORS)
    frontend_url: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def is_price_api_configured() -> bool:
    """Check if the remote price API is properly configured."""
    settings = get_settings()
    return bool(
        settings.price_api_url
        and settings.price_api_url.startswith(("http://", "https://"))
    )
