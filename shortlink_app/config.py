from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "Shortlink Analytics"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    server_timeout: float = 10.0  # Per-request timeout in seconds
    server_idle_timeout: int = 60  # Keep-alive idle timeout in seconds

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # Options: "text", "json"

    # Database (primary handles writes, replicas serve reads)
    database_url: str = "sqlite:///./shortlink.db"
    database_replica_urls: List[str] = []
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_recycle: int = 3600
    db_pool_timeout: int = 30

    # Short links
    base_url: Optional[str] = None  # Falls back to the request's base URL
    alias_length: int = Field(8, ge=1, le=64)

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    redis_password: Optional[str] = None
    redis_db: Optional[int] = None  # Overrides the index in redis_url
    cache_ttl: int = 3600  # 0 keeps entries until the cache restarts
    cache_populate_on_miss: bool = True

    # Click recording
    click_queue_size: int = 1000
    click_workers: int = 4
    click_drain_timeout: float = 5.0

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


def get_settings() -> Settings:
    """Build a fresh settings object from the environment."""
    return Settings()
