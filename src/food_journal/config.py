"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    data_dir: Path = Path("data")
    map_size: int = 64 * 1024 * 1024
    max_readers: int = 126
    write_retries: int = 3
    request_timeout_seconds: float = 10.0
    host: str = "127.0.0.1"
    port: int = 8080
    max_connections: int = 128
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="FJ_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
