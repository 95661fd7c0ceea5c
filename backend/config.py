"""
CipherChat Backend Configuration

Manages all configuration settings with environment variable support.
Security-critical settings are validated and never logged.
"""

import secrets
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


MIN_RSA_KEY_SIZE = 2048


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "CipherChat Backend"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 5000

    # Identity tokens
    secret_key: str = Field(default_factory=lambda: secrets.token_hex(32))
    token_algorithm: str = "HS256"
    token_expire_minutes: int = 1440

    # Storage
    data_dir: Path = Field(default_factory=lambda: Path("./data"))
    storage_backend: Literal["sqlite", "memory"] = "sqlite"

    # Keys
    rsa_key_size: int = MIN_RSA_KEY_SIZE
    key_encryption_secret: str = Field(default_factory=lambda: secrets.token_hex(32))

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("data_dir", mode="after")
    @classmethod
    def ensure_data_dir_exists(cls, v: Path) -> Path:
        """Create data directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @field_validator("rsa_key_size")
    @classmethod
    def validate_rsa_key_size(cls, v: int) -> int:
        """Reject key sizes weaker than RSA-2048."""
        if v < MIN_RSA_KEY_SIZE:
            raise ValueError(f"rsa_key_size must be at least {MIN_RSA_KEY_SIZE}")
        return v

    @property
    def db_path(self) -> Path:
        """Path to the SQLite database."""
        return self.data_dir / "cipherchat.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
