"""Operator client settings loaded from environment / .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CAGETRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = "http://localhost:8000"
    api_token: str = ""
    tenant_header: str = "X-Company-Id"
    timeout: float = 10.0

    # Checked locally before minting; keep in line with the server settings
    min_blank_batch: int = 1
    max_blank_batch: int = 20

    # Per-operator-session storage; unset keeps the selection in memory only
    session_file: Path | None = None


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()
