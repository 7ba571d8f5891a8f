"""
Core configuration module for Kanban Sync.
Uses pydantic-settings for environment variable management with full validation.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────────
    APP_NAME: str = "Kanban Sync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # ── CORS ──────────────────────────────────────────────────────────────────
    ALLOWED_ORIGINS: list[str] = ["*"]

    # ── Snapshot ──────────────────────────────────────────────────────────────
    SNAPSHOT_PATH: Path = Path("data/tasks.json")
    SEED_EXAMPLE_TASKS: bool = True

    # ── File Upload ───────────────────────────────────────────────────────────
    UPLOAD_DIR: Path = Path("uploads")
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_FILE_SIZE_MB: int = 5
    ALLOWED_MIME_TYPES: list[str] = ["image/*", "application/pdf"]

    # ── Rate Limiting ─────────────────────────────────────────────────────────
    RATE_LIMIT_UPLOAD: str = "30/minute"

    # ── WebSocket ─────────────────────────────────────────────────────────────
    WS_HEARTBEAT_INTERVAL: float = 30.0
    WS_SEND_QUEUE_SIZE: int = 100

    @field_validator("ALLOWED_ORIGINS", "ALLOWED_MIME_TYPES", mode="before")
    @classmethod
    def parse_list(cls, v: Any) -> list[str]:
        """Accept JSON array string or Python list."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except (json.JSONDecodeError, ValueError):
                pass
            # Comma-separated fallback
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("UPLOAD_URL_PREFIX", "API_PREFIX")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        if self.MAX_FILE_SIZE_MB <= 0:
            raise ValueError("MAX_FILE_SIZE_MB must be positive")
        if self.WS_SEND_QUEUE_SIZE <= 0:
            raise ValueError("WS_SEND_QUEUE_SIZE must be positive")
        return self

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024


settings = Settings()
