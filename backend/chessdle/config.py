"""Configuration settings for the Chessdle backend."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Puzzle source
    lichess_daily_puzzle_url: str = "https://lichess.org/api/puzzle/daily"
    cors_proxy_url: str = ""  # e.g. "https://api.allorigins.win/raw?url="
    request_timeout_seconds: float = 10.0

    # Game rules
    max_attempts: int = 5

    # Session persistence
    storage_key_prefix: str = "chessdle_progress_"
    storage_dir: str = ""  # Empty keeps progress in memory only

    # Telemetry (JSON lines), disabled when empty
    telemetry_log_path: str = ""

    # Server settings
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def get_storage_dir() -> Path | None:
    """Resolve the directory used for saved progress, if any."""
    settings = get_settings()
    if not settings.storage_dir:
        return None
    return Path(settings.storage_dir).expanduser()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
