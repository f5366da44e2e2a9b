"""Configuration settings using pydantic-settings for environment variable loading."""

from pathlib import Path
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.
    
    Automatically reads from .env file and environment variables.
    Environment variables take precedence over .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Spotify OAuth (only needed for commands that read listening data)
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None
    spotify_redirect_uri: str = "http://127.0.0.1:8888/callback"

    # EDMTrain
    edmtrain_api_key: str | None = None
    edmtrain_base_url: str = "https://edmtrain.com/api"

    # Paths
    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".lineup2interest" / "lineup2interest.db"
    )
    token_cache_path: Path = Field(
        default_factory=lambda: Path.home() / ".lineup2interest" / ".spotify_cache"
    )

    # Matching and scoring
    fuzzy_match_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    festival_genres: list[str] = Field(
        default_factory=lambda: ["electronic", "edm", "house", "techno", "dubstep", "trance"]
    )
    months_ahead: int = Field(default=3, ge=1)

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.
    
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
