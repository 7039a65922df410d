"""Configuration settings for the text-to-music client."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import Field

DEFAULT_BASE_URL = "https://api.elevenlabs.io/v1"


class Settings(BaseSettings):
    """Settings loaded from environment variables (or a .env file)."""

    # ElevenLabs
    elevenlabs_api_key: str = Field(..., alias="ELEVENLABS_API_KEY")
    elevenlabs_base_url: str = Field(
        default=DEFAULT_BASE_URL,
        alias="ELEVENLABS_BASE_URL",
    )

    # Unset means no deadline on the request.
    timeout_s: float | None = Field(default=None, alias="ELEVENLABS_TTM_TIMEOUT")

    # Output settings (CLI only)
    output_dir: Path = Field(default=Path("output/music"), alias="ELEVENLABS_TTM_OUTPUT_DIR")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get settings instance (lazy-loaded, cached)."""
    return Settings()  # type: ignore[call-arg]
