"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ZONEMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Content Generation Configuration
    gemini_api_key: str = Field(default="", description="Gemini API key")
    gemini_model: str = Field(default="gemini-1.5-flash", description="Gemini model name")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )
    request_timeout_seconds: float = Field(default=60.0, description="Per-request timeout")
    max_generation_attempts: int = Field(
        default=10, ge=1, description="Attempts per structured content request"
    )

    # Map Generation Configuration
    map_width: float = Field(default=1000, description="Map width")
    map_height: float = Field(default=1000, description="Map height")
    target_cell_count: int = Field(default=2000, ge=1, description="Target number of cells")
    distortion_power: float = Field(default=5.0, description="Minkowski distortion power")
    randomness: float = Field(default=10.0, ge=0, description="Tessellation irregularity")
    special_policy: str = Field(
        default="weak", description="Special zone placement ordering: weak or strict"
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")


# Instantiate singleton settings object
settings = Settings()
