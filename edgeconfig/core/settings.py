from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://api.fastly.com"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="EDGECONFIG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "edgeconfig"
    log_level: str = "INFO"
    logs_dir: Path = Path("logs")

    # API endpoint
    api_url: str = DEFAULT_API_URL
    debug_mode: bool = False
    user_agent: str | None = None

    # HTTP client
    http_timeout_seconds: float = 30.0

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("EDGECONFIG_API_URL must be an http(s) URL")
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
