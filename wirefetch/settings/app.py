"""Application settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wirefetch.fetch.constants import DEFAULT_MAX_REDIRECTS, DEFAULT_TIMEOUT_SECONDS


class FetchSettings(BaseSettings):
    """Environment configuration for fetches and logging."""

    model_config = SettingsConfigDict(
        env_prefix="WIREFETCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_redirects: Annotated[int, Field(ge=0, le=100)] = DEFAULT_MAX_REDIRECTS
    user_agent: str | None = None
    log_level: str = "INFO"
    json_logs: bool = False


def get_settings() -> FetchSettings:
    """Get a settings instance."""
    return FetchSettings()
