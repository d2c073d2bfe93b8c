from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineConfig(BaseSettings):
    """Configuration for the CIF pipeline and its event publisher.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # JSON station table; the built-in table is used when unset
    station_directory_path: Path | None = Field(default=None, alias="CIF_STATION_DIRECTORY")

    # event transport
    publish_url: str | None = Field(default=None, alias="CIF_PUBLISH_URL")
    publish_api_key: str | None = Field(default=None, alias="CIF_PUBLISH_API_KEY")
    publish_timeout_seconds: float = Field(default=30.0, alias="CIF_PUBLISH_TIMEOUT")


@lru_cache
def get_pipeline_config() -> PipelineConfig:
    """Get pipeline configuration (cached singleton).

    Returns:
        PipelineConfig with values from .env file or environment variables.
    """
    return PipelineConfig()
