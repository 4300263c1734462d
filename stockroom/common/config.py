from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_APP_NAME = "stockroom"


class ServiceSettings(BaseSettings):
    """Settings for the inventory API process."""

    app_name: str = Field(default=DEFAULT_APP_NAME)
    environment: Literal["local", "dev", "staging", "prod"] = Field(default="local")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    service_host: str = Field(default="0.0.0.0")
    service_port: int = Field(default=3001)
    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    tracing_endpoint: str | None = Field(default=None)
    tracing_protocol: Literal["http/protobuf", "grpc"] = Field(default="http/protobuf")
    tracing_insecure: bool = Field(default=True)
    tracing_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    database_url: str | None = Field(default=None)
    create_tables: bool = Field(default=True)
    # Single-tenant fallback when a request does not name a user.
    default_user_id: int = Field(default=1, ge=1)
    notification_list_limit: int = Field(default=50, ge=1, le=500)
    default_per_page: int = Field(default=20, ge=1, le=500)

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"), env_prefix="INVENTORY_", extra="ignore"
    )


@lru_cache
def get_settings() -> ServiceSettings:
    """Return cached service settings."""

    return ServiceSettings()
