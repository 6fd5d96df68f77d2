from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PanelSettings(BaseSettings):
    """Runtime configuration for the load panel."""

    model_config = SettingsConfigDict(
        env_prefix="LOAD_PANEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoint
    api_url: str = Field(default="http://localhost:3000/api")
    request_timeout: Optional[float] = Field(default=None, gt=0)  # None = wait forever

    # Quota ceilings
    max_concurrency: int = Field(default=1000, ge=1)
    max_intensity: int = Field(default=1000, ge=1)
    unlock_secret: str = Field(default="")

    # Test defaults
    default_concurrency: int = Field(default=10, ge=1)
    default_intensity: int = Field(default=1000, ge=1)
    complexity: int = Field(default=1, ge=1)

    # Result buffer
    result_capacity: int = Field(default=50, ge=1)
    continuous_capacity: int = Field(default=100, ge=1)

    # Timers (seconds)
    dispatch_interval: float = Field(default=1.0, gt=0)
    rate_interval: float = Field(default=1.0, gt=0)
    telemetry_interval: float = Field(default=2.0, gt=0)
