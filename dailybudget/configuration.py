"""Mini README: Centralised configuration model for the dailybudget API.

Structure:
    * DailyBudgetSettings - Pydantic settings describing runtime options.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Values are read from ``DAILYBUDGET_*`` environment variables or a
    ``.env`` file. Tests construct ``DailyBudgetSettings`` directly and hand
    it to the application factory instead of touching the cache.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class DailyBudgetSettings(BaseSettings):
    """Runtime configuration for the budgeting service."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the flat-file ledger document.",
    )
    storage_backend: str = Field(
        "file",
        description="Ledger store backend: 'memory' or 'file'.",
    )
    data_file_name: str = Field(
        "ledger.json",
        description="File name of the JSON ledger inside the data directory.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the API server to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the API server listens on.",
        ge=1,
        le=65535,
    )
    jwt_secret: Optional[str] = Field(
        None,
        description="Secret used to sign access tokens. The API refuses to start without it.",
    )
    jwt_algorithm: str = Field("HS256", description="Signing algorithm for access tokens.")
    token_expiry_minutes: int = Field(
        60 * 24,
        description="Lifetime of issued access tokens.",
        ge=1,
    )

    class Config:
        env_prefix = "DAILYBUDGET_"
        env_file = ".env"
        case_sensitive = False

    @validator("data_directory", pre=True)
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @validator("storage_backend")
    def _normalise_backend(cls, value: str) -> str:
        normalised = value.strip().lower()
        if normalised not in {"memory", "file"}:
            raise ValueError(f"Unsupported storage backend: {value}")
        return normalised

    @property
    def data_file(self) -> Path:
        """Full path of the JSON ledger document."""

        return Path(self.data_directory) / self.data_file_name


@lru_cache()
def get_settings() -> DailyBudgetSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return DailyBudgetSettings()
