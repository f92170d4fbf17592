"""
Settings Management with Pydantic

Runtime settings resolved from environment variables (and an optional
``.env`` file):
- Simulation seeding and loop bounds
- Save backend selection
- Logging level and catalog location
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SaveBackendType(str, Enum):
    """Supported save storage backends."""
    IN_MEMORY = "in_memory"
    FILE = "file"


class SimulationSettings(BaseSettings):
    """Simulation loop configuration."""
    model_config = SettingsConfigDict(
        env_prefix="SIM_",
        extra="ignore"
    )

    # None = derive a seed from the wall clock once at startup
    seed: Optional[int] = None

    # Upper bound on minutes processed by one fast-forward / simulate-day call
    max_fast_forward_minutes: int = Field(default=10080, ge=1)

    autosave: bool = True


class PersistenceSettings(BaseSettings):
    """Save storage configuration."""
    model_config = SettingsConfigDict(
        env_prefix="SAVE_",
        extra="ignore"
    )

    backend: SaveBackendType = SaveBackendType.IN_MEMORY
    directory: str = "./data/saves"
    key: str = "call_center_save"


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = "Call Center Simulation"
    log_level: str = "INFO"

    # Directory holding the catalog JSON documents; None = packaged data
    data_dir: Optional[str] = None

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            simulation=SimulationSettings(),
            persistence=PersistenceSettings()
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
