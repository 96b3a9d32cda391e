"""Runtime configuration, read from the environment (``IMS_*``) or ``.env``."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root when installed in editable mode.
_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DATA_DIR = _PROJECT_ROOT / "data"


class Settings(BaseSettings):
    # Storage
    database_url: str = Field(default=f"sqlite:///{(_DATA_DIR / 'inventory.db').as_posix()}")
    database_echo: bool = False
    catalog_path: Path = Field(default=_DATA_DIR / "products.json")

    # Reservations
    reservation_ttl_minutes: int = Field(default=15, gt=0)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # Defaults for new inventory records
    low_stock_threshold: int = Field(default=10, ge=0)
    reorder_point: int = Field(default=5, ge=0)
    reorder_quantity: int = Field(default=50, ge=0)

    # Optimistic locking
    max_retries: int = Field(default=3, ge=1)

    # Alerts kept in memory by the collecting publisher
    alert_buffer_size: int = Field(default=100, gt=0)

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix="IMS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
