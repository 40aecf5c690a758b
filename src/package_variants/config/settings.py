"""Runtime configuration for the variants engine.

Relies on pydantic-settings so that environment variables (prefixed with ``VARIANTS_``)
can override defaults. See `.env.example` for common values.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Captures runtime configuration for variant editing and comparison."""

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("data/logs"), description="Directory for the rotating CLI log file")
    output_dir: Path = Field(
        default=Path("data/comparisons"), description="Where comparison exports are written"
    )

    default_variant_name: str = Field(
        default="Standard", description="Name given to the variant created for a fresh package"
    )
    default_variant_description: str = Field(
        default="Standard package with good quality hotels",
        description="Description given to the variant created for a fresh package",
    )
    new_variant_prefix: str = Field(
        default="Variant", description="Prefix for variants added without an explicit name"
    )

    catalog_base_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL of the catalog service (hotels, meal plans, vehicle types, attributes)",
    )
    catalog_api_token: Optional[str] = Field(
        default=None, description="Bearer token sent to the catalog service when provided"
    )
    catalog_timeout_s: float = Field(default=10.0, description="Per-request catalog timeout in seconds")

    sqlite_storage_enabled: bool = Field(
        default=False, description="Persist variants and pricing periods to SQLite"
    )
    sqlite_storage_path: Path = Field(default=Path("data/storage/variants.sqlite3"))
    sqlite_busy_timeout_ms: int = Field(default=2000, description="SQLite busy timeout for locks")

    model_config = SettingsConfigDict(
        env_prefix="VARIANTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    @field_validator("log_dir", "output_dir", "sqlite_storage_path", mode="before")
    def _expand_path(cls, value: str | Path) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        return Path(value).expanduser()

    @field_validator("catalog_base_url")
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("catalog_timeout_s")
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("catalog_timeout_s must be positive")
        return value

    @field_validator("default_variant_name", "new_variant_prefix")
    def _require_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("variant names must not be blank")
        return stripped

    def ensure_directories(self) -> None:
        """Create directories that must exist at runtime."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if self.sqlite_storage_enabled:
            self.sqlite_storage_path.parent.mkdir(parents=True, exist_ok=True)

    def catalog_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.catalog_api_token:
            headers["Authorization"] = f"Bearer {self.catalog_api_token}"
        else:
            logger.debug("No catalog API token configured; sending anonymous requests")
        return headers
