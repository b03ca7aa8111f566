"""
Catalog configuration from environment variables.

Variables:
    CATALOG_PAGE_SIZE               - default search page size (20)
    CATALOG_FUTURE_TOLERANCE_DAYS   - days past today allowed for lastUpdated (0)
    CATALOG_SOURCE_DIR              - directory loaded by the HTTP backend (unset)
    CATALOG_SOURCE_PATTERN          - glob used when scanning the source dir (**/*.md)

Empty variables fall back to the defaults; malformed or negative numbers
raise pydantic's ValidationError (a ValueError) when settings are loaded.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import NonNegativeInt
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PAGE_SIZE = 20
DEFAULT_FUTURE_TOLERANCE_DAYS = 0
DEFAULT_SOURCE_PATTERN = "**/*.md"


class CatalogSettings(BaseSettings):
    """Runtime settings for a catalog service.

    Keyword arguments override the environment.
    """

    page_size: NonNegativeInt = DEFAULT_PAGE_SIZE
    future_tolerance_days: NonNegativeInt = DEFAULT_FUTURE_TOLERANCE_DAYS
    source_dir: Optional[Path] = None
    source_pattern: str = DEFAULT_SOURCE_PATTERN

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_env(cls) -> "CatalogSettings":
        """Build settings from ``CATALOG_*`` environment variables."""
        return cls()
