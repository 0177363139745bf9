"""
Configuration management for the unit calculator
"""

import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Calculator settings"""

    # Reference catalog (empty -> bundled CSV data)
    catalog_dir: str = os.getenv("BNG_UNITS_CATALOG_DIR", "")
    catalog_workbook: str = os.getenv("BNG_UNITS_CATALOG_WORKBOOK", "")

    # Years used for "30+" in advance / delay arithmetic
    habitat_unbounded_years: int = int(os.getenv("BNG_UNITS_HABITAT_UNBOUNDED_YEARS", "30"))
    hedgerow_unbounded_years: int = int(os.getenv("BNG_UNITS_HEDGEROW_UNBOUNDED_YEARS", "31"))

    # Logging
    log_level: str = os.getenv("BNG_UNITS_LOG_LEVEL", "WARNING")

    class Config:
        env_file = ".env"
        env_prefix = "BNG_UNITS_"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured log level to the package loggers."""
    settings = settings or get_settings()
    level = getattr(logging, str(settings.log_level).upper(), logging.WARNING)
    logging.getLogger("bng_units").setLevel(level)
