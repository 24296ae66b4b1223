from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass
class Settings:
    """Shared baseline settings (both client/server build on top)."""

    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


SETTINGS = Settings()


def load_settings(env_path: str = ".env") -> Settings:
    """Load shared settings from env/.env."""
    if Path(env_path).exists():
        load_dotenv(env_path)
    SETTINGS.log_level = os.getenv("FIB_LOG_LEVEL", SETTINGS.log_level).upper()
    SETTINGS.log_format = os.getenv("FIB_LOG_FORMAT", SETTINGS.log_format)
    return SETTINGS


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or SETTINGS.log_level, format=SETTINGS.log_format)


__all__ = ["Settings", "SETTINGS", "load_settings", "configure_logging"]
