"""Logging setup for applications embedding the engine."""

from __future__ import annotations

import logging
from typing import Optional

from .config import EngineSettings, get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: Optional[EngineSettings] = None, *, force: bool = False) -> int:
    """Configure root logging from engine settings and return the applied level."""

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
    return level
