"""Centralized logging configuration for the chat router."""

from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once using env overrides."""
    if logging.getLogger().handlers:
        return

    log_level = (level or os.environ.get("JOB_ROUTER_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("JOB_ROUTER_LOG_FORMAT", DEFAULT_FORMAT)

    logging.basicConfig(level=log_level, format=log_format)
