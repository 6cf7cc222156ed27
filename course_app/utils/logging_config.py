"""Logging configuration helpers for the course application."""

from __future__ import annotations

import logging
from logging import Logger


def configure_logging(level: int = logging.INFO) -> Logger:
    """Configure basic logging for the application and return the app logger."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # Connection-pool chatter from the sync client drowns out app messages.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("course_app")
