"""Logging configuration helpers for the trivia backend."""

from __future__ import annotations

import logging
from logging import Logger

from .config import settings


def configure_logging(level: str | None = None) -> Logger:
    """Configure root logging once and return the package logger."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("trivia_backend")
