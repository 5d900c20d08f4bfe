"""Logging configuration helpers for QuizCrafter."""

from __future__ import annotations

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | int = logging.INFO) -> Logger:
    """Configure basic logging for the application and return its logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # uvicorn installs its own handlers; keep its access log at our level.
    logging.getLogger("uvicorn.access").setLevel(level)
    return logging.getLogger("quiz_crafter")
