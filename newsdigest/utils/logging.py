"""Logging helpers shared by the curation components."""
from __future__ import annotations

import logging
import os
from typing import Optional


_LOGGER_CACHE: dict[str, logging.Logger] = {}


def configure_root_logger(level: int | None = None) -> None:
    """Configure the root logger once with the pipeline's line format."""
    if logging.getLogger().handlers:
        return
    if level is None:
        level = logging.getLevelName(os.getenv("NEWSDIGEST_LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler])


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Retrieve a configured logger, caching it for reuse."""
    if name is None:
        name = os.getenv("NEWSDIGEST_LOGGER_NAME", "newsdigest")
    if name not in _LOGGER_CACHE:
        configure_root_logger()
        _LOGGER_CACHE[name] = logging.getLogger(name)
    return _LOGGER_CACHE[name]
