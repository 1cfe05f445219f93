"""Logging utilities for the rate_ledger package."""

from __future__ import annotations

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_ROOT_NAME = "rate_ledger"
_CONFIGURED: Optional[logging.Logger] = None


def get_logger(name: str = _ROOT_NAME) -> logging.Logger:
    """Return a logger, configuring the root handler on first use."""
    global _CONFIGURED
    if _CONFIGURED is None:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        _CONFIGURED = logging.getLogger(_ROOT_NAME)
    return logging.getLogger(name)


def set_log_level(level: int | str) -> None:
    """Adjust the verbosity of every ``rate_ledger.*`` logger at once."""

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    get_logger(_ROOT_NAME).setLevel(level)
