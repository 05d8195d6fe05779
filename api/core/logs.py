"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` using short
`event_name key=value` messages; this only decides level and format.
"""

from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def configure_logging() -> None:
    root = logging.getLogger()
    if root.handlers:
        # Uvicorn or pytest already installed handlers; only adjust the level.
        root.setLevel(log_level())
        return None
    logging.basicConfig(level=log_level(), format=DEFAULT_FORMAT)
