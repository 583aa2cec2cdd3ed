"""Logging setup shared by the API process and scripts."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = level.strip().upper() or "INFO"
    logging.basicConfig(level=level, format=LOG_FORMAT)
