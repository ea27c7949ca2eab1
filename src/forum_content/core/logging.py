"""Logging setup shared by the API process and scripts."""

from __future__ import annotations

import logging
import sys

from forum_content.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Attach a stdout handler to the package logger once per process."""
    global _configured
    if _configured:
        return

    resolved = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    package_logger = logging.getLogger("forum_content")
    package_logger.setLevel(resolved)
    package_logger.addHandler(handler)
    # uvicorn installs its own root handlers
    package_logger.propagate = False
    _configured = True
