"""Process-wide logging for the booking engine."""

from __future__ import annotations

import logging
import sys
from threading import Lock
from typing import Optional

from roombooking.utils.config import get_settings


_CONFIGURE_LOCK = Lock()
_configured = False


def _resolve_level(name: str) -> Optional[int]:
    level = logging.getLevelName(name.strip().upper())
    # unknown names come back as the string "Level <name>"
    return level if isinstance(level, int) else None


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once; request threads may race to get here."""
    global _configured
    with _CONFIGURE_LOCK:
        if _configured:
            return
        settings = get_settings()
        requested = level or settings.log_level
        resolved = _resolve_level(requested)
        logging.basicConfig(
            level=resolved if resolved is not None else logging.INFO,
            format=settings.log_format,
            stream=sys.stdout,
        )
        _configured = True
    if resolved is None:
        logging.getLogger(__name__).warning("Unknown log level %r, using INFO", requested)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the root handler on first use."""
    configure_logging()
    return logging.getLogger(name)
