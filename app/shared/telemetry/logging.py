"""Logging configuration for the application."""

import logging
import sys

from app.core.config import get_settings

# Third-party loggers that are too chatty at DEBUG.
_QUIET_LOGGERS = ("asyncio", "httpx", "httpcore")


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is settings.log_level when set, else DEBUG when settings.debug is
    True, otherwise INFO. Cache HIT/MISS lines are DEBUG. Output goes to stdout.
    """
    settings = get_settings()
    if settings.log_level:
        log_level = logging.getLevelName(settings.log_level.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO
    else:
        log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

