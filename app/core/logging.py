# app/core/logging.py
import logging

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging for the service.

    Falls back to LOG_LEVEL from settings when no explicit level is given.
    Calling it more than once is harmless: basicConfig only installs a
    handler when the root logger has none.
    """
    if level is None:
        level = get_settings().LOG_LEVEL

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
