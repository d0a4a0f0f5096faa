"""
Logging setup for the client.

Every module logs through ``logging.getLogger(__name__)``; this module only
configures the root handler once at start-up.
"""

import logging

from .config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "realtime")


def setup_logging(level: str | None = None) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name; defaults to settings.log_level (DEBUG when debug is on)
    """
    settings = get_settings()
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def mask_email(email: str | None) -> str:
    """Mask an email address for log lines: ``ada@example.com`` -> ``a***@example.com``."""
    if not email:
        return "<none>"
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
