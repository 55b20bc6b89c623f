"""
Logging configuration for the admin console.

This module sets up logging using loguru with formatting and levels suited
to both local development and deployed consoles. Streamlit reruns the whole
script on every interaction, so setup only happens once per process, and
each browser session tags its records with a short session id.
"""

import sys
import uuid
from typing import Optional

from loguru import logger

from ..config import get_settings

NO_SESSION = "-"

_configured = False


def setup_logging(log_level: Optional[str] = None, force: bool = False) -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        force: Reconfigure even if logging was already set up
    """
    global _configured
    if _configured and not force:
        return

    settings = get_settings()

    logger.remove()
    logger.configure(extra={"session": NO_SESSION})

    level = log_level or settings.log_level
    serialize = settings.log_format == "json"

    format_string = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<magenta>{extra[session]}</magenta> | "
        "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=not serialize,
        serialize=serialize,
        backtrace=settings.debug_mode,
        diagnose=settings.debug_mode
    )

    # Persist logs outside debug mode
    if not settings.debug_mode:
        logger.add(
            "logs/admin_console.log",
            format=format_string,
            level=level,
            rotation="1 day",
            retention="30 days",
            compression="gz",
            serialize=serialize,
            backtrace=False,
            diagnose=False
        )

    _configured = True
    logger.info(f"Logging initialized with level: {level}, format: {settings.log_format}")


def new_session_id() -> str:
    """Short random id identifying one browser session in the logs."""
    return uuid.uuid4().hex[:8]
