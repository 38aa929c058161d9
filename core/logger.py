"""
Centralized logging configuration using Loguru.
Follows Single Responsibility Principle - only handles logging setup.
"""

import sys
from pathlib import Path

from loguru import logger

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _resolve_log_level(settings) -> str:
    """LOG_LEVEL takes precedence over the DEBUG flag."""
    if settings.log_level:
        log_level = settings.log_level.upper()
        if log_level not in VALID_LEVELS:
            log_level = "INFO"
        return log_level
    return "DEBUG" if settings.debug else "INFO"


def setup_logger():
    """Configure logger handlers. Only configures once even if called multiple times."""
    from .config import get_settings

    settings = get_settings()

    # Loguru is a singleton, so handlers persist across module reloads
    # (console + app.log + error.log)
    if len(logger._core.handlers) >= 3:
        return

    logger.remove()

    def filter_reloader_logs(record):
        """Filter out logs from __main__ and __mp_main__ (reloader processes)."""
        return record.get("name", "") not in ("__main__", "__mp_main__")

    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=_resolve_log_level(settings),
        filter=filter_reloader_logs,
    )

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # File logs always DEBUG to capture everything
    logger.add(
        log_dir / "app.log",
        rotation="100 MB",
        retention="30 days",
        compression="zip",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
    )

    logger.add(
        log_dir / "error.log",
        rotation="100 MB",
        retention="30 days",
        compression="zip",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="ERROR",
    )


def format_exception_short(exc: BaseException, context: str = "Error") -> str:
    """
    Render an exception as a single log line.

    Args:
        exc: Exception to format
        context: Short description of what was being done

    Returns:
        "<context>: <ExceptionType>: <message>"
    """
    message = str(exc).strip().splitlines()
    first_line = message[0] if message else ""
    return f"{context}: {type(exc).__name__}: {first_line}"


# Configure logger on module import
setup_logger()

__all__ = ["logger", "format_exception_short"]
