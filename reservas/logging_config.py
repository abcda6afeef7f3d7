"""Logging configuration using Loguru.

Log lines go to stderr, interleaved with the chat on stdout, so the console
format stays short. Source locations are added at DEBUG, and a rotating
session log can be written to disk. Phone numbers are masked before logging.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

CONSOLE_FORMAT = "<dim>{time:HH:mm:ss}</dim> <level>{level: <7}</level> <level>{message}</level>"
DEBUG_CONSOLE_FORMAT = (
    "<dim>{time:HH:mm:ss.SSS}</dim> <level>{level: <7}</level> "
    "<cyan>{name}:{function}:{line}</cyan> <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_file: bool = True,
) -> None:
    """Configure application logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        enable_file: Whether to also write a rotating log file
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=DEBUG_CONSOLE_FORMAT if level == "DEBUG" else CONSOLE_FORMAT,
        level=level,
        colorize=sys.stderr.isatty(),
        backtrace=level == "DEBUG",
        diagnose=False,
    )

    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "reservas_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT,
            level=level,
            rotation="20 MB",
            retention="14 days",
            compression="gz",
            backtrace=True,
            diagnose=False,
        )

    logger.debug(f"Logging initialized at {level} level")


def get_logger(name: str) -> "logger":
    """Get a logger instance with the given name.

    Usage:
        from reservas.logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Message")
    """
    return logger.bind(name=name)


# PII filtering utilities
def mask_phone(phone: str) -> str:
    """Mask phone number for logging: 612345678 -> 61XXXX5678.

    Use this before logging any phone number.
    """
    if not phone or len(phone) < 6:
        return "XXXX"
    return f"{phone[:2]}XXXX{phone[-4:]}"


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """Mask PII in a (possibly nested) dict before logging.

    Masks: any string field whose key mentions a phone
    ("telefono", "teléfono", "phone").
    """
    result: dict[str, Any] = {}

    for key, value in data.items():
        lowered = key.lower()
        is_phone_key = "phone" in lowered or "telefono" in lowered or "teléfono" in lowered
        if is_phone_key and isinstance(value, str):
            result[key] = mask_phone(value)
        elif isinstance(value, dict):
            result[key] = sanitize_for_log(value)
        else:
            result[key] = value

    return result
