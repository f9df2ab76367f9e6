"""
Logging configuration for the AI Review action.
"""

import sys
from typing import Optional

from loguru import logger

from ai_review.config import settings

# loguru level name -> GitHub workflow command
WORKFLOW_COMMANDS = {
    "TRACE": "debug",
    "DEBUG": "debug",
    "WARNING": "warning",
    "ERROR": "error",
    "CRITICAL": "error",
}


def format_workflow_record(record: dict) -> str:
    """Render a record so GitHub Actions annotates warnings and errors."""
    command = WORKFLOW_COMMANDS.get(record["level"].name)
    prefix = f"::{command}::" if command else ""
    line = prefix + "{message}\n"
    if record["exception"]:
        line += "{exception}\n"
    return line


def configure_logging() -> None:
    """Configure logging for the current runtime."""

    logger.remove()

    log_level = "DEBUG" if settings.debug else "INFO"

    if settings.github_actions:
        logger.add(
            sys.stderr,
            format=format_workflow_record,
            level=log_level,
            colorize=False,
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<blue>{name}</blue>:<blue>{function}</blue>:<blue>{line}</blue> - "
                "<level>{message}</level>"
            ),
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=settings.debug,
        )


configure_logging()


def get_logger(name: Optional[str] = None):
    """Get a logger instance with optional name binding."""
    if name:
        return logger.bind(logger_name=name)
    return logger
