"""
Logging setup for blackboard agents.

Console output is colored with colorlog; when a log directory is configured,
everything is also written to a rotating ``blackboard.log`` and errors to a
rotating ``errors.log``.
"""

import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import colorlog

from .config import LoggingSettings

LOGGER_NAME = "blackboard"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s - %(name)s - %(levelname)s%(reset)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(process)d - %(funcName)s:%(lineno)d - %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "purple",
}


def setup_logging(settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """
    Configure the ``blackboard`` logger.

    Args:
        settings: Logging settings; defaults are used when omitted

    Returns:
        logging.Logger: The configured package logger
    """
    settings = settings or LoggingSettings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.level))

    # Clear handlers left by an earlier call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if settings.console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
        )
        logger.addHandler(console_handler)

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(FILE_FORMAT)

        main_handler = logging.handlers.RotatingFileHandler(
            log_dir / "blackboard.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        main_handler.setLevel(logging.DEBUG)
        main_handler.setFormatter(file_formatter)
        logger.addHandler(main_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "errors.log",
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        logger.addHandler(error_handler)

    return logger
