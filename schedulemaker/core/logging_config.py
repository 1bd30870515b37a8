"""
Logging setup for the League Schedule Maker.
Services log through get_logger(__name__); scripts call setup_logging once.
"""

import logging
import sys

# Define log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
BANNER_WIDTH = 60

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn": logging.WARNING,
    "fastapi": logging.WARNING,
    "celery": logging.INFO,
    "kombu": logging.WARNING,
    "amqp": logging.WARNING,
    "httpx": logging.WARNING,
}


def setup_logging(log_level=logging.INFO):
    """
    Configure the root logger to write to stdout.

    Args:
        log_level: A logging level or its name ("DEBUG", "INFO", ...)

    Returns:
        The configured root logger
    """
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_banner(logger: logging.Logger, title: str, level=logging.INFO):
    """Log a section banner (the ==== blocks printed around each phase)."""
    logger.log(level, "=" * BANNER_WIDTH)
    logger.log(level, title)
    logger.log(level, "=" * BANNER_WIDTH)
