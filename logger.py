"""Logging for Bajeti.

One "bajeti" logger feeds a dated log file in config.log_dir and a terse
console stream. Reports render on worker threads, so file records carry
the thread name.
"""

import logging
from datetime import date
from typing import Optional

from config import Config

LOGGER_NAME = "bajeti"

FILE_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s - %(message)s"


def log_file_for(config: Config, day: Optional[date] = None):
    """Get the log file path for a day (today by default)."""
    day = day or date.today()
    return config.log_dir / f"{LOGGER_NAME}-{day.isoformat()}.log"


def setup_logging(config: Config) -> logging.Logger:
    """Configure the application logger from config.

    Safe to call more than once; earlier handlers are closed and replaced.

    Args:
        config: Application configuration with log_level and log_dir.

    Returns:
        The configured logger.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file_for(config))
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    for handler in (file_handler, console_handler):
        handler.setLevel(config.log_level)
        logger.addHandler(handler)

    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)
