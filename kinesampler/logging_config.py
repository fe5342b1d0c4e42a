"""
Logging configuration for the kinesampler package.

Modules log through ``logging.getLogger(__name__)``; nothing is printed
unless the application attaches handlers, e.g. with setup_logging().
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "kinesampler"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optional file) handlers to the package logger.

    Parameters:
        level: Logging level (e.g. logging.DEBUG)
        log_file: Optional path to also write the log to

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Avoid duplicate output when called twice
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
