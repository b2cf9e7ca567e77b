"""Process-wide logging setup."""

from __future__ import annotations

import logging
import logging.handlers
import os

from aprs_etl.config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILENAME = "aprs_etl.log"


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Attach console and rotating file handlers to the package logger."""
    logger = logging.getLogger("aprs_etl")
    logger.setLevel(config.level.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.log_dir:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(config.log_dir, LOG_FILENAME),
            maxBytes=1 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
