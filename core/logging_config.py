# core/logging_config.py
import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "maintenance"
AUDIT_LOGGER_NAME = "maintenance.audit"


def setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    logger = logging.getLogger(name)

    # Avoid duplicate handlers in dev reload
    if logger.handlers:
        return logger

    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    return logger


logger = setup_logger()

# Audit records propagate to the main logger's handler
audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
