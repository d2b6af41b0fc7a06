import logging
import os
import sys

LOG_FORMAT = os.getenv(
    "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Engine phases log every round at INFO; ENGINE_LOG_LEVEL lets a server keep
# them quieter than its own request logs.
ENGINE_LOGGER = "courtmatch.services"

LIBRARY_LEVELS = {
    "uvicorn": logging.WARNING,
    "fastapi": logging.WARNING,
    "celery": logging.INFO,
    "kombu": logging.WARNING,
    "amqp": logging.WARNING,
    "redis": logging.WARNING,
}


def _level(name, default):
    value = os.getenv(name)
    if not value:
        return default
    return getattr(logging, value.upper(), default)


def setup_logging(log_level=None, engine_level=None):
    """
    Configure root logging to stdout.

    Args:
        log_level: Root level; defaults to $LOG_LEVEL or INFO
        engine_level: Level for the match engine loggers; defaults to
            $ENGINE_LOG_LEVEL or the root level
    """
    if log_level is None:
        log_level = _level("LOG_LEVEL", logging.INFO)
    if engine_level is None:
        engine_level = _level("ENGINE_LOG_LEVEL", log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(min(log_level, engine_level))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    logging.getLogger(ENGINE_LOGGER).setLevel(engine_level)
    for name, level in LIBRARY_LEVELS.items():
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
