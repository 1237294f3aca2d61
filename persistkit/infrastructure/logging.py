"""
Logging infrastructure.

Provides logging utilities for the persistence layer.
"""
import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get logger instance.

    Attaches a stream handler the first time a logger is requested so
    standalone scripts (migration runs, demos) get readable output.

    Args:
        name: Logger name (usually module name)
        level: Level applied when the handler is first attached

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
