"""
Tests for logging helpers.
"""
import logging

from persistkit.infrastructure.logging import LOG_FORMAT, get_logger


def test_get_logger_attaches_one_handler():
    logger = get_logger("persistkit.tests.logging")
    again = get_logger("persistkit.tests.logging")

    assert again is logger
    assert len(logger.handlers) == 1
    assert logger.handlers[0].formatter._fmt == LOG_FORMAT
    assert logger.level == logging.INFO
