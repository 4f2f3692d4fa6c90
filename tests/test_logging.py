"""Tests for logging utilities."""

import logging
from io import StringIO

import numpy as np

from multiopt.logging import (
    configure_logging,
    get_logger,
    set_log_level,
)
from multiopt.optimize import PowellOptimizer


def test_get_logger_returns_logger():
    """Test that get_logger returns a logger instance."""
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name.startswith("multiopt.")


def test_get_logger_caching():
    """Test that get_logger caches loggers."""
    logger1 = get_logger("test_module")
    logger2 = get_logger("test_module")
    assert logger1 is logger2


def test_get_logger_keeps_package_names():
    """Package module names are used as-is."""
    assert get_logger("multiopt.optimize.powell").name == "multiopt.optimize.powell"
    assert get_logger().name == "multiopt"


def test_logger_output():
    """Test that logger outputs messages correctly."""
    captured = StringIO()
    logger = get_logger("test_module")
    try:
        configure_logging(level=logging.INFO, stream=captured)
        logger.info("Test message")

        output = captured.getvalue()
        assert "Test message" in output
        assert "test_module" in output
    finally:
        configure_logging(level=logging.WARNING)


def test_optimizer_reports_termination():
    """Optimizers log their termination at INFO level."""
    captured = StringIO()
    try:
        configure_logging(level=logging.INFO, stream=captured)
        algorithm = PowellOptimizer().create(2)
        algorithm.set_function(lambda x: float(x @ x))
        algorithm.find_minimum(np.ones(2))
        assert "Powell" in captured.getvalue()
    finally:
        configure_logging(level=logging.WARNING)


def test_set_log_level():
    """Test that set_log_level updates logger levels."""
    logger = get_logger("test_module")

    set_log_level(logging.INFO)
    assert logger.level == logging.INFO

    set_log_level("debug")
    assert logger.level == logging.DEBUG
    assert all(handler.level == logging.DEBUG for handler in logger.handlers)

    set_log_level(logging.WARNING)
    assert logger.level == logging.WARNING
