"""Logging configuration for command-line use.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the entry point.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Configure the package logger with a single stderr handler.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG")

    Returns:
        The configured ``recipe_recommender`` logger
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("recipe_recommender")
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
