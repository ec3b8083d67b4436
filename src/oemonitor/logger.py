"""Logging configuration for oemonitor.

Modules log through child loggers of ``oemonitor``; the entry points decide
where records go (stdout for the server and the poll command, Textual's
handler while the TUI owns the terminal).
"""

import logging
import sys

# Create logger for oemonitor
logger = logging.getLogger("oemonitor")

LOG_FORMAT = "oemonitor: %(message)s"


def setup_logger(level: int = logging.INFO) -> None:
    """Setup the oemonitor logger with default configuration.

    Args:
        level: Logging level (default: INFO)
    """
    if logger.handlers:
        # Already configured
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def set_level(level: int) -> None:
    """Change the level of the logger and of all its handlers."""
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def replace_handlers(handler: logging.Handler) -> None:
    """Send every record to ``handler`` only."""
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    handler.setLevel(logger.level)
    if handler.formatter is None:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


# Initialize logger on import
setup_logger()
