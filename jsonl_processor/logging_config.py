"""
Logging configuration for the command-line tool.
"""

import logging
from typing import Optional

from .config import Settings

_HANDLER_NAME = "jsonl_processor.console"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach a console handler to the root logger.

    Log records go to stderr so that the report on stdout stays clean.
    Calling this more than once does not add duplicate handlers.

    Args:
        level: Level name for the package loggers (default ``Settings.LOG_LEVEL``).
    """
    level = level or Settings.LOG_LEVEL

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(
        logging.Formatter(Settings.LOG_FORMAT, Settings.LOG_DATE_FORMAT)
    )

    root_logger = logging.getLogger()
    if root_logger.level == logging.NOTSET or root_logger.level > logging.INFO:
        root_logger.setLevel(logging.INFO)

    # Avoid duplicate handlers on repeated calls
    if not any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        root_logger.addHandler(console_handler)

    logging.getLogger("jsonl_processor").setLevel(level)
