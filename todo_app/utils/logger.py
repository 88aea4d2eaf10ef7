"""
Logging configuration
"""
import logging
import sys
from todo_app.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level() -> int:
    return logging.DEBUG if get_settings().DEBUG else logging.INFO


def configure_logging() -> None:
    """Attach a stdout handler to the todo_app package logger (idempotent)"""
    root = logging.getLogger("todo_app")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(_level())


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the todo_app hierarchy.

    Handlers live on the package logger, so child loggers only get a level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level())
    return logger
