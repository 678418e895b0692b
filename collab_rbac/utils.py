"""
Logging helpers shared by every feature module.
"""
import logging

from collab_rbac.core import config


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure the package logger once at startup.

    Usage:
        configure_logging()          # uses LOG_LEVEL from the environment
        configure_logging("DEBUG")
    """
    logger = logging.getLogger("collab_rbac")
    logger.setLevel(level or config.LOG_LEVEL)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance under the ``collab_rbac`` hierarchy
    """
    return logging.getLogger(name)
