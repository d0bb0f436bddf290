"""
Logging setup for repokit.

Modules log through ``logging.getLogger(__name__)``; this only attaches a
handler to the package logger.
"""

import logging
from logging.handlers import RotatingFileHandler

from .configuration import LoggingConfig

PACKAGE_LOGGER = "repokit"


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install one handler on the ``repokit`` logger, replacing earlier ones"""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    if config.file_path:
        handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))

    package_logger.addHandler(handler)
    package_logger.setLevel(config.level)
    return package_logger


__all__ = ["configure_logging", "PACKAGE_LOGGER"]
