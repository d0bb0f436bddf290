"""
Infrastructure - Configuration and Logging
"""

from .configuration import ApplicationConfig, Environment, PersistenceConfig, LoggingConfig
from .logging import configure_logging

__all__ = [
    "ApplicationConfig", "Environment", "PersistenceConfig", "LoggingConfig",
    "configure_logging"
]
