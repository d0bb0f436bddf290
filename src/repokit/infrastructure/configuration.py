"""
Configuration Management for repokit

🔧 Unified Configuration System:
Dataclass configuration for the persistence layer and logging, with presets
per environment and loaders for dictionaries, JSON/YAML files and
environment variables.
"""

from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field
from enum import Enum
import json
import os
from pathlib import Path

import yaml


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class PersistenceConfig:
    """Persistence layer configuration"""
    # Database name -> SQLAlchemy async URL
    databases: Dict[str, str] = field(default_factory=lambda: {
        "main": "sqlite+aiosqlite:///repokit.db"
    })
    # Record type name -> resource URL for remote repositories
    endpoints: Dict[str, str] = field(default_factory=dict)
    echo: bool = False
    http_timeout: float = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"
            config.persistence.echo = True

        elif environment == Environment.TESTING:
            config.persistence.databases = {"main": "sqlite+aiosqlite:///:memory:"}
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section_name in ("persistence", "logging"):
            section = getattr(config, section_name)
            for key, value in config_dict.get(section_name, {}).items():
                if not hasattr(section, key):
                    raise ValueError(f"Unknown {section_name} setting: {key}")
                setattr(section, key, value)

        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('REPOKIT_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('REPOKIT_DEBUG'):
            config.debug = os.getenv('REPOKIT_DEBUG').lower() == 'true'

        if os.getenv('REPOKIT_DATABASE_URL'):
            config.persistence.databases["main"] = os.getenv('REPOKIT_DATABASE_URL')

        if os.getenv('REPOKIT_HTTP_TIMEOUT'):
            config.persistence.http_timeout = float(os.getenv('REPOKIT_HTTP_TIMEOUT'))

        if os.getenv('REPOKIT_LOG_LEVEL'):
            config.logging.level = os.getenv('REPOKIT_LOG_LEVEL').upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "persistence": {
                "databases": dict(self.persistence.databases),
                "endpoints": dict(self.persistence.endpoints),
                "echo": self.persistence.echo,
                "http_timeout": self.persistence.http_timeout
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
                "max_file_size": self.logging.max_file_size,
                "backup_count": self.logging.backup_count
            }
        }


# Export main components
__all__ = [
    "ApplicationConfig", "Environment", "PersistenceConfig", "LoggingConfig"
]
