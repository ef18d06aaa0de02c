"""
Configuration Loader Module

Loads blackboard and logging settings from a YAML file, applies environment
overrides (a ``.env`` file is read when present) and validates the result.

Example ``config/config.yaml``::

    blackboard:
      directory: ./blackboard
      timeout_seconds: 40
      poll_interval_seconds: 0.1
      stale_lock_timeout_seconds: null
    logging:
      level: INFO
      log_dir: logs
      console: true
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "BLACKBOARD_DIR": ("blackboard", "directory"),
    "BLACKBOARD_TIMEOUT": ("blackboard", "timeout_seconds"),
    "BLACKBOARD_POLL_INTERVAL": ("blackboard", "poll_interval_seconds"),
    "BLACKBOARD_STALE_LOCK_TIMEOUT": ("blackboard", "stale_lock_timeout_seconds"),
    "BLACKBOARD_LOG_LEVEL": ("logging", "level"),
}


class BlackboardSettings(BaseModel):
    """Settings for one blackboard coordinator."""

    directory: str = Field(default="./blackboard", description="Shared blackboard directory")
    timeout_seconds: float = Field(default=40.0, ge=0, description="Lock acquisition timeout")
    poll_interval_seconds: float = Field(default=0.1, gt=0, description="Delay between lock attempts")
    stale_lock_timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Age after which a lock is considered abandoned"
    )


class LoggingSettings(BaseModel):
    """Settings for ``setup_logging``."""

    level: str = Field(default="INFO", description="Log level name")
    log_dir: Optional[str] = Field(default="logs", description="Directory for log files; None disables them")
    console: bool = Field(default=True, description="Log to stdout with colors")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


class ConfigLoader:
    """Handles loading and validating the YAML configuration file."""

    def __init__(self, config_file_path: str = "config/config.yaml", env_file: Optional[str] = ".env"):
        """
        Initialize the configuration loader.

        Args:
            config_file_path: Path to the YAML configuration file
            env_file: Optional .env file whose variables are loaded first
        """
        self.config_file_path = Path(config_file_path)
        self.env_file = env_file
        self.config_data: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from the YAML file and apply environment overrides."""
        if self.env_file and Path(self.env_file).exists():
            load_dotenv(self.env_file)
            logger.debug(f"Loaded environment variables from {self.env_file}")

        if not self.config_file_path.exists():
            logger.warning(f"Configuration file not found: {self.config_file_path}; using defaults")
            data: Dict[str, Any] = {}
        else:
            try:
                with open(self.config_file_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"YAML parsing error in {self.config_file_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigurationError(f"Top level of {self.config_file_path} must be a mapping")
            logger.info(f"Successfully loaded configuration from {self.config_file_path}")

        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None or value == "":
                continue
            section_data = data.get(section) or {}
            if not isinstance(section_data, dict):
                raise ConfigurationError(f"'{section}' section must be a mapping")
            section_data[key] = value
            data[section] = section_data
            logger.debug(f"Override {section}.{key} from {env_name}")

        self.config_data = data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.config_data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'{name}' section must be a mapping")
        return section

    def get_blackboard_settings(self) -> BlackboardSettings:
        """
        Return validated blackboard settings.

        Raises:
            ConfigurationError: If a value is invalid
        """
        try:
            return BlackboardSettings(**self._section("blackboard"))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid blackboard configuration: {e}") from e

    def get_logging_settings(self) -> LoggingSettings:
        """
        Return validated logging settings.

        Raises:
            ConfigurationError: If a value is invalid
        """
        try:
            return LoggingSettings(**self._section("logging"))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid logging configuration: {e}") from e


def create_config_loader(config_file_path: str = "config/config.yaml", env_file: Optional[str] = ".env") -> ConfigLoader:
    """Factory function to create a configuration loader."""
    return ConfigLoader(config_file_path, env_file=env_file)
