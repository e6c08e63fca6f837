"""
Configuration management for zureblob.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from zureblob.auth.sas import DEFAULT_API_VERSION, DEFAULT_ENDPOINT_SUFFIX, SasPermission
from zureblob.auth.sharedkey import SharedKeyCredentials
from zureblob.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Visibility(str, Enum):
    """File visibility as exposed by the filesystem adapter."""
    PUBLIC = "public"
    PRIVATE = "private"


class SasConfig(BaseModel):
    """Defaults for temporary (SAS) URLs."""
    default_expiry: int = Field(default=3600, gt=0, description="Token lifetime in seconds")
    default_permissions: str = Field(default="r")

    @field_validator("default_permissions")
    @classmethod
    def validate_permissions(cls, v: str) -> str:
        """Only letters the service understands."""
        known = {p.value for p in SasPermission}
        if not v or set(v) - known:
            raise ValueError(f"Permissions must be a non-empty combination of {''.join(sorted(known))}")
        return v


class VisibilityConfig(BaseModel):
    """Container visibility behaviour."""
    default: Visibility = Visibility.PRIVATE
    allow_set: bool = False


class HttpConfig(BaseModel):
    """Transport timeouts in seconds."""
    timeout: float = Field(default=300.0, gt=0.0)
    connect_timeout: float = Field(default=30.0, gt=0.0)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'zureblob.blob.client': 'DEBUG'}"
    )


class StorageConfig(BaseModel):
    """Main zureblob configuration schema."""

    account_name: str = Field(min_length=1, description="Storage account name")
    account_key: str = Field(min_length=1, description="Base64-encoded account key")
    container: str = Field(min_length=1, description="Container all operations target")

    api_version: str = Field(default=DEFAULT_API_VERSION)
    endpoint_suffix: str = Field(default=DEFAULT_ENDPOINT_SUFFIX)
    url: Optional[str] = Field(
        default=None,
        description="Custom public base URL (CDN or custom domain)"
    )

    sas: SasConfig = Field(default_factory=SasConfig)
    visibility: VisibilityConfig = Field(default_factory=VisibilityConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("account_key")
    @classmethod
    def validate_account_key(cls, v: str) -> str:
        """Account key must decode as base64."""
        try:
            SharedKeyCredentials("validation", v)
        except InvalidConfigurationError as exc:
            raise ValueError(exc.message) from exc
        return v

    def credentials(self) -> SharedKeyCredentials:
        return SharedKeyCredentials(self.account_name, self.account_key)


class ConfigManager:
    """
    Manages zureblob configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (AZURE_STORAGE_*, ZUREBLOB_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> StorageConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated StorageConfig instance

        Raises:
            InvalidConfigurationError: If configuration is missing or invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading zureblob configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            config = StorageConfig(**config_dict)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise InvalidConfigurationError(_describe_validation_error(e)) from e

        logger.info("Configuration validated successfully")
        self._log_configuration(config)
        return config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if account_name := os.getenv("AZURE_STORAGE_ACCOUNT_NAME"):
            config["account_name"] = account_name
        if account_key := os.getenv("AZURE_STORAGE_ACCOUNT_KEY"):
            config["account_key"] = account_key
        if container := os.getenv("AZURE_STORAGE_CONTAINER"):
            config["container"] = container
        if url := os.getenv("AZURE_STORAGE_URL"):
            config["url"] = url
        if api_version := os.getenv("AZURE_STORAGE_API_VERSION"):
            config["api_version"] = api_version

        # Visibility configuration
        if visibility := os.getenv("AZURE_STORAGE_VISIBILITY"):
            config.setdefault("visibility", {})["default"] = visibility.lower()
        if allow_set := os.getenv("AZURE_STORAGE_ALLOW_SET_VISIBILITY"):
            config.setdefault("visibility", {})["allow_set"] = allow_set.lower() in ['true', '1', 'yes']

        # Logging configuration
        if log_level := os.getenv("ZUREBLOB_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv("ZUREBLOB_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self, config: StorageConfig) -> None:
        """Log the active configuration with the account key redacted."""
        config_dict = config.model_dump(mode="json")
        config_dict["account_key"] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")


def _describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic error into one line, naming the offending fields."""
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "config"
        problems.append(f"{location}: {item['msg']}")
    return "Invalid zureblob configuration: " + "; ".join(problems)
