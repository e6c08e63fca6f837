"""Core infrastructure for zureblob: configuration and logging."""

from .config_manager import (
    ConfigManager,
    HttpConfig,
    LoggingConfig,
    LogLevel,
    SasConfig,
    StorageConfig,
    Visibility,
    VisibilityConfig,
)
from .logging_config import log_with_context, setup_logging

__all__ = [
    "ConfigManager",
    "StorageConfig",
    "SasConfig",
    "VisibilityConfig",
    "HttpConfig",
    "LoggingConfig",
    "LogLevel",
    "Visibility",
    "setup_logging",
    "log_with_context",
]
