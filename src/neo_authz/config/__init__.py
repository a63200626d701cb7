"""Configuration for neo-authz."""

from .settings import AuthzSettings, get_settings
from .logging_config import LoggingConfig, resolve_log_level, setup_logging, get_logger

__all__ = [
    "AuthzSettings",
    "get_settings",
    "LoggingConfig",
    "resolve_log_level",
    "setup_logging",
    "get_logger",
]
