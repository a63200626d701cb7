"""Logging configuration for neo-authz.

Environment-controlled verbosity and format for the authorization components
and the drivers they sit on.
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Any, Dict, Optional


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Warnings and above
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


_VERBOSITY_LEVELS = {
    LogVerbosity.QUIET: "ERROR",
    LogVerbosity.NORMAL: "WARNING",
    LogVerbosity.VERBOSE: "INFO",
    LogVerbosity.DEBUG: "DEBUG",
}

_FORMATS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def resolve_log_level(verbosity: Optional[str], level: Optional[str] = None) -> str:
    """Pick the effective level: explicit LOG_LEVEL wins over verbosity."""
    if level:
        candidate = level.upper()
        if candidate in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return candidate
    try:
        return _VERBOSITY_LEVELS[LogVerbosity((verbosity or "NORMAL").upper())]
    except ValueError:
        return "WARNING"


class LoggingConfig:
    """Centralized logging configuration manager."""

    # Driver loggers that only report problems
    ERROR_ONLY_MODULES = [
        "asyncpg",
        "redis",
        "httpx",
        "httpcore",
        "asyncio",
    ]

    @classmethod
    def build_config(
        cls,
        level: str,
        log_format: str = LogFormat.SIMPLE.value,
        enable_sql_logging: bool = False,
    ) -> Dict[str, Any]:
        """Build a dictConfig mapping for the given level and format."""
        try:
            format_string = _FORMATS[LogFormat(log_format.lower())]
        except ValueError:
            format_string = _FORMATS[LogFormat.SIMPLE]

        config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": format_string,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": {
                "neo_authz": {
                    "level": level,
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

        for module in cls.ERROR_ONLY_MODULES:
            if module == "asyncpg" and enable_sql_logging:
                continue
            config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }

        return config

    @classmethod
    def configure(cls) -> None:
        """Configure logging based on environment variables."""
        level = resolve_log_level(os.getenv("LOG_VERBOSITY"), os.getenv("LOG_LEVEL"))
        log_format = os.getenv("LOG_FORMAT", LogFormat.SIMPLE.value)
        enable_sql_logging = os.getenv("ENABLE_SQL_LOGGING", "false").lower() == "true"

        logging.config.dictConfig(cls.build_config(level, log_format, enable_sql_logging))
        logging.getLogger(__name__).debug("Logging configured: level=%s, format=%s", level, log_format)

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module."""
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))


def setup_logging() -> None:
    """Setup logging from environment variables.

    Call once at application startup; library modules only ever call
    ``logging.getLogger(__name__)``.
    """
    LoggingConfig.configure()


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name."""
    return logging.getLogger(name)
