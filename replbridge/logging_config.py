"""
Custom logging configuration to suppress health check logs
"""

import logging
import logging.config
from typing import Dict, Any

HEALTH_CHECK_PATHS = ("/healthz", "/health")


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check endpoint logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out health check requests from uvicorn access logs."""
        if record.name == "uvicorn.access":
            message = record.getMessage()
            if "GET" in message and any(f"{path} " in message for path in HEALTH_CHECK_PATHS):
                return False
        return True


def _logger(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config(log_level: str = "INFO") -> Dict[str, Any]:
    """
    Get logging configuration with health check suppression.

    The configured level applies to the package, uvicorn's server logs and
    the root logger. Access logs stay at INFO unless a stricter level is
    configured, so DEBUG does not hide them and WARNING silences them.
    """
    level = log_level.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    access_level = max(level, "INFO", key=logging.getLevelName)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": HealthCheckFilter},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": {
            "uvicorn": _logger("default", level),
            "uvicorn.error": _logger("default", level),
            "uvicorn.access": _logger("access", access_level),
            "replbridge": _logger("default", level),
        },
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging(log_level: str = "INFO") -> None:
    """Apply the logging configuration."""
    logging.config.dictConfig(get_logging_config(log_level))
