"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), ConfigModule.get(), ConfigModule.set(), ConfigModule.get_all()
Hidden: Environment parsing, defaults, validation

Can be replaced with a different config source without touching the session.
"""

import logging
import os
import shlex
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


# Configuration Contract: Required and Optional Keys

REQUIRED_CONFIG_KEYS = {
    "repl_command": "REPL executable and arguments (argv list)",
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "command_timeout": "Default seconds to wait for a REPL response (<= 0 waits forever)",
    "stream_limit": "Longest REPL output line accepted, in bytes",
    "shutdown_grace": "Seconds to wait for the REPL after interrupt and after kill",
    "eof_grace": "Seconds to wait for the REPL to exit after stdin closes",
}

OPTIONAL_CONFIG_KEYS = {
    "repl_path": {
        "description": "Working directory for the REPL process",
        "default": None,
    },
    "debug": {
        "description": "Enable debug mode (uvicorn reload)",
        "default": False,
    },
}

DEFAULT_REPL_COMMAND = "lake exe repl"
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT = -1.0
DEFAULT_STREAM_LIMIT = 16 * 1024 * 1024
DEFAULT_SHUTDOWN_GRACE = 5.0
DEFAULT_EOF_GRACE = 0.5


class ConfigModule:
    """Configuration management module."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
        """
        self._environ = os.environ if environ is None else environ
        self._config = self._load_from_env()
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing_keys = []
        for key in REQUIRED_CONFIG_KEYS:
            if key not in self._config or self._config[key] is None:
                missing_keys.append(key)

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables."
            )

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        env = self._environ

        repl_command = shlex.split(env.get("LEAN_REPL_COMMAND", DEFAULT_REPL_COMMAND))
        if not repl_command:
            raise ValueError("LEAN_REPL_COMMAND must name an executable")

        return {
            # REPL settings
            "repl_command": repl_command,
            "repl_path": env.get("REPL_PATH") or None,
            "command_timeout": self._parse_number(
                "LEAN_REPL_TIMEOUT", float, DEFAULT_TIMEOUT
            ),
            "stream_limit": self._parse_number(
                "REPL_STREAM_LIMIT", int, DEFAULT_STREAM_LIMIT
            ),
            "shutdown_grace": self._parse_number(
                "REPL_SHUTDOWN_GRACE", float, DEFAULT_SHUTDOWN_GRACE
            ),
            "eof_grace": self._parse_number(
                "REPL_EOF_GRACE", float, DEFAULT_EOF_GRACE
            ),
            # API settings
            "host": env.get("HOST", "0.0.0.0"),
            "port": self._parse_number("PORT", int, DEFAULT_PORT),
            "log_level": env.get("LOG_LEVEL", "INFO").upper(),
            "debug": env.get("DEBUG", "false").lower() == "true",
        }

    def _parse_number(self, name: str, kind: type, default: Any) -> Any:
        """Parse a numeric environment variable, falling back to the default."""
        raw = self._environ.get(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return kind(raw)
        except ValueError:
            logger.warning(f"Invalid {name} environment variable {raw!r}, using default {default}")
            return default

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self._config.copy()

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> print(schema['required']['port'])
            'API server port'
        """
        return {
            "required": REQUIRED_CONFIG_KEYS.copy(),
            "optional": OPTIONAL_CONFIG_KEYS.copy(),
        }


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule"]
