"""Configuration management for data sessions."""

import copy
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog

CONFIG_PATH_ENV = "DATA_SESSIONS_CONFIG"
ENABLED_ENV = "DATA_SESSIONS_ENABLED"

# Default configuration
DEFAULT_CONFIG = {
    "logging": {
        "level": "INFO",
        "verbose": False,
        "debug": False,
        "terminal_safe": True,  # JSON logging, no ANSI escape codes
    },
    "sessions": {
        "enabled": True,
    },
    "persistence": {
        "db_path": str(Path.home() / ".data_sessions" / "sessions.db"),
    },
}

_FALSE_VALUES = {"0", "false", "no", "off"}


class DataSessionsConfig:
    """Configuration manager for data sessions."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to $DATA_SESSIONS_CONFIG
                or ~/.data_sessions/config.json
        """
        if config_path is None:
            env_path = os.environ.get(CONFIG_PATH_ENV)
            if env_path:
                config_path = Path(env_path)
            else:
                config_path = Path.home() / ".data_sessions" / "config.json"

        self.config_path = Path(config_path).expanduser()
        self.config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file, merged over the defaults."""
        config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_path.exists():
            try:
                with open(self.config_path) as f:
                    user_config = json.load(f)
                self._deep_merge(config, user_config)
            except (json.JSONDecodeError, OSError) as e:
                print(f"Warning: Invalid config file {self.config_path}, using defaults: {e}",
                      file=sys.stderr)

        enabled = os.environ.get(ENABLED_ENV)
        if enabled is not None:
            config["sessions"]["enabled"] = enabled.strip().lower() not in _FALSE_VALUES

        return config

    def _deep_merge(self, target: dict[str, Any], source: dict[str, Any]) -> None:
        """Deep merge source into target dictionary."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_merge(target[key], value)
            else:
                target[key] = value

    def configure_logging(self) -> None:
        """Configure structlog based on current config."""
        log_level = self.config["logging"]["level"]
        verbose = self.config["logging"]["verbose"]
        debug = self.config["logging"]["debug"]
        terminal_safe = self.config["logging"]["terminal_safe"]

        if debug:
            level = logging.DEBUG
        elif verbose:
            level = logging.INFO
        else:
            level = getattr(logging, str(log_level).upper(), logging.INFO)

        if terminal_safe and not (debug or verbose):
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer()

        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                renderer,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
            cache_logger_on_first_use=True,
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "logging.level")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        current = self.config

        for k in keys:
            if isinstance(current, dict) and k in current:
                current = current[k]
            else:
                return default

        return current

    @property
    def sessions_enabled(self) -> bool:
        return bool(self.get("sessions.enabled", True))

    @property
    def db_path(self) -> Path:
        return Path(self.get("persistence.db_path")).expanduser()


# Global configuration instance
config = DataSessionsConfig()
