"""Configuration management for the Step SDK.

This module provides configuration loading, validation and default value
handling for YAML and JSON configuration files, and the RegistryConfig the
registry consumes.

Precedence when the entrypoint resolves a value: command line flag, then
configuration file, then the defaults below.
"""

import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


DEFAULT_OUTPUT_PATH = "/tmp/step-output.json"
DEFAULT_LOG_DIR = "/tmp/step-logs"
CONFIG_ENV_VAR = "STEP_SDK_CONFIG"


class ConfigError(Exception):
    """Base exception for configuration errors."""
    pass


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""
    pass


def generate_execution_id() -> str:
    """Timestamp-derived execution id, e.g. ``exec-1760880000000``."""
    return f"exec-{int(time.time() * 1000)}"


class ConfigLoader:
    """Configuration loader with support for YAML and JSON formats.

    Supports:
    - Loading from YAML and JSON files
    - Configuration validation
    - Default value fallback
    - Nested configuration access with dot notation
    """

    DEFAULT_CONFIG = {
        "registry": {
            "output_path": DEFAULT_OUTPUT_PATH,
            "log_dir": DEFAULT_LOG_DIR,
        },
        "logging": {
            "level": "WARNING",
        },
    }

    VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize the configuration loader.

        Args:
            config_path: Path to a configuration file (YAML or JSON).
                         If None, uses default configuration only.

        Raises:
            ConfigError: If the file is missing, unreadable or malformed
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_env(cls) -> "ConfigLoader":
        """Create a loader for the file named by the STEP_SDK_CONFIG variable, if set."""
        return cls(os.environ.get(CONFIG_ENV_VAR) or None)

    def _load_config(self) -> None:
        self._config = self._deep_copy_dict(self.DEFAULT_CONFIG)

        if self.config_path is None:
            return

        if not self.config_path.exists():
            raise ConfigError(f"Configuration file not found: {self.config_path}")

        loaded_config = self._load_from_file(self.config_path)
        if not isinstance(loaded_config, dict):
            raise ConfigError(
                f"Configuration file {self.config_path} must contain a mapping"
            )
        self._deep_merge(self._config, loaded_config)

    def _load_from_file(self, path: Path) -> Any:
        """Load configuration from YAML or JSON file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If file format is unsupported or parsing fails
        """
        suffix = path.suffix.lower()

        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix in [".yaml", ".yml"]:
                    return yaml.safe_load(f) or {}
                elif suffix == ".json":
                    return json.load(f)
                else:
                    raise ConfigError(f"Unsupported configuration format: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse configuration file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file {path}: {e}")

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _deep_copy_dict(self, d: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in d.items():
            if isinstance(value, dict):
                result[key] = self._deep_copy_dict(value)
            elif isinstance(value, list):
                result[key] = value.copy()
            else:
                result[key] = value
        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Supports nested keys using dot notation (e.g., "registry.log_dir").

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def validate(self) -> bool:
        """Validate the configuration.

        Returns:
            True if configuration is valid

        Raises:
            ConfigValidationError: If validation fails
        """
        for key in ["registry", "logging"]:
            if not isinstance(self._config.get(key), dict):
                raise ConfigValidationError(f"Missing required configuration section: {key}")

        registry_config = self._config["registry"]
        for key in ["output_path", "log_dir"]:
            value = registry_config.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ConfigValidationError(
                    f"registry.{key} must be a non-empty string, got {value!r}"
                )

        level = self._config["logging"].get("level")
        if not isinstance(level, str) or level.upper() not in self.VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"Invalid logging.level: {level}. "
                f"Must be one of {self.VALID_LOG_LEVELS}"
            )

        return True

    def __repr__(self) -> str:
        return f"ConfigLoader(config_path={self.config_path})"


@dataclass
class RegistryConfig:
    """
    File locations and identity of one registry run.

    Attributes:
        output_path: File the single JSON output is written to
        log_dir: Directory holding ``{execution_id}.jsonl`` step logs
        execution_id: Identifier of this execution
    """

    output_path: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_PATH))
    log_dir: Path = field(default_factory=lambda: Path(DEFAULT_LOG_DIR))
    execution_id: str = field(default_factory=generate_execution_id)

    def __post_init__(self):
        self.output_path = Path(self.output_path)
        self.log_dir = Path(self.log_dir)
        if not self.execution_id or not self.execution_id.strip():
            raise ConfigValidationError("execution_id cannot be empty")
        # The id names the log file
        if "/" in self.execution_id or "\\" in self.execution_id:
            raise ConfigValidationError(
                f"execution_id must not contain path separators: {self.execution_id!r}"
            )

    @classmethod
    def from_loader(
        cls,
        loader: ConfigLoader,
        output_path: Optional[Union[str, Path]] = None,
        log_dir: Optional[Union[str, Path]] = None,
        execution_id: Optional[str] = None,
    ) -> "RegistryConfig":
        """
        Resolve a RegistryConfig, explicit arguments winning over the loader.

        Args:
            loader: Loaded configuration file (or defaults)
            output_path: Output file override
            log_dir: Log directory override
            execution_id: Execution id; generated when not given

        Returns:
            RegistryConfig
        """
        return cls(
            output_path=output_path or loader.get("registry.output_path", DEFAULT_OUTPUT_PATH),
            log_dir=log_dir or loader.get("registry.log_dir", DEFAULT_LOG_DIR),
            execution_id=execution_id or generate_execution_id(),
        )
