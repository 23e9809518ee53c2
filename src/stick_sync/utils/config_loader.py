"""Configuration loader for stick-sync."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from stick_sync.models.config import AppConfig, FingerprintStrategy

log = structlog.stdlib.get_logger()

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


class ConfigurationError(Exception):
    """A configuration file that cannot be read, resolved or validated."""


class ConfigLoader:
    """Loads and validates configuration from YAML files and environment variables."""

    def __init__(self, config_dir: Path | str = CONFIG_DIR) -> None:
        """
        Initialize the ConfigLoader.

        Args:
            config_dir: Directory searched for <env>.yaml and default.yaml
        """
        self.config_dir = Path(config_dir)

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from a YAML file with environment variable overrides.

        With no explicit path, config/<STICK_SYNC_ENV>.yaml is used, then
        config/default.yaml. If neither exists the built-in defaults apply,
        still overridable through STICK_SYNC_* environment variables.

        Args:
            config_path: Path to a configuration YAML file

        Returns:
            AppConfig: Validated application configuration

        Raises:
            ConfigurationError: If the file is unreadable, references an unset
                variable, or fails validation
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        if config_path is None:
            log.info("no_configuration_file_using_defaults", config_dir=str(self.config_dir))
            config_dict: Dict[str, Any] = {}
        else:
            log.info("loading_configuration", config_path=config_path)
            config_dict = self._substitute_env_vars(self._load_yaml_file(config_path))

        try:
            app_config = AppConfig(**config_dict)
        except ValidationError as e:
            log.error("configuration_validation_failed", error=str(e))
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        log.info("configuration_loaded_successfully")
        return app_config

    def _get_default_config_path(self) -> Optional[str]:
        """Pick the configuration file for the current environment, if any."""
        env = os.getenv("STICK_SYNC_ENV", "default")

        for candidate in (self.config_dir / f"{env}.yaml", self.config_dir / "default.yaml"):
            if candidate.exists():
                return str(candidate)

        return None

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Read one YAML file into a dict; an empty file yields {}.

        Raises:
            ConfigurationError: If the file is missing, unreadable, not YAML or not a mapping
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}") from e

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _substitute_env_vars(self, node: Any) -> Any:
        """Resolve ${VAR} references in every string of a parsed YAML tree.

        Raises:
            ConfigurationError: If a referenced environment variable is not set
        """
        if isinstance(node, dict):
            return {key: self._substitute_env_vars(value) for key, value in node.items()}
        if isinstance(node, list):
            return [self._substitute_env_vars(item) for item in node]
        if isinstance(node, str):
            return ENV_REFERENCE.sub(_lookup_env_reference, node)
        return node

    def validate_config(self, config: AppConfig) -> list[str]:
        """List settings that are valid but likely to surprise on a real stick."""
        warnings = []

        if config.sync.fingerprint_strategy is FingerprintStrategy.CONTENT:
            warnings.append(
                "fingerprint_strategy 'content' reads every file on both sides; "
                "expect slow runs on removable media"
            )

        if config.sync.max_retries > 0 and not config.sync.continue_on_error:
            warnings.append(
                "max_retries is set while continue_on_error is off; "
                "every retry restarts the walk from the root"
            )

        if not config.sync.check_capacity:
            warnings.append("check_capacity is off; a full device fails mid-sync")

        if warnings:
            log.warning("configuration_validation_warnings", warnings=warnings)

        return warnings


def _lookup_env_reference(match: re.Match) -> str:
    name = match.group(1)
    value = os.getenv(name)
    if value is None:
        raise ConfigurationError(
            f"Environment variable {name} is referenced in the configuration but not set"
        )
    return value
