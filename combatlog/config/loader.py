"""
Configuration loader for parser settings.

Allows users to override settings via YAML configuration files.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from . import settings as settings_module
from .settings import FramingPolicy, ParserSettings

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and applies custom configuration from YAML files."""

    @staticmethod
    def search_paths(config_path: Optional[str] = None):
        paths = [
            Path("combatlog.yaml"),
            Path("config/combatlog.yaml"),
            Path.home() / ".combatlog" / "combatlog.yaml",
        ]
        if config_path:
            paths.insert(0, Path(config_path))
        return paths

    @staticmethod
    def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to custom config file. If None, looks for:
                        1. combatlog.yaml in current directory
                        2. config/combatlog.yaml
                        3. ~/.combatlog/combatlog.yaml

        Returns:
            Configuration dictionary
        """
        for path in ConfigLoader.search_paths(config_path):
            if path.exists():
                try:
                    with open(path, "r") as f:
                        config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.error(f"Failed to load config from {path}: {e}")
                    continue

                if not isinstance(config, dict):
                    logger.error(f"Ignoring config {path}: expected a mapping")
                    continue

                logger.info(f"Loaded configuration from {path}")
                return config

        logger.debug("No custom configuration file found, using defaults")
        return {}

    @staticmethod
    def apply_config(config: Dict[str, Any], target: Optional[ParserSettings] = None) -> ParserSettings:
        """
        Apply configuration values to parser settings.

        Invalid values are logged and skipped.

        Args:
            config: Configuration dictionary from YAML
            target: Settings to update, defaults to the global settings

        Returns:
            The updated settings
        """
        if target is None:
            target = settings_module.get_settings()

        if "framing_policy" in config:
            try:
                target.framing_policy = FramingPolicy(str(config["framing_policy"]).lower())
                logger.debug(f"Framing policy: {target.framing_policy.value}")
            except ValueError as e:
                logger.warning(f"Invalid framing policy {config['framing_policy']}: {e}")

        if "nil_is_false" in config:
            value = config["nil_is_false"]
            if isinstance(value, bool):
                target.nil_is_false = value
            else:
                logger.warning(f"Invalid nil_is_false value {value!r}: expected true or false")

        if "max_reported_errors" in config:
            try:
                target.max_reported_errors = int(config["max_reported_errors"])
            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid max_reported_errors {config['max_reported_errors']}: {e}")

        for key in ("encoding_errors", "log_dir", "log_pattern", "log_level"):
            if key in config:
                setattr(target, key, str(config[key]))
                logger.debug(f"{key}: {config[key]}")

        unknown = set(config) - {
            "framing_policy",
            "nil_is_false",
            "max_reported_errors",
            "encoding_errors",
            "log_dir",
            "log_pattern",
            "log_level",
        }
        for key in sorted(unknown):
            logger.warning(f"Unknown configuration key: {key}")

        return target


def load_and_apply_config(config_path: Optional[str] = None) -> ParserSettings:
    """
    Load and apply configuration in one step.

    Args:
        config_path: Optional path to custom config file

    Returns:
        The global settings after overrides
    """
    loader = ConfigLoader()
    config = loader.load_config(config_path)
    if config:
        loader.apply_config(config)
    return settings_module.get_settings()
