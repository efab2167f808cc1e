"""
Configuration settings for the combat log parser.

Settings are read from environment variables and can be overridden by a
YAML configuration file (see ``loader.py``).
"""

import os
import logging
from dataclasses import dataclass
from enum import Enum


ENV_PREFIX = "COMBATLOG_"

DEFAULT_LOG_DIR = "C:\\Program Files (x86)\\World of Warcraft\\_retail_\\Logs"
DEFAULT_LOG_PATTERN = "*CombatLog*.txt"

ENCODING_ERROR_HANDLERS = ("strict", "ignore", "replace", "backslashreplace")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class FramingPolicy(Enum):
    """What the file driver does when a line has no valid timestamp."""

    # Report the line and keep going
    CONTINUE = "continue"
    # Abort if the first line fails, the file is probably not a combat log
    ABORT_ON_FIRST_LINE = "abort_on_first_line"
    # Abort on any framing failure
    ABORT = "abort"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


@dataclass
class ParserSettings:
    """Parser configuration settings."""

    framing_policy: FramingPolicy = FramingPolicy.ABORT_ON_FIRST_LINE
    nil_is_false: bool = False
    encoding_errors: str = "replace"
    max_reported_errors: int = 100

    # Log file discovery
    log_dir: str = DEFAULT_LOG_DIR
    log_pattern: str = DEFAULT_LOG_PATTERN

    log_level: str = "info"

    @classmethod
    def from_env(cls) -> "ParserSettings":
        """Load parser settings from environment variables."""
        return cls(
            framing_policy=FramingPolicy(
                _env("FRAMING_POLICY", FramingPolicy.ABORT_ON_FIRST_LINE.value).lower()
            ),
            nil_is_false=_env("NIL_IS_FALSE", "false").lower() == "true",
            encoding_errors=_env("ENCODING_ERRORS", "replace"),
            max_reported_errors=int(_env("MAX_REPORTED_ERRORS", "100")),
            log_dir=_env("LOG_DIR", DEFAULT_LOG_DIR),
            log_pattern=_env("LOG_PATTERN", DEFAULT_LOG_PATTERN),
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )

    def validate(self):
        """Validate configuration settings."""
        errors = []

        if self.encoding_errors not in ENCODING_ERROR_HANDLERS:
            errors.append(f"Invalid encoding error handler: {self.encoding_errors}")

        if self.max_reported_errors < 0:
            errors.append(f"max_reported_errors must not be negative: {self.max_reported_errors}")

        if self.log_level.lower() not in LOG_LEVELS:
            errors.append(f"Invalid log level: {self.log_level}")

        if not self.log_pattern:
            errors.append("log_pattern must not be empty")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def setup_logging(self):
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def log_configuration(self):
        """Log current configuration."""
        logger = logging.getLogger(__name__)

        logger.debug("=== Parser Configuration ===")
        logger.debug(f"Framing policy: {self.framing_policy.value}")
        logger.debug(f"nil flags are false: {self.nil_is_false}")
        logger.debug(f"Encoding errors: {self.encoding_errors}")
        logger.debug(f"Max reported errors: {self.max_reported_errors}")
        logger.debug(f"Log directory: {self.log_dir} ({self.log_pattern})")
        logger.debug(f"Log Level: {self.log_level}")


# Global settings instance
settings = ParserSettings.from_env()


def get_settings() -> ParserSettings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> ParserSettings:
    """Reload settings from environment variables."""
    global settings
    settings = ParserSettings.from_env()
    return settings
