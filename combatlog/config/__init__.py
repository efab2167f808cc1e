"""
Configuration module for the combat log parser.
"""

from .settings import (
    FramingPolicy,
    ParserSettings,
    get_settings,
    reload_settings,
)
from .loader import ConfigLoader, load_and_apply_config

__all__ = [
    "FramingPolicy",
    "ParserSettings",
    "get_settings",
    "reload_settings",
    "ConfigLoader",
    "load_and_apply_config",
]
