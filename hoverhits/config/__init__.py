"""Configuration management for hoverhits."""

from hoverhits.config.config_manager import ConfigContext
from hoverhits.config.config_manager import config_context
from hoverhits.config.config_manager import get_config
from hoverhits.config.config_manager import reset_config
from hoverhits.config.config_manager import set_config
from hoverhits.config.config_manager import update_config
from hoverhits.config.hoverhits_config import DEFAULT_CONFIG
from hoverhits.config.hoverhits_config import AnalysisConfig
from hoverhits.config.hoverhits_config import HoverConfig
from hoverhits.config.hoverhits_config import HoverHitsConfig

__all__ = [
    "DEFAULT_CONFIG",
    "AnalysisConfig",
    "ConfigContext",
    "HoverConfig",
    "HoverHitsConfig",
    "config_context",
    "get_config",
    "reset_config",
    "set_config",
    "update_config",
]
