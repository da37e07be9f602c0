"""Global configuration management for hoverhits.

This module provides centralized configuration management with thread-safe
access and configuration validation.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    import types

from hoverhits.config.hoverhits_config import DEFAULT_CONFIG
from hoverhits.config.hoverhits_config import HoverHitsConfig

logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = {"code_heat_maps", "log_level"}
_HOVER_KEYS = {"debounce_ms", "warning_threshold", "too_many_points_text", "error_text"}
_ANALYSIS_KEYS = {"mapper", "effectful"}


class ConfigManager:
    """Thread-safe manager for process-wide configuration state."""

    def __init__(self, default_config: HoverHitsConfig) -> None:
        self._lock = threading.RLock()
        self._default_config = default_config
        self._current_config = default_config

    def get_config(self) -> HoverHitsConfig:
        """Get the current configuration in a thread-safe manner."""
        with self._lock:
            return self._current_config

    def set_config(self, config: HoverHitsConfig) -> None:
        """Set the current configuration in a thread-safe manner."""
        with self._lock:
            config.validate()
            self._current_config = config

    def _apply_changes(self, base: HoverHitsConfig, changes: dict[str, Any]) -> HoverHitsConfig:
        unknown_keys = sorted(set(changes) - _TOP_LEVEL_KEYS - _HOVER_KEYS - _ANALYSIS_KEYS)
        if unknown_keys:
            logger.warning("Ignoring unknown config key(s): %s", ", ".join(unknown_keys))

        hover = dataclasses.replace(
            base.hover, **{k: v for k, v in changes.items() if k in _HOVER_KEYS}
        )
        analysis = dataclasses.replace(
            base.analysis, **{k: v for k, v in changes.items() if k in _ANALYSIS_KEYS}
        )
        new_config = dataclasses.replace(
            base,
            hover=hover,
            analysis=analysis,
            **{k: v for k, v in changes.items() if k in _TOP_LEVEL_KEYS},
        )
        new_config.validate()
        return new_config

    def update_config(self, **kwargs: Any) -> None:
        """Update the current configuration with new values.

        Keys are flat; hover and analysis settings are routed to their
        sub-configs. Unknown keys are logged and ignored.
        """
        with self._lock:
            self._current_config = self._apply_changes(self._current_config, kwargs)

    def reset_config(self) -> None:
        """Reset configuration to defaults."""
        with self._lock:
            self._current_config = self._default_config

    def apply_context_changes(
        self, changes: dict[str, Any]
    ) -> tuple[HoverHitsConfig, HoverHitsConfig]:
        """Apply temporary configuration changes atomically.

        Returns:
            Tuple of (original_config, new_config).
        """
        with self._lock:
            original = self._current_config
            new_config = self._apply_changes(original, changes)
            self._current_config = new_config
            return original, new_config

    def restore_config(self, config: HoverHitsConfig) -> None:
        """Restore a previously captured configuration."""
        with self._lock:
            self._current_config = config


_config_manager = ConfigManager(DEFAULT_CONFIG)


def get_config() -> HoverHitsConfig:
    """Get the current configuration in a thread-safe manner."""
    return _config_manager.get_config()


def set_config(config: HoverHitsConfig) -> None:
    """Set the current configuration in a thread-safe manner.

    Args:
        config: The new configuration to set
    """
    _config_manager.set_config(config)


def update_config(**kwargs: Any) -> None:
    """Update the current configuration with new values.

    Args:
        **kwargs: Configuration values to update
    """
    _config_manager.update_config(**kwargs)


def reset_config() -> None:
    """Reset configuration to defaults."""
    _config_manager.reset_config()


class ConfigContext:
    """Context manager for temporary configuration changes.

    This allows for temporary configuration modifications that are
    automatically reverted when the context exits.
    """

    def __init__(self, **kwargs: Any):
        self._manager = _config_manager
        self._changes = kwargs
        self._original_config: HoverHitsConfig | None = None

    def __enter__(self) -> HoverHitsConfig:
        """Apply temporary configuration changes."""
        self._original_config, new_config = self._manager.apply_context_changes(self._changes)
        return new_config

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Restore original configuration."""
        if self._original_config is not None:
            self._manager.restore_config(self._original_config)


def config_context(**kwargs: Any) -> ConfigContext:
    """Create a context manager for temporary configuration changes."""
    return ConfigContext(**kwargs)
