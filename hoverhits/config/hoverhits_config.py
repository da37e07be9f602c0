"""Centralized configuration for the hover hit-count pipeline.

Timing, display thresholds and analysis parameters live here instead of being
hard-coded in the dispatcher and formatters.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Literal

from hoverhits.errors import ConfigurationError


@dataclass
class HoverConfig:
    """Hover debounce and hit-count display settings."""

    debounce_ms: int = 200
    warning_threshold: int = 200
    too_many_points_text: str = "10k+ hits"
    error_text: str = "Error"

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@dataclass
class AnalysisConfig:
    """Parameters sent with every hit-count analysis."""

    mapper: str = ""
    effectful: bool = True


@dataclass
class HoverHitsConfig:
    """Top-level configuration.

    ``code_heat_maps`` selects the bulk per-source counter as the initial
    counting strategy; the dispatcher may still fall back to per-location
    analyses for the rest of its lifetime.
    """

    hover: HoverConfig = field(default_factory=HoverConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    code_heat_maps: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def from_mapping(cls, prefs: Mapping[str, Any]) -> HoverHitsConfig:
        """Create config from a flat mapping of user preferences."""
        hover = HoverConfig(
            debounce_ms=prefs.get("hoverDebounceMs", 200),
            warning_threshold=prefs.get("hitCountWarningThreshold", 200),
        )
        analysis = AnalysisConfig(
            mapper=prefs.get("analysisMapper", ""),
            effectful=prefs.get("analysisEffectful", True),
        )
        config = cls(
            hover=hover,
            analysis=analysis,
            code_heat_maps=prefs.get("codeHeatMaps", False),
            log_level=prefs.get("logLevel", "INFO"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration and raise errors for invalid setups."""
        if self.hover.debounce_ms < 0:
            raise ConfigurationError(
                "Hover debounce must not be negative",
                config_key="debounce_ms",
                details={"debounce_ms": self.hover.debounce_ms},
            )
        if self.hover.warning_threshold < 0:
            raise ConfigurationError(
                "Hit-count warning threshold must not be negative",
                config_key="warning_threshold",
                details={"warning_threshold": self.hover.warning_threshold},
            )
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                config_key="log_level",
            )


# Default configuration instance
DEFAULT_CONFIG = HoverHitsConfig()
