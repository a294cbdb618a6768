"""Configuration loading utilities for SensoryCompass."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    PRESETS,
    AlertSensitivitySettings,
    AnalyticsConfiguration,
    CacheSettings,
    ConfigurationProvider,
    EnhancedAnalysisSettings,
    PatternAnalysisSettings,
    TimeWindowSettings,
    bootstrap_configuration,
    load_configuration,
    save_configuration,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "PRESETS",
    "AlertSensitivitySettings",
    "AnalyticsConfiguration",
    "CacheSettings",
    "ConfigurationProvider",
    "EnhancedAnalysisSettings",
    "PatternAnalysisSettings",
    "TimeWindowSettings",
    "bootstrap_configuration",
    "load_configuration",
    "save_configuration",
]
