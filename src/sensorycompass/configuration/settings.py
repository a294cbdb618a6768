"""Typed analytics configuration and the provider that owns it.

Thresholds, time windows, alert sensitivity and cache behavior are wrapped in
frozen Pydantic models so engines can hold a snapshot without worrying about
it changing underneath them. A :class:`ConfigurationProvider` is the single
mutable handle: it merges updates, persists them when given a path, and
notifies subscribers with each new snapshot.
"""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sensorycompass.errors import InvalidConfigError, MissingConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".sensorycompass" / "analytics.json"

SensitivityLevel = Literal["low", "medium", "high"]
ConfigListener = Callable[["AnalyticsConfiguration"], None]


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True)


class PatternAnalysisSettings(_Section):
    """Thresholds for the basic pattern engine."""

    min_data_points: int = Field(3, description="Records required before any pattern is reported")
    high_intensity_threshold: float = Field(4, description="Intensity at or above which a record is high intensity")
    correlation_threshold: float = Field(0.25, description="Minimum |r| for an environmental correlation")
    emotion_consistency_threshold: float = Field(0.4, description="Dominant emotion share for a consistency pattern")
    moderate_negative_threshold: float = Field(0.4, description="Share of moderate negative records for a trend")
    concern_frequency_threshold: float = Field(0.3, description="Share of high-intensity negative records for concern")


class EnhancedAnalysisSettings(_Section):
    """Thresholds for trends, anomalies and risk assessment."""

    min_sample_size: int = Field(5, description="Points required for trend and correlation statistics")
    trend_threshold: float = Field(0.05, description="Per-day rate below which a trend is stable")
    anomaly_threshold: float = Field(1.5, description="Z-score above which a value is anomalous")
    prediction_confidence_threshold: float = Field(0.6, description="Minimum confidence for predictions")
    risk_assessment_threshold: float = Field(3, description="Recent high-intensity negatives that signal risk")


class AlertSensitivitySettings(_Section):
    """Multipliers applied to thresholds.

    A multiplier above 1 divides the matching threshold, so it makes the
    engines more sensitive. Non-positive or non-finite multipliers leave the
    threshold unchanged.
    """

    level: SensitivityLevel = "medium"
    emotion_intensity_multiplier: float = 1.0
    frequency_multiplier: float = 1.0
    anomaly_multiplier: float = 1.0

    def scale_intensity(self, threshold: float) -> float:
        return _scale(threshold, self.emotion_intensity_multiplier)

    def scale_frequency(self, threshold: float) -> float:
        return _scale(threshold, self.frequency_multiplier)

    def scale_anomaly(self, threshold: float) -> float:
        return _scale(threshold, self.anomaly_multiplier)


def _scale(threshold: float, multiplier: float) -> float:
    if not math.isfinite(multiplier) or multiplier <= 0:
        return threshold
    return threshold / multiplier


class TimeWindowSettings(_Section):
    """Look-back windows in days."""

    default_analysis_days: int = 30
    recent_data_days: int = 7
    short_term_days: int = 14
    long_term_days: int = 90


class CacheSettings(_Section):
    """Behavior of the analysis result cache."""

    ttl_seconds: float = Field(600, description="Maximum age of a cached result")
    max_size: int = Field(50, description="Maximum number of cached results")
    invalidate_on_config_change: bool = Field(True, description="Drop all cached results on config change")


class AnalyticsConfiguration(BaseModel):
    """Root analytics configuration snapshot."""

    model_config = ConfigDict(frozen=True)

    pattern_analysis: PatternAnalysisSettings = Field(default_factory=PatternAnalysisSettings)
    enhanced_analysis: EnhancedAnalysisSettings = Field(default_factory=EnhancedAnalysisSettings)
    alert_sensitivity: AlertSensitivitySettings = Field(default_factory=AlertSensitivitySettings)
    time_windows: TimeWindowSettings = Field(default_factory=TimeWindowSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


SECTION_NAMES = tuple(AnalyticsConfiguration.model_fields)


@dataclass(frozen=True)
class ConfigPreset:
    """Named, documented configuration bundle."""

    name: str
    description: str
    config: AnalyticsConfiguration


PRESETS: Dict[str, ConfigPreset] = {
    "conservative": ConfigPreset(
        name="Conservative",
        description="Higher thresholds, fewer alerts, more data required",
        config=AnalyticsConfiguration(
            pattern_analysis=PatternAnalysisSettings(
                min_data_points=5,
                correlation_threshold=0.4,
                concern_frequency_threshold=0.4,
            ),
            enhanced_analysis=EnhancedAnalysisSettings(anomaly_threshold=2.0, min_sample_size=8),
            alert_sensitivity=AlertSensitivitySettings(
                level="low",
                emotion_intensity_multiplier=0.8,
                frequency_multiplier=0.8,
                anomaly_multiplier=0.8,
            ),
        ),
    ),
    "balanced": ConfigPreset(
        name="Balanced",
        description="Default settings, balanced sensitivity",
        config=AnalyticsConfiguration(),
    ),
    "sensitive": ConfigPreset(
        name="Sensitive",
        description="Lower thresholds, more alerts, less data required",
        config=AnalyticsConfiguration(
            pattern_analysis=PatternAnalysisSettings(
                min_data_points=2,
                correlation_threshold=0.15,
                concern_frequency_threshold=0.2,
            ),
            enhanced_analysis=EnhancedAnalysisSettings(anomaly_threshold=1.0, min_sample_size=3),
            alert_sensitivity=AlertSensitivitySettings(
                level="high",
                emotion_intensity_multiplier=1.2,
                frequency_multiplier=1.2,
                anomaly_multiplier=1.2,
            ),
        ),
    ),
}


def merge_configuration(
    base: AnalyticsConfiguration, partial: Mapping[str, Any]
) -> AnalyticsConfiguration:
    """Shallow-merge ``partial`` into ``base`` one section at a time.

    Values are taken as given; nothing is range-checked here.

    Raises:
        InvalidConfigError: for unknown section or field names.
    """
    sections: Dict[str, BaseModel] = {}
    for section_name, overrides in partial.items():
        if section_name not in SECTION_NAMES:
            raise InvalidConfigError(
                f"Unknown configuration section '{section_name}'",
                details={"section": section_name},
            )
        current: BaseModel = getattr(base, section_name)
        if isinstance(overrides, BaseModel):
            overrides = overrides.model_dump(exclude_unset=True)
        unknown = set(overrides) - set(type(current).model_fields)
        if unknown:
            raise InvalidConfigError(
                f"Unknown field(s) for '{section_name}': {', '.join(sorted(unknown))}",
                details={"section": section_name},
            )
        sections[section_name] = current.model_copy(update=dict(overrides))
    return base.model_copy(update=sections)


class ConfigurationProvider:
    """Owner of the current analytics configuration.

    Subscribers are called synchronously, in registration order, with the new
    snapshot after every change. When ``path`` is given, every change is also
    written to disk.

    Example:
        >>> provider = ConfigurationProvider()
        >>> unsubscribe = provider.subscribe(print)
        >>> provider.update({"pattern_analysis": {"min_data_points": 4}})
        >>> unsubscribe()
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfiguration] = None,
        *,
        path: Optional[Path] = None,
    ) -> None:
        self._config = config or AnalyticsConfiguration()
        self._path = path
        self._listeners: List[ConfigListener] = []

    def get_config(self) -> AnalyticsConfiguration:
        return self._config

    def subscribe(self, callback: ConfigListener) -> Callable[[], None]:
        """Register ``callback`` and return an idempotent unsubscribe function."""
        self._listeners.append(callback)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if active:
                active = False
                self._listeners.remove(callback)

        return unsubscribe

    def update(self, partial: Mapping[str, Any]) -> AnalyticsConfiguration:
        """Merge ``partial`` section by section and notify subscribers."""
        self._replace(merge_configuration(self._config, partial), reason="update")
        return self._config

    def set_preset(self, name: str) -> AnalyticsConfiguration:
        """Switch to a named preset."""
        preset = PRESETS.get(name)
        if preset is None:
            raise InvalidConfigError(
                f"Unknown preset '{name}'. Available: {', '.join(PRESETS)}",
                details={"preset": name},
            )
        self._replace(preset.config, reason=f"preset:{name}")
        return self._config

    def reset_to_defaults(self) -> AnalyticsConfiguration:
        self._replace(AnalyticsConfiguration(), reason="reset")
        return self._config

    def export_config(self) -> str:
        """Current configuration as pretty-printed JSON."""
        return json.dumps(self._config.model_dump(mode="json"), indent=2)

    def import_config(self, text: str) -> bool:
        """Replace the configuration from JSON text.

        Returns False, leaving the configuration untouched, when the text is
        not valid JSON or does not describe a configuration.
        """
        try:
            imported = AnalyticsConfiguration.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.error("Failed to import configuration: %s", exc)
            return False
        self._replace(imported, reason="import")
        return True

    def _replace(self, config: AnalyticsConfiguration, *, reason: str) -> None:
        # A failed write leaves the current snapshot and subscribers untouched.
        if self._path is not None:
            save_configuration(config, self._path)
        self._config = config
        logger.info("Analytics configuration changed (%s)", reason)
        for listener in list(self._listeners):
            listener(config)


def load_configuration(path: Path = DEFAULT_CONFIG_PATH) -> AnalyticsConfiguration:
    """Load configuration from disk or raise if missing or invalid."""

    if not path.exists():
        raise MissingConfigError(f"Configuration file not found at {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return AnalyticsConfiguration.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise InvalidConfigError(f"Invalid configuration in {path}: {exc}") from exc


def save_configuration(config: AnalyticsConfiguration, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Persist configuration to disk as JSON."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(mode="json"), indent=2), encoding="utf-8")


def bootstrap_configuration(
    *,
    path: Path = DEFAULT_CONFIG_PATH,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AnalyticsConfiguration:
    """Create or load configuration respecting environment overrides."""

    if path.exists():
        config = load_configuration(path)
    else:
        config = AnalyticsConfiguration()
        save_configuration(config, path)

    merged = config.model_dump(mode="python")
    merged = _apply_overrides(merged, overrides or {})
    merged = _apply_env_overrides(merged)

    try:
        resolved = AnalyticsConfiguration.model_validate(merged)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid configuration overrides: {exc}") from exc
    save_configuration(resolved, path)
    return resolved


def _apply_overrides(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = base.copy()
    for section, values in overrides.items():
        if section not in SECTION_NAMES:
            raise InvalidConfigError(f"Unknown configuration section '{section}'")
        merged[section] = {**merged.get(section, {}), **values}
    return merged


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    cache = data.setdefault("cache", {})
    _set_env_override(cache, "ttl_seconds", "SENSORYCOMPASS_CACHE_TTL", cast_float=True)

    pattern = data.setdefault("pattern_analysis", {})
    _set_env_override(pattern, "min_data_points", "SENSORYCOMPASS_MIN_DATA_POINTS", cast_int=True)

    sensitivity = data.setdefault("alert_sensitivity", {})
    _set_env_override(sensitivity, "level", "SENSORYCOMPASS_SENSITIVITY")
    return data


def _set_env_override(
    mapping: Dict[str, Any],
    key: str,
    env_name: str,
    *,
    cast_int: bool = False,
    cast_float: bool = False,
) -> None:
    raw = os.getenv(env_name)
    if raw is None:
        return
    try:
        if cast_int:
            mapping[key] = int(raw)
        elif cast_float:
            mapping[key] = float(raw)
        else:
            mapping[key] = raw.lower()
    except ValueError as exc:
        raise InvalidConfigError(f"{env_name} has an invalid value: {raw!r}") from exc


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "PRESETS",
    "SECTION_NAMES",
    "AlertSensitivitySettings",
    "AnalyticsConfiguration",
    "CacheSettings",
    "ConfigPreset",
    "ConfigurationProvider",
    "EnhancedAnalysisSettings",
    "PatternAnalysisSettings",
    "TimeWindowSettings",
    "bootstrap_configuration",
    "load_configuration",
    "merge_configuration",
    "save_configuration",
]
