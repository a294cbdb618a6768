"""Tests for analytics configuration settings and the provider."""

from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from sensorycompass.configuration.settings import (
    PRESETS,
    AlertSensitivitySettings,
    AnalyticsConfiguration,
    ConfigurationProvider,
    PatternAnalysisSettings,
    bootstrap_configuration,
    load_configuration,
    merge_configuration,
    save_configuration,
)
from sensorycompass.errors import InvalidConfigError, MissingConfigError


def test_defaults() -> None:
    config = AnalyticsConfiguration()
    assert config.pattern_analysis.min_data_points == 3
    assert config.pattern_analysis.high_intensity_threshold == 4
    assert config.enhanced_analysis.min_sample_size == 5
    assert config.enhanced_analysis.anomaly_threshold == 1.5
    assert config.time_windows.default_analysis_days == 30
    assert config.cache.ttl_seconds == 600
    assert config.alert_sensitivity.level == "medium"


def test_snapshots_are_frozen() -> None:
    config = AnalyticsConfiguration()
    with pytest.raises(Exception):
        config.pattern_analysis.min_data_points = 10  # type: ignore[misc]


class TestSensitivityScaling:
    def test_larger_multiplier_lowers_threshold(self) -> None:
        base = AlertSensitivitySettings()
        doubled = AlertSensitivitySettings(emotion_intensity_multiplier=2.0)
        assert doubled.scale_intensity(4) <= base.scale_intensity(4)
        assert doubled.scale_intensity(4) == 2

    @pytest.mark.parametrize("multiplier", [0.0, -1.0, math.inf, math.nan])
    def test_degenerate_multiplier_leaves_threshold(self, multiplier: float) -> None:
        settings = AlertSensitivitySettings(
            emotion_intensity_multiplier=multiplier,
            frequency_multiplier=multiplier,
            anomaly_multiplier=multiplier,
        )
        assert settings.scale_intensity(4) == 4
        assert settings.scale_frequency(0.3) == 0.3
        assert settings.scale_anomaly(1.5) == 1.5


class TestMerge:
    def test_merges_one_section_and_keeps_others(self) -> None:
        base = AnalyticsConfiguration()
        merged = merge_configuration(base, {"pattern_analysis": {"min_data_points": 7}})
        assert merged.pattern_analysis.min_data_points == 7
        assert merged.pattern_analysis.correlation_threshold == base.pattern_analysis.correlation_threshold
        assert merged.enhanced_analysis == base.enhanced_analysis
        assert base.pattern_analysis.min_data_points == 3

    def test_accepts_model_overrides(self) -> None:
        merged = merge_configuration(
            AnalyticsConfiguration(),
            {"pattern_analysis": PatternAnalysisSettings(min_data_points=9)},
        )
        assert merged.pattern_analysis.min_data_points == 9

    def test_unknown_section_rejected(self) -> None:
        with pytest.raises(InvalidConfigError):
            merge_configuration(AnalyticsConfiguration(), {"nonsense": {}})

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(InvalidConfigError):
            merge_configuration(AnalyticsConfiguration(), {"cache": {"size": 3}})


class TestProvider:
    """Subscription and update behavior."""

    def test_subscribers_called_in_order_with_new_snapshot(self) -> None:
        provider = ConfigurationProvider()
        calls = []
        provider.subscribe(lambda config: calls.append(("first", config.pattern_analysis.min_data_points)))
        provider.subscribe(lambda config: calls.append(("second", config.pattern_analysis.min_data_points)))

        provider.update({"pattern_analysis": {"min_data_points": 4}})

        assert calls == [("first", 4), ("second", 4)]

    def test_unsubscribe_is_idempotent(self) -> None:
        provider = ConfigurationProvider()
        calls = []
        unsubscribe = provider.subscribe(calls.append)
        unsubscribe()
        unsubscribe()
        provider.reset_to_defaults()
        assert calls == []

    def test_set_preset(self) -> None:
        provider = ConfigurationProvider()
        config = provider.set_preset("sensitive")
        assert config == PRESETS["sensitive"].config
        assert config.alert_sensitivity.level == "high"

    def test_unknown_preset(self) -> None:
        provider = ConfigurationProvider()
        with pytest.raises(InvalidConfigError):
            provider.set_preset("reckless")

    def test_reset_to_defaults(self) -> None:
        provider = ConfigurationProvider(PRESETS["conservative"].config)
        assert provider.reset_to_defaults() == AnalyticsConfiguration()

    def test_export_import_round_trip(self) -> None:
        source = ConfigurationProvider(PRESETS["conservative"].config)
        target = ConfigurationProvider()
        assert target.import_config(source.export_config()) is True
        assert target.get_config() == PRESETS["conservative"].config

    def test_import_rejects_bad_json(self) -> None:
        provider = ConfigurationProvider()
        calls = []
        provider.subscribe(calls.append)
        assert provider.import_config("{not json") is False
        assert provider.import_config(json.dumps({"cache": {"max_size": "lots"}})) is False
        assert provider.get_config() == AnalyticsConfiguration()
        assert calls == []

    def test_persists_changes_when_path_given(self, tmp_path: Path) -> None:
        path = tmp_path / "analytics.json"
        provider = ConfigurationProvider(path=path)
        provider.update({"cache": {"ttl_seconds": 30}})
        assert load_configuration(path).cache.ttl_seconds == 30

    def test_failed_save_keeps_previous_configuration(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        provider = ConfigurationProvider(path=blocker / "analytics.json")
        calls = []
        provider.subscribe(calls.append)

        with pytest.raises(OSError):
            provider.update({"pattern_analysis": {"min_data_points": 9}})

        assert provider.get_config() == AnalyticsConfiguration()
        assert calls == []


class TestPersistence:
    def test_load_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(MissingConfigError):
            load_configuration(tmp_path / "missing.json")

    def test_load_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "analytics.json"
        path.write_text("[]")
        with pytest.raises(InvalidConfigError):
            load_configuration(path)

    def test_save_load_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "analytics.json"
        save_configuration(PRESETS["sensitive"].config, path)
        assert load_configuration(path) == PRESETS["sensitive"].config

    def test_bootstrap_creates_default_config(self, tmp_path: Path) -> None:
        path = tmp_path / "analytics.json"
        config = bootstrap_configuration(path=path)
        assert path.exists()
        assert config == AnalyticsConfiguration()
        assert json.loads(path.read_text())["cache"]["max_size"] == 50

    def test_bootstrap_applies_overrides(self, tmp_path: Path) -> None:
        config = bootstrap_configuration(
            path=tmp_path / "analytics.json",
            overrides={"time_windows": {"recent_data_days": 3}},
        )
        assert config.time_windows.recent_data_days == 3
        assert config.time_windows.short_term_days == 14

    def test_bootstrap_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENSORYCOMPASS_CACHE_TTL", "45")
        monkeypatch.setenv("SENSORYCOMPASS_MIN_DATA_POINTS", "6")
        monkeypatch.setenv("SENSORYCOMPASS_SENSITIVITY", "HIGH")
        config = bootstrap_configuration(path=tmp_path / "analytics.json")
        assert config.cache.ttl_seconds == 45
        assert config.pattern_analysis.min_data_points == 6
        assert config.alert_sensitivity.level == "high"

    def test_bootstrap_bad_env_value(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENSORYCOMPASS_MIN_DATA_POINTS", "many")
        with pytest.raises(InvalidConfigError):
            bootstrap_configuration(path=tmp_path / "analytics.json")

    def test_bootstrap_invalid_sensitivity_level(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENSORYCOMPASS_SENSITIVITY", "extreme")
        with pytest.raises(InvalidConfigError):
            bootstrap_configuration(path=tmp_path / "analytics.json")
