"""Tests for detection config parsing and settings loading."""

import pytest

from emotional_profile.core.config import (
    DetectionConfig,
    Settings,
    StatusThresholds,
    TiltConfig,
    load_settings,
)
from emotional_profile.core.enums import EmotionCategory
from emotional_profile.core.errors import ConfigError, InvalidInputError


class TestDetectionConfigDefaults:
    def test_defaults(self):
        cfg = DetectionConfig()
        assert cfg.tilt.consecutive_trades == 3
        assert cfg.tilt.max_interval_minutes == 60
        assert cfg.tilt.require_negative_result is True
        assert cfg.revenge.trades_in_window == 3
        assert cfg.revenge.window_minutes == 15
        assert cfg.revenge.qty_multiplier == 1.5
        assert cfg.overtrading.max_trades_per_day == 10
        assert cfg.overtrading.warning_threshold == 0.8
        assert cfg.status_thresholds.healthy == 70
        assert cfg.status_thresholds.attention == 50
        assert cfg.status_thresholds.warning == 30

    def test_none_mapping_gives_defaults(self):
        assert DetectionConfig.from_mapping(None) == DetectionConfig()

    def test_existing_config_passes_through(self):
        cfg = DetectionConfig()
        assert DetectionConfig.from_mapping(cfg) is cfg


class TestDetectionConfigMapping:
    def test_camel_case_keys(self):
        cfg = DetectionConfig.from_mapping({
            "tilt": {"consecutiveTrades": 4, "maxIntervalMinutes": 30},
            "revenge": {"qtyMultiplier": 2},
            "overtrading": {"maxTradesPerDay": 6},
            "statusThresholds": {"healthy": 80, "attention": 60, "warning": 40},
        })
        assert cfg.tilt.consecutive_trades == 4
        assert cfg.tilt.max_interval_minutes == 30
        assert cfg.revenge.qty_multiplier == 2
        assert cfg.overtrading.max_trades_per_day == 6
        assert cfg.status_thresholds.healthy == 80

    def test_partial_section_keeps_other_defaults(self):
        cfg = DetectionConfig.from_mapping({"tilt": {"consecutiveTrades": 5}})
        assert cfg.tilt.max_interval_minutes == 60
        assert cfg.revenge.window_minutes == 15

    def test_unknown_keys_ignored(self):
        cfg = DetectionConfig.from_mapping({
            "tilt": {"consecutiveTrades": 4, "colour": "red"},
            "somethingElse": {"a": 1},
        })
        assert cfg.tilt.consecutive_trades == 4

    def test_threshold_aliases(self):
        cfg = DetectionConfig.from_mapping(
            {"studentStatus": {"healthyMinScore": 75, "attentionMinScore": 55}}
        )
        assert cfg.status_thresholds.healthy == 75
        assert cfg.status_thresholds.attention == 55

    def test_non_mapping_raises(self):
        with pytest.raises(InvalidInputError):
            DetectionConfig.from_mapping(["tilt"])


class TestClamping:
    def test_negative_interval_clamped(self):
        assert TiltConfig(max_interval_minutes=-5).max_interval_minutes == 0

    def test_run_length_floor(self):
        assert TiltConfig(consecutive_trades=0).consecutive_trades == 2

    def test_critical_breakpoint_not_below_high(self):
        cfg = TiltConfig(high_at=6, critical_at=4)
        assert cfg.critical_at == 6

    def test_warning_ratio_clamped(self):
        cfg = DetectionConfig.from_mapping({"overtrading": {"warningThreshold": 3}})
        assert cfg.overtrading.warning_threshold == 1.0

    def test_qty_multiplier_floor(self):
        cfg = DetectionConfig.from_mapping({"revenge": {"qtyMultiplier": 0.2}})
        assert cfg.revenge.qty_multiplier == 1.0

    def test_thresholds_reordered_monotonic(self):
        t = StatusThresholds(healthy=30, attention=70, warning=50)
        assert (t.healthy, t.attention, t.warning) == (70, 50, 30)

    def test_threshold_above_100_clamped(self):
        assert StatusThresholds(healthy=150).healthy == 100

    def test_emotion_categories_parsed(self):
        cfg = TiltConfig(emotion_categories=["CRITICAL"])
        assert cfg.emotion_categories == [EmotionCategory.CRITICAL]


class TestSettings:
    def test_default_settings(self):
        settings = Settings()
        assert settings.observability.log_level == "INFO"
        assert settings.emotions_path is None

    def test_load_from_toml(self, tmp_path):
        path = tmp_path / "engine.toml"
        path.write_text(
            "[detection.tilt]\n"
            "consecutiveTrades = 4\n"
            "[observability]\n"
            'log_format = "json"\n'
        )
        settings = load_settings(path)
        assert settings.detection.tilt.consecutive_trades == 4
        assert settings.observability.log_format == "json"

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "nope.toml")
        assert settings.detection == DetectionConfig()

    def test_invalid_toml_raises_config_error(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[detection\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_overrides_applied(self):
        settings = load_settings(overrides={"emotions_path": "emotions.json"})
        assert settings.emotions_path == "emotions.json"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("EMOTIONAL_PROFILE_OBSERVABILITY__LOG_LEVEL", "DEBUG")
        assert Settings().observability.log_level == "DEBUG"
