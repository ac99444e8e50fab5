"""Configuration management.

Detection rules are mentor-editable, so every section accepts the
camelCase keys the persistence layer stores, ignores unknown keys, and
clamps out-of-range values to the nearest valid bound instead of
failing.  Application settings load from TOML files + environment
variables via pydantic-settings.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings

from .enums import EmotionCategory
from .errors import ConfigError, InvalidInputError

logger = logging.getLogger(__name__)


def _clamp(value, lo=None, hi=None, *, field: str = ""):
    clamped = value
    if lo is not None and clamped < lo:
        clamped = lo
    if hi is not None and clamped > hi:
        clamped = hi
    if clamped != value:
        logger.warning("Config value %s=%s clamped to %s", field, value, clamped)
    return clamped


class _Section(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Detector sections
# ---------------------------------------------------------------------------

class TiltConfig(_Section):
    enabled: bool = True
    consecutive_trades: int = 3
    max_interval_minutes: float = 60.0
    require_negative_result: bool = True
    emotion_categories: list[EmotionCategory] = Field(
        default_factory=lambda: [EmotionCategory.NEGATIVE, EmotionCategory.CRITICAL]
    )
    high_at: int = 4      # Run length escalating to HIGH
    critical_at: int = 5  # Run length escalating to CRITICAL

    @field_validator("consecutive_trades")
    @classmethod
    def _min_run(cls, v: int, info: ValidationInfo) -> int:
        return _clamp(v, 2, field=info.field_name)

    @field_validator("max_interval_minutes", "high_at", "critical_at")
    @classmethod
    def _non_negative(cls, v, info: ValidationInfo):
        return _clamp(v, 0, field=info.field_name)

    @model_validator(mode="after")
    def _order_breakpoints(self) -> "TiltConfig":
        if self.critical_at < self.high_at:
            self.critical_at = self.high_at
        return self


class RevengeConfig(_Section):
    enabled: bool = True
    trades_in_window: int = 3
    window_minutes: float = 15.0
    qty_multiplier: float = 1.5
    after_loss_only: bool = True
    revenge_pattern: str = "REVENGE"

    @field_validator("trades_in_window")
    @classmethod
    def _min_trades(cls, v: int, info: ValidationInfo) -> int:
        return _clamp(v, 1, field=info.field_name)

    @field_validator("window_minutes")
    @classmethod
    def _non_negative(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, field=info.field_name)

    @field_validator("qty_multiplier")
    @classmethod
    def _min_multiplier(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 1.0, field=info.field_name)


class OvertradingConfig(_Section):
    enabled: bool = True
    max_trades_per_day: int = 10
    warning_threshold: float = 0.8  # Fraction of max_trades_per_day

    @field_validator("max_trades_per_day")
    @classmethod
    def _min_trades(cls, v: int, info: ValidationInfo) -> int:
        return _clamp(v, 1, field=info.field_name)

    @field_validator("warning_threshold")
    @classmethod
    def _ratio(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, 1.0, field=info.field_name)


class FomoConfig(_Section):
    enabled: bool = True
    impulsive_patterns: list[str] = Field(default_factory=lambda: ["FOMO", "GREED"])
    notable_rate: float = 0.15

    @field_validator("notable_rate")
    @classmethod
    def _ratio(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, 1.0, field=info.field_name)


class FlowStateConfig(_Section):
    enabled: bool = True
    window_size: int = 5
    min_confidence: float = 70.0
    positive_weight: float = 0.4
    win_rate_weight: float = 0.4
    discipline_weight: float = 0.2
    discipline_patterns: list[str] = Field(default_factory=lambda: ["DISCIPLINE"])

    @field_validator("window_size")
    @classmethod
    def _min_window(cls, v: int, info: ValidationInfo) -> int:
        return _clamp(v, 1, field=info.field_name)

    @field_validator("min_confidence")
    @classmethod
    def _percent(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, 100.0, field=info.field_name)

    @field_validator("positive_weight", "win_rate_weight", "discipline_weight")
    @classmethod
    def _non_negative(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, field=info.field_name)


# ---------------------------------------------------------------------------
# Scoring sections
# ---------------------------------------------------------------------------

class TrendConfig(_Section):
    window: int = 3
    epsilon: float = 0.5  # In raw emotion-score units

    @field_validator("window")
    @classmethod
    def _min_window(cls, v: int, info: ValidationInfo) -> int:
        return _clamp(v, 1, field=info.field_name)

    @field_validator("epsilon")
    @classmethod
    def _non_negative(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, field=info.field_name)


class StatusThresholds(_Section):
    """Minimum adjusted score for each tier; below ``warning`` is CRITICAL."""

    healthy: float = Field(
        default=70.0,
        validation_alias=AliasChoices("healthy", "healthyMinScore", "healthy_min_score"),
    )
    attention: float = Field(
        default=50.0,
        validation_alias=AliasChoices(
            "attention", "attentionMinScore", "attention_min_score"
        ),
    )
    warning: float = Field(
        default=30.0,
        validation_alias=AliasChoices("warning", "warningMinScore", "warning_min_score"),
    )

    @field_validator("healthy", "attention", "warning")
    @classmethod
    def _percent(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, 100.0, field=info.field_name)

    @model_validator(mode="after")
    def _monotonic(self) -> "StatusThresholds":
        ordered = sorted((self.healthy, self.attention, self.warning), reverse=True)
        if ordered != [self.healthy, self.attention, self.warning]:
            logger.warning("Status thresholds re-ordered to %s", ordered)
            self.healthy, self.attention, self.warning = ordered
        return self


class PenaltyConfig(_Section):
    """Points subtracted from the period score per compliance event."""

    tilt_detected: float = 20.0
    revenge_detected: float = 15.0
    risk_violation: float = 5.0
    rr_violation: float = 5.0
    post_stop_trade: float = 10.0

    @field_validator("*")
    @classmethod
    def _non_negative(cls, v: float, info: ValidationInfo) -> float:
        return _clamp(v, 0.0, field=info.field_name)


class CorrelationConfig(_Section):
    greed_patterns: list[str] = Field(
        default_factory=lambda: ["GREED", "EUPHORIA", "FOMO"]
    )
    revenge_pattern: str = "REVENGE"


# ---------------------------------------------------------------------------
# Detection config (the mentor-editable rule set)
# ---------------------------------------------------------------------------

class DetectionConfig(_Section):
    tilt: TiltConfig = Field(default_factory=TiltConfig)
    revenge: RevengeConfig = Field(default_factory=RevengeConfig)
    overtrading: OvertradingConfig = Field(default_factory=OvertradingConfig)
    fomo: FomoConfig = Field(default_factory=FomoConfig)
    flow_state: FlowStateConfig = Field(default_factory=FlowStateConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    status_thresholds: StatusThresholds = Field(
        default_factory=StatusThresholds,
        validation_alias=AliasChoices(
            "statusThresholds", "status_thresholds", "studentStatus"
        ),
    )
    penalties: PenaltyConfig = Field(default_factory=PenaltyConfig)
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)

    @classmethod
    def from_mapping(cls, data: Any) -> "DetectionConfig":
        """Build from a (possibly partial) mapping; omitted keys use defaults."""
        if data is None:
            return cls()
        if isinstance(data, DetectionConfig):
            return data
        if not isinstance(data, dict):
            raise InvalidInputError("config", "detection config mapping", data)
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    # JSON file with the emotion registry; built-in defaults when unset
    emotions_path: str | None = None

    model_config = {"env_prefix": "EMOTIONAL_PROFILE_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    return Settings(**data)
