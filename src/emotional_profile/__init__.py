"""Emotional profile engine for trading journals.

Turns a trader's journaled trades (each tagged with a self-reported
emotion and a financial result) into a behavioural risk profile.

Key components
--------------
build_ledger        Chronological, running-balance plan ledger
TiltDetector        Runs of trades in a negative emotional state
RevengeDetector     Rapid re-entry, explicit revenge, size escalation
OvertradingDetector Daily trade-count limit
FomoDetector        Impulsive-entry rate
FlowStateDetector   "In the zone" commendation
score_period        0..100 emotional score with trend
correlate           Plan breaches cross-referenced with emotion
merge_alerts        Deduplicated, severity-ranked alerts
analyze             The whole pipeline as one pure function
"""

from .analysis import analyze
from .core.config import DetectionConfig, Settings, load_settings
from .core.errors import ConfigError, EngineError, InvalidInputError
from .core.models import Plan, Trade
from .core.registry import EmotionDefinition, EmotionRegistry

__version__ = "1.4.0"

__all__ = [
    "analyze",
    "DetectionConfig",
    "Settings",
    "load_settings",
    "ConfigError",
    "EngineError",
    "InvalidInputError",
    "Plan",
    "Trade",
    "EmotionDefinition",
    "EmotionRegistry",
]
