"""Enumerations used across the emotional profile engine."""

from enum import Enum


class EmotionCategory(str, Enum):
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"
    CRITICAL = "CRITICAL"


class Side(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class RoStatus(str, Enum):
    """Risk-per-operation verdict computed upstream."""

    CONFORME = "CONFORME"
    FORA_DO_PLANO = "FORA_DO_PLANO"


class RrStatus(str, Enum):
    """Reward:risk verdict computed upstream."""

    CONFORME = "CONFORME"
    NAO_CONFORME = "NAO_CONFORME"


class LedgerScope(str, Enum):
    CYCLE = "cycle"    # cycleGoal / cycleStop
    PERIOD = "period"  # periodGoal / periodStop


class LedgerEvent(str, Enum):
    GOAL_HIT = "GOAL_HIT"
    STOP_HIT = "STOP_HIT"
    POST_GOAL = "POST_GOAL"
    POST_STOP = "POST_STOP"
    RO_FORA = "RO_FORA"  # Risk per operation above plan
    RR_FORA = "RR_FORA"  # Reward:risk below plan


class FinancialStatus(str, Enum):
    NO_DATA = "NO_DATA"
    ON_TRACK = "ON_TRACK"
    GOAL_HIT = "GOAL_HIT"
    GOAL_GAVE_BACK = "GOAL_GAVE_BACK"
    GOAL_TO_STOP = "GOAL_TO_STOP"
    STOP_HIT = "STOP_HIT"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Sort rank: 0 is the most severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class FindingType(str, Enum):
    # Detectors
    TILT = "TILT"
    REVENGE_RAPID_SEQUENCE = "REVENGE_RAPID_SEQUENCE"
    REVENGE_EXPLICIT_EMOTION = "REVENGE_EXPLICIT_EMOTION"
    REVENGE_SIZE_ESCALATION = "REVENGE_SIZE_ESCALATION"
    OVERTRADING = "OVERTRADING"
    OVERTRADING_WARNING = "OVERTRADING_WARNING"
    FOMO = "FOMO"
    FLOW_STATE = "FLOW_STATE"

    # Compliance correlation
    RISK_BREACH_EMOTIONAL = "RISK_BREACH_EMOTIONAL"
    RR_BREACH_EMOTIONAL = "RR_BREACH_EMOTIONAL"
    REVENGE_CONFIRMED = "REVENGE_CONFIRMED"
    CRITICAL_EMOTION_AFTER_STOP = "CRITICAL_EMOTION_AFTER_STOP"
    GREED_CONFIRMED = "GREED_CONFIRMED"


class AlertType(str, Enum):
    TILT_DETECTED = "TILT_DETECTED"
    REVENGE_DETECTED = "REVENGE_DETECTED"
    OVERTRADING = "OVERTRADING"
    FOMO = "FOMO"
    RISK_BREACH_EMOTIONAL = "RISK_BREACH_EMOTIONAL"
    RR_BREACH_EMOTIONAL = "RR_BREACH_EMOTIONAL"
    REVENGE_CONFIRMED = "REVENGE_CONFIRMED"
    CRITICAL_EMOTION_AFTER_STOP = "CRITICAL_EMOTION_AFTER_STOP"
    GREED_CONFIRMED = "GREED_CONFIRMED"
    STATUS_CRITICAL = "STATUS_CRITICAL"


class StudentStatus(str, Enum):
    HEALTHY = "HEALTHY"
    ATTENTION = "ATTENTION"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class Trend(str, Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    WORSENING = "WORSENING"


class EmotionalCorrelation(str, Enum):
    STRONG_NEGATIVE = "STRONG_NEGATIVE"
    MODERATE_NEGATIVE = "MODERATE_NEGATIVE"
    NEUTRAL = "NEUTRAL"
    MODERATE_POSITIVE = "MODERATE_POSITIVE"
    STRONG_POSITIVE = "STRONG_POSITIVE"
