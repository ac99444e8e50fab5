"""Emotional scoring and student status."""

from .period import calculate_daily_scores, classify_trend, score_period
from .status import calculate_student_status, compliance_events

__all__ = [
    "calculate_daily_scores",
    "classify_trend",
    "score_period",
    "calculate_student_status",
    "compliance_events",
]
