"""Emotional scoring: per-trade score, period score, daily series, trend.

The period score maps the average entry-emotion score from the
registry's [-4, +3] range onto 0..100 (``-4 -> 0``, ``+3 -> 100``),
rounded half-up and clamped.  An empty period scores 100: no trades,
nothing wrong.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Sequence

from ..core.config import TrendConfig
from ..core.enums import EmotionCategory, Trend
from ..core.models import Trade
from ..core.registry import EmotionRegistry
from ..journal.findings import chronological

logger = logging.getLogger(__name__)

MIN_RAW_SCORE = -4.0
MAX_RAW_SCORE = 3.0

ENTRY_WEIGHT = 0.6
EXIT_WEIGHT = 0.4

TOP_EMOTIONS_LIMIT = 5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def normalize_score(raw_average: float) -> int:
    """Rescale a raw average emotion score onto a clamped 0..100 integer."""
    span = MAX_RAW_SCORE - MIN_RAW_SCORE
    scaled = (raw_average - MIN_RAW_SCORE) / span * 100
    return max(0, min(100, round_half_up(scaled)))


def trade_score(trade: Trade, registry: EmotionRegistry) -> int:
    """Registry score of the entry emotion; 0 when absent or unmapped."""
    return registry.score_of(trade.emotion_entry)


def trade_emotional_detail(trade: Trade, registry: EmotionRegistry) -> dict[str, Any]:
    """Entry/exit comparison for one trade.

    Informational only; the period score uses entry scores alone.  A
    trade without an exit emotion is compared against its entry.
    """
    entry = registry.get(trade.emotion_entry)
    exit_ = registry.get(trade.emotion_exit) if trade.emotion_exit else entry
    weighted = entry.score * ENTRY_WEIGHT + exit_.score * EXIT_WEIGHT
    return {
        "trade_id": trade.id,
        "date": trade.date.isoformat() if trade.date else None,
        "score": entry.score,
        "weighted_score": round(weighted, 2),
        "entry_emotion": entry.name,
        "exit_emotion": exit_.name,
        "entry_category": entry.category.value,
        "exit_category": exit_.category.value,
        "consistent": entry.category == exit_.category,
        "worsened": exit_.score < entry.score,
        "improved": exit_.score > entry.score,
        "critical": EmotionCategory.CRITICAL in (entry.category, exit_.category),
    }


def category_distribution(
    trades: Sequence[Trade], registry: EmotionRegistry
) -> dict[str, int]:
    distribution = {c.value: 0 for c in EmotionCategory}
    for trade in trades:
        distribution[registry.category_of(trade.emotion_entry).value] += 1
    return distribution


def top_emotions(
    trades: Sequence[Trade],
    registry: EmotionRegistry,
    limit: int = TOP_EMOTIONS_LIMIT,
) -> list[dict[str, Any]]:
    """Most frequent entry emotions; ties keep first-seen order."""
    if not trades:
        return []
    counts = Counter(registry.get(t.emotion_entry).name for t in chronological(trades))
    total = len(trades)
    return [
        {
            "name": name,
            "count": count,
            "percentage": round_half_up(count / total * 100),
            "category": registry.category_of(name).value,
        }
        for name, count in counts.most_common(limit)
    ]


def classify_trend(
    scores: Sequence[float], config: TrendConfig | None = None
) -> Trend:
    """Compare the mean of the last ``window`` scores with the window before it.

    Fewer than ``2 * window`` scores is not enough data and is STABLE.
    """
    config = config or TrendConfig()
    n = config.window
    if len(scores) < 2 * n:
        return Trend.STABLE
    recent = scores[-n:]
    previous = scores[-2 * n:-n]
    delta = sum(recent) / n - sum(previous) / n
    if delta > config.epsilon:
        return Trend.IMPROVING
    if delta < -config.epsilon:
        return Trend.WORSENING
    return Trend.STABLE


def score_period(
    trades: Sequence[Trade],
    registry: EmotionRegistry,
    trend_config: TrendConfig | None = None,
) -> dict[str, Any]:
    """Score a set of trades.

    Returns
    -------
    dict
        ``score`` (0..100), ``raw_average``, ``distribution`` (count per
        category), ``trend``, ``trades_count``, ``top_emotions`` and the
        per-trade ``details``.
    """
    if not trades:
        return {
            "score": 100,
            "raw_average": 0.0,
            "distribution": category_distribution([], registry),
            "trend": Trend.STABLE.value,
            "trades_count": 0,
            "top_emotions": [],
            "details": [],
        }

    ordered = chronological(trades)
    scores = [trade_score(t, registry) for t in ordered]
    raw_average = sum(scores) / len(scores)

    return {
        "score": normalize_score(raw_average),
        "raw_average": round(raw_average, 2),
        "distribution": category_distribution(ordered, registry),
        "trend": classify_trend(scores, trend_config).value,
        "trades_count": len(ordered),
        "top_emotions": top_emotions(ordered, registry),
        "details": [trade_emotional_detail(t, registry) for t in ordered],
    }


def calculate_daily_scores(
    trades: Sequence[Trade], registry: EmotionRegistry
) -> list[dict[str, Any]]:
    """Per-day average score in chronological order; undated trades skipped."""
    by_day: dict[str, list[Trade]] = {}
    for trade in chronological(trades):
        if trade.date is None:
            continue
        by_day.setdefault(trade.date.isoformat(), []).append(trade)

    daily: list[dict[str, Any]] = []
    for day, day_trades in by_day.items():
        avg = sum(trade_score(t, registry) for t in day_trades) / len(day_trades)
        counts = Counter(registry.get(t.emotion_entry).name for t in day_trades)
        name, count = counts.most_common(1)[0]
        daily.append({
            "date": day,
            "score": normalize_score(avg),
            "raw_average": round(avg, 2),
            "trades_count": len(day_trades),
            "dominant": {"name": name, "count": count},
        })
    return daily
