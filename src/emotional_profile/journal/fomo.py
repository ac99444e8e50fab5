"""FOMO / greed detector.

Measures the share of trades entered under an impulsive behavioural tag
(FOMO and GREED by default).  This is a category-only detector: trades
without timing still count.  The result is a rate, not a list of
instances; a single finding is produced when the rate is notable.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.config import FomoConfig
from ..core.enums import FindingType, Severity
from ..core.models import Trade
from ..core.registry import EmotionRegistry
from .findings import Finding, chronological

logger = logging.getLogger(__name__)


class FomoDetector:
    """Impulsive-entry rate over a set of trades."""

    def __init__(self, config: FomoConfig | None = None) -> None:
        self._config = config or FomoConfig()

    def report(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> dict[str, Any]:
        cfg = self._config
        patterns = set(cfg.impulsive_patterns)
        ordered = chronological(trades)
        impulsive = [
            t for t in ordered
            if registry.pattern_of(t.emotion_entry) in patterns
        ]
        total = len(ordered)
        rate = len(impulsive) / total if total else 0.0
        return {
            "detected": bool(impulsive),
            "notable": cfg.enabled and total > 0 and rate > cfg.notable_rate,
            "rate": round(rate, 4),
            "percentage": round(rate * 100, 1),
            "count": len(impulsive),
            "total": total,
            "total_loss": round(sum(min(t.result, 0.0) for t in impulsive), 2),
            "trade_ids": [t.id for t in impulsive],
        }

    def detect(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> list[Finding]:
        cfg = self._config
        if not cfg.enabled or not trades:
            return []
        report = self.report(trades, registry)
        if not report["notable"]:
            return []

        rate = report["rate"]
        severity = Severity.HIGH if rate >= 2 * cfg.notable_rate else Severity.MEDIUM
        flagged = set(report["trade_ids"])
        timestamps = [
            t.timestamp for t in chronological(trades)
            if t.id in flagged and t.timestamp
        ]
        logger.debug("FOMO: rate %.2f over %d trades", rate, report["total"])
        return [Finding(
            finding_type=FindingType.FOMO,
            severity=severity,
            message=(
                f"Impulsive entries in {report['percentage']:g}% of trades "
                f"({report['count']}/{report['total']})"
            ),
            timestamp=timestamps[-1] if timestamps else None,
            trade_ids=tuple(report["trade_ids"]),
            details={k: v for k, v in report.items() if k != "trade_ids"},
        )]


def detect_fomo(
    trades: Sequence[Trade],
    registry: EmotionRegistry,
    config: FomoConfig | None = None,
) -> list[Finding]:
    return FomoDetector(config).detect(trades, registry)
