"""Flow-state ("in the zone") detector.

The inverse of the anti-pattern detectors: looks at the most recent
``window_size`` trades and blends three shares into a confidence
percentage:

    confidence = 100 * (w_pos * positive_share
                        + w_win * win_rate
                        + w_disc * discipline_share)

At or above ``min_confidence`` the trader is in the zone and a LOW
severity commendation finding is produced.  It is never raised as an
alert.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.config import FlowStateConfig
from ..core.enums import EmotionCategory, FindingType, Severity
from ..core.models import Trade
from ..core.registry import EmotionRegistry
from .findings import Finding, chronological

logger = logging.getLogger(__name__)


class FlowStateDetector:
    """Detect sustained disciplined, positive, winning trading."""

    def __init__(self, config: FlowStateConfig | None = None) -> None:
        self._config = config or FlowStateConfig()

    def evaluate(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> dict[str, Any]:
        """Confidence over the most recent window.

        Fewer trades than the window means not in the zone, confidence 0.
        """
        cfg = self._config
        window = cfg.window_size
        if not cfg.enabled or len(trades) < window:
            return {"in_zone": False, "confidence": 0, "window_size": window}

        recent = chronological(trades)[-window:]
        emotions = [registry.get(t.emotion_entry) for t in recent]
        positive = sum(1 for e in emotions if e.category == EmotionCategory.POSITIVE)
        disciplined = sum(
            1 for e in emotions if e.behavioral_pattern in cfg.discipline_patterns
        )
        wins = sum(1 for t in recent if t.result > 0)

        confidence = 100 * (
            cfg.positive_weight * positive / window
            + cfg.win_rate_weight * wins / window
            + cfg.discipline_weight * disciplined / window
        )
        return {
            "in_zone": confidence >= cfg.min_confidence,
            "confidence": round(confidence),
            "window_size": window,
            "positive_trades": positive,
            "win_rate": round(wins / window * 100),
            "disciplined_trades": disciplined,
            "trade_ids": [t.id for t in recent],
            "timestamp": recent[-1].timestamp,
        }

    def detect(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> list[Finding]:
        state = self.evaluate(trades, registry)
        if not state["in_zone"]:
            return []
        logger.debug("Flow state: confidence %d%%", state["confidence"])
        return [Finding(
            finding_type=FindingType.FLOW_STATE,
            severity=Severity.LOW,
            message=f"In the zone! Confidence: {state['confidence']}%",
            timestamp=state["timestamp"],
            trade_ids=tuple(state["trade_ids"]),
            details={
                "confidence": state["confidence"],
                "positive_trades": state["positive_trades"],
                "win_rate": state["win_rate"],
                "disciplined_trades": state["disciplined_trades"],
                "window_size": state["window_size"],
            },
        )]


def detect_flow_state(
    trades: Sequence[Trade],
    registry: EmotionRegistry,
    config: FlowStateConfig | None = None,
) -> list[Finding]:
    return FlowStateDetector(config).detect(trades, registry)
