"""Tilt detector for runs of trades taken in a compromised emotional state.

A tilt run is a sequence of at least ``consecutive_trades`` trades where
every trade was entered with an emotion in a flagged category (NEGATIVE
or CRITICAL by default), optionally also lost money, and each trade was
opened no more than ``max_interval_minutes`` after the previous one
closed.  Each maximal run is reported once, spanning its full extent.

Usage::

    detector = TiltDetector(TiltConfig(consecutive_trades=3))
    findings = detector.detect(trades, registry)
    for f in findings:
        print(f.severity, f.details["trades_count"])
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..core.config import TiltConfig
from ..core.enums import FindingType, Severity
from ..core.models import Trade
from ..core.registry import EmotionRegistry
from .findings import Finding, minutes_between, timed

logger = logging.getLogger(__name__)


class TiltDetector:
    """Detect consecutive compromised-state trades.

    Parameters
    ----------
    config : TiltConfig
        Run length, interval window, result requirement, flagged
        categories and severity breakpoints.
    """

    def __init__(self, config: TiltConfig | None = None) -> None:
        self._config = config or TiltConfig()

    def severity_for(self, run_length: int) -> Severity:
        if run_length >= self._config.critical_at:
            return Severity.CRITICAL
        if run_length >= self._config.high_at:
            return Severity.HIGH
        return Severity.MEDIUM

    def _qualifies(self, trade: Trade, registry: EmotionRegistry) -> bool:
        category = registry.category_of(trade.emotion_entry)
        if category not in self._config.emotion_categories:
            return False
        return not self._config.require_negative_result or trade.is_loss

    def detect(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> list[Finding]:
        """Return one finding per maximal tilt run."""
        cfg = self._config
        if not cfg.enabled or len(trades) < cfg.consecutive_trades:
            return []

        runs: list[list[Trade]] = []
        current: list[Trade] = []

        for trade in timed(trades):
            if not self._qualifies(trade, registry):
                runs.append(current)
                current = []
                continue
            if current and minutes_between(current[-1], trade) > cfg.max_interval_minutes:
                runs.append(current)
                current = []
            current.append(trade)
        runs.append(current)

        findings = [
            self._to_finding(run)
            for run in runs
            if len(run) >= cfg.consecutive_trades
        ]
        if findings:
            logger.debug("Tilt: %d run(s) detected", len(findings))
        return findings

    def _to_finding(self, run: list[Trade]) -> Finding:
        first, last = run[0], run[-1]
        end = last.closed_at
        return Finding(
            finding_type=FindingType.TILT,
            severity=self.severity_for(len(run)),
            message=(
                f"Tilt detected: {len(run)} consecutive trades "
                "in a negative emotional state"
            ),
            timestamp=first.timestamp,
            trade_ids=tuple(t.id for t in run),
            details={
                "trades_count": len(run),
                "start": first.timestamp,
                "end": end.isoformat() if end else last.timestamp,
                "total_result": round(sum(t.result for t in run), 2),
                "emotions": [t.emotion_entry for t in run],
            },
        )


def detect_tilt(
    trades: Sequence[Trade],
    registry: EmotionRegistry,
    config: TiltConfig | None = None,
) -> list[Finding]:
    return TiltDetector(config).detect(trades, registry)
