"""Revenge trading detector.

Three independent triggers, each producing its own finding type:

- RAPID_SEQUENCE: ``trades_in_window`` or more trades opened within
  ``window_minutes`` of a losing trade's exit.
- EXPLICIT_EMOTION: a trade entered with an emotion whose behavioural
  pattern is the revenge tag.
- SIZE_ESCALATION: right after a loss, the next trade's size exceeds the
  losing trade's size by more than ``qty_multiplier`` times.

The same trade may trigger all three.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..core.config import RevengeConfig
from ..core.enums import EmotionCategory, FindingType, Severity
from ..core.models import Trade
from ..core.registry import EmotionRegistry
from .findings import Finding, chronological, minutes_between, timed

logger = logging.getLogger(__name__)


class RevengeDetector:
    """Detect revenge trading after losses.

    Parameters
    ----------
    config : RevengeConfig
        Window size, trade count, size multiplier and revenge tag.
    """

    def __init__(self, config: RevengeConfig | None = None) -> None:
        self._config = config or RevengeConfig()

    def detect(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> list[Finding]:
        if not self._config.enabled or not trades:
            return []
        findings = [
            *self._rapid_sequences(trades),
            *self._explicit_emotions(trades, registry),
            *self._size_escalations(trades, registry),
        ]
        if findings:
            logger.debug("Revenge: %d finding(s)", len(findings))
        return findings

    # ------------------------------------------------------------------ #
    # Triggers                                                             #
    # ------------------------------------------------------------------ #

    def _rapid_sequences(self, trades: Sequence[Trade]) -> list[Finding]:
        cfg = self._config
        ordered = timed(trades)
        findings: list[Finding] = []

        for i, loss in enumerate(ordered):
            if not loss.is_loss:
                continue
            closed = loss.closed_at
            followers: list[Trade] = []
            for nxt in ordered[i + 1:]:
                # Opened while the loss was still running
                if nxt.entry_time < closed:
                    continue
                if (nxt.entry_time - closed).total_seconds() / 60.0 > cfg.window_minutes:
                    break
                followers.append(nxt)
            if len(followers) < cfg.trades_in_window:
                continue
            findings.append(Finding(
                finding_type=FindingType.REVENGE_RAPID_SEQUENCE,
                severity=Severity.HIGH,
                message=(
                    f"Revenge: {len(followers)} trades within "
                    f"{cfg.window_minutes:g} min after a loss"
                ),
                timestamp=loss.timestamp,
                trade_ids=(loss.id, *(t.id for t in followers)),
                details={
                    "trigger_trade_id": loss.id,
                    "trigger_loss": loss.result,
                    "trades_after": len(followers),
                    "window_minutes": cfg.window_minutes,
                },
            ))
        return findings

    def _explicit_emotions(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> list[Finding]:
        tag = self._config.revenge_pattern
        findings: list[Finding] = []
        # Tag check only; undated trades count too
        for trade in chronological(trades):
            emotion = registry.get(trade.emotion_entry)
            if emotion.behavioral_pattern != tag:
                continue
            findings.append(Finding(
                finding_type=FindingType.REVENGE_EXPLICIT_EMOTION,
                severity=Severity.CRITICAL,
                message=f'Revenge emotion "{emotion.name}" reported at entry',
                timestamp=trade.timestamp,
                trade_ids=(trade.id,),
                details={"emotion": emotion.name, "result": trade.result},
            ))
        return findings

    def _size_escalations(
        self, trades: Sequence[Trade], registry: EmotionRegistry
    ) -> list[Finding]:
        cfg = self._config
        ordered = timed(trades)
        findings: list[Finding] = []

        for prev, curr in zip(ordered, ordered[1:]):
            if cfg.after_loss_only and not prev.is_loss:
                continue
            if prev.qty <= 0 or curr.qty <= prev.qty * cfg.qty_multiplier:
                continue
            interval = minutes_between(prev, curr)
            if interval > cfg.window_minutes:
                continue
            emotion = registry.get(curr.emotion_entry)
            increase = (curr.qty / prev.qty - 1) * 100
            findings.append(Finding(
                finding_type=FindingType.REVENGE_SIZE_ESCALATION,
                severity=(
                    Severity.CRITICAL
                    if emotion.category == EmotionCategory.CRITICAL
                    else Severity.HIGH
                ),
                message=f"Revenge: position size up {increase:.0f}% right after a loss",
                timestamp=curr.timestamp,
                trade_ids=(prev.id, curr.id),
                details={
                    "previous_trade_id": prev.id,
                    "previous_result": prev.result,
                    "previous_qty": prev.qty,
                    "qty": curr.qty,
                    "qty_increase_pct": round(increase, 1),
                    "interval_minutes": round(interval, 1),
                    "emotion": emotion.name,
                    "behavioral_pattern": emotion.behavioral_pattern,
                },
            ))
        return findings


def detect_revenge(
    trades: Sequence[Trade],
    registry: EmotionRegistry,
    config: RevengeConfig | None = None,
) -> list[Finding]:
    return RevengeDetector(config).detect(trades, registry)
