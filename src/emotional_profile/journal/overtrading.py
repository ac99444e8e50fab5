"""Overtrading detector: too many trades in a single calendar day.

Buckets dated trades per day and compares each day's count against
``max_trades_per_day``.  A day above the limit is a MEDIUM finding; a day
at or above ``warning_threshold`` of the limit (but not over it) is a
LOW warning.

Usage::

    detector = OvertradingDetector(OvertradingConfig(max_trades_per_day=8))
    findings = detector.detect(trades)
    report = detector.report(trades)
    print(report["is_overtrading"], report["max_trades_in_day"])
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.config import OvertradingConfig
from ..core.enums import FindingType, Severity
from ..core.models import Trade
from ..core.registry import EmotionRegistry
from .findings import Finding, chronological

logger = logging.getLogger(__name__)


class OvertradingDetector:
    """Detect days with abnormally many trades.

    Parameters
    ----------
    config : OvertradingConfig
        Daily limit and the warning ratio (fraction of the limit).
    """

    def __init__(self, config: OvertradingConfig | None = None) -> None:
        self._config = config or OvertradingConfig()

    @property
    def warning_count(self) -> float:
        return self._config.max_trades_per_day * self._config.warning_threshold

    @staticmethod
    def trades_per_day(trades: Sequence[Trade]) -> dict[str, list[Trade]]:
        """Dated trades grouped by ISO day, in chronological order."""
        by_day: dict[str, list[Trade]] = {}
        for trade in chronological(trades):
            if trade.date is None:
                continue
            by_day.setdefault(trade.date.isoformat(), []).append(trade)
        return by_day

    def detect(
        self,
        trades: Sequence[Trade],
        registry: EmotionRegistry | None = None,
    ) -> list[Finding]:
        """One finding per exceeded or warning day.

        ``registry`` is accepted for interface symmetry with the other
        detectors; day counts do not depend on emotions.
        """
        cfg = self._config
        if not cfg.enabled or not trades:
            return []

        limit = cfg.max_trades_per_day
        findings: list[Finding] = []
        for day, day_trades in self.trades_per_day(trades).items():
            count = len(day_trades)
            if count > limit:
                finding_type = FindingType.OVERTRADING
                severity = Severity.MEDIUM
                message = f"Overtrading on {day}: {count} trades (limit {limit})"
            elif count >= self.warning_count:
                finding_type = FindingType.OVERTRADING_WARNING
                severity = Severity.LOW
                message = f"Close to the daily limit on {day}: {count}/{limit} trades"
            else:
                continue
            findings.append(Finding(
                finding_type=finding_type,
                severity=severity,
                message=message,
                timestamp=day,
                trade_ids=tuple(t.id for t in day_trades),
                details={
                    "date": day,
                    "trades_count": count,
                    "limit": limit,
                    "excess": max(0, count - limit),
                    "total_result": round(sum(t.result for t in day_trades), 2),
                },
            ))

        if findings:
            logger.debug("Overtrading: %d day(s) flagged", len(findings))
        return findings

    def report(self, trades: Sequence[Trade]) -> dict[str, Any]:
        """Summary of daily trade frequency."""
        by_day = self.trades_per_day(trades)
        counts = {day: len(items) for day, items in by_day.items()}
        limit = self._config.max_trades_per_day
        exceeded = [day for day, n in counts.items() if n > limit]
        warning = [
            day for day, n in counts.items()
            if self.warning_count <= n <= limit
        ]
        return {
            "is_overtrading": bool(exceeded) and self._config.enabled,
            "max_trades_per_day": limit,
            "max_trades_in_day": max(counts.values(), default=0),
            "days_traded": len(counts),
            "days_exceeded": exceeded,
            "days_warning": warning,
            "trades_per_day": counts,
        }


def detect_overtrading(
    trades: Sequence[Trade],
    config: OvertradingConfig | None = None,
) -> list[Finding]:
    return OvertradingDetector(config).detect(trades)
