"""Compliance correlator: plan breaches cross-referenced with emotion.

A ledger event alone says *what* went wrong financially; the entry
emotion says *how* the trader felt.  When both point the same way the
correlator emits an additional finding.  It never replaces the
underlying ledger events or detector findings.

Rules, evaluated per ledger entry in ledger order:

- RO_FORA + NEGATIVE/CRITICAL emotion  -> RISK_BREACH_EMOTIONAL
- RR_FORA + NEGATIVE/CRITICAL emotion  -> RR_BREACH_EMOTIONAL
- POST_STOP + revenge tag              -> REVENGE_CONFIRMED
- POST_STOP + CRITICAL category        -> CRITICAL_EMOTION_AFTER_STOP
- POST_GOAL + greed-like tag, when the goal was given back
                                       -> GREED_CONFIRMED
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.config import CorrelationConfig
from ..core.enums import (
    EmotionalCorrelation,
    EmotionCategory,
    FinancialStatus,
    FindingType,
    LedgerEvent,
    Severity,
)
from ..core.models import Trade
from ..core.registry import EmotionDefinition, EmotionRegistry
from ..journal.findings import Finding
from ..journal.ledger import LedgerEntry, financial_status

logger = logging.getLogger(__name__)

_GAVE_BACK = (FinancialStatus.GOAL_GAVE_BACK, FinancialStatus.GOAL_TO_STOP)


def overall_category(
    trades: Sequence[Trade], registry: EmotionRegistry
) -> EmotionCategory:
    """Predominant entry category of a trade set."""
    if not trades:
        return EmotionCategory.NEUTRAL
    counts = {c: 0 for c in EmotionCategory}
    for trade in trades:
        counts[registry.category_of(trade.emotion_entry)] += 1
    total = len(trades)
    if counts[EmotionCategory.POSITIVE] / total > 0.5:
        return EmotionCategory.POSITIVE
    if counts[EmotionCategory.CRITICAL] / total > 0.2:
        return EmotionCategory.CRITICAL
    if counts[EmotionCategory.NEGATIVE] / total > 0.4:
        return EmotionCategory.NEGATIVE
    return EmotionCategory.NEUTRAL


def _finding(
    entry: LedgerEntry,
    emotion: EmotionDefinition,
    finding_type: FindingType,
    severity: Severity,
    message: str,
    event: LedgerEvent,
) -> Finding:
    return Finding(
        finding_type=finding_type,
        severity=severity,
        message=message,
        timestamp=entry.trade.timestamp,
        trade_ids=(entry.trade_id,),
        details={
            "ledger_event": event.value,
            "seq": entry.seq,
            "emotion": emotion.name,
            "category": emotion.category.value,
            "behavioral_pattern": emotion.behavioral_pattern,
            "result": entry.result,
            "running_result": round(entry.running_result, 2),
        },
    )


def _entry_findings(
    entry: LedgerEntry,
    emotion: EmotionDefinition,
    status: FinancialStatus,
    config: CorrelationConfig,
) -> list[Finding]:
    critical = emotion.category == EmotionCategory.CRITICAL
    found: list[Finding] = []

    if entry.has(LedgerEvent.RO_FORA) and emotion.is_negative:
        found.append(_finding(
            entry, emotion,
            FindingType.RISK_BREACH_EMOTIONAL,
            Severity.CRITICAL if critical else Severity.HIGH,
            f'Risk per operation breached while "{emotion.name}"',
            LedgerEvent.RO_FORA,
        ))
    if entry.has(LedgerEvent.RR_FORA) and emotion.is_negative:
        found.append(_finding(
            entry, emotion,
            FindingType.RR_BREACH_EMOTIONAL,
            Severity.HIGH if critical else Severity.MEDIUM,
            f'Reward:risk below plan while "{emotion.name}"',
            LedgerEvent.RR_FORA,
        ))

    if entry.has(LedgerEvent.POST_STOP):
        if emotion.behavioral_pattern == config.revenge_pattern:
            found.append(_finding(
                entry, emotion,
                FindingType.REVENGE_CONFIRMED,
                Severity.CRITICAL,
                f'Trade with "{emotion.name}" after hitting the stop',
                LedgerEvent.POST_STOP,
            ))
        if critical:
            found.append(_finding(
                entry, emotion,
                FindingType.CRITICAL_EMOTION_AFTER_STOP,
                Severity.HIGH,
                f'Critical emotion "{emotion.name}" after the stop',
                LedgerEvent.POST_STOP,
            ))

    if (
        entry.has(LedgerEvent.POST_GOAL)
        and status in _GAVE_BACK
        and emotion.behavioral_pattern in config.greed_patterns
    ):
        found.append(_finding(
            entry, emotion,
            FindingType.GREED_CONFIRMED,
            Severity.CRITICAL if status == FinancialStatus.GOAL_TO_STOP else Severity.HIGH,
            f'"{emotion.name}" detected: kept trading after the goal',
            LedgerEvent.POST_GOAL,
        ))
    return found


def correlate(
    ledger: Sequence[LedgerEntry] | None,
    trades: Sequence[Trade] | None,
    registry: EmotionRegistry | None,
    *,
    goal: float | None = None,
    stop: float | None = None,
    config: CorrelationConfig | None = None,
) -> dict[str, Any] | None:
    """Correlate ledger compliance events with entry emotions.

    Parameters
    ----------
    ledger : list[LedgerEntry] | None
        Output of ``build_ledger``.
    trades : list[Trade] | None
        Trades for the overall emotional read; defaults to the ledger's.
    registry : EmotionRegistry | None
    goal, stop : float | None
        Currency goal/stop, needed to tell a held goal from a give-back.
    config : CorrelationConfig

    Returns
    -------
    dict | None
        ``financial_status``, ``emotional_correlation`` and ``findings``;
        None when the ledger or the registry is absent or empty.
    """
    if not ledger or registry is None or registry.is_empty:
        return None
    config = config or CorrelationConfig()
    if trades is None:
        trades = [entry.trade for entry in ledger]

    status = financial_status(ledger, goal, stop)
    findings: list[Finding] = []
    for entry in ledger:
        emotion = registry.get(entry.trade.emotion_entry)
        findings.extend(_entry_findings(entry, emotion, status, config))

    if findings:
        logger.debug("Correlator: %d finding(s), status %s", len(findings), status.value)
        if any(f.severity == Severity.CRITICAL for f in findings):
            correlation = EmotionalCorrelation.STRONG_NEGATIVE
        else:
            correlation = EmotionalCorrelation.MODERATE_NEGATIVE
    elif overall_category(trades, registry) == EmotionCategory.POSITIVE:
        if "GOAL" in status.value:
            correlation = EmotionalCorrelation.STRONG_POSITIVE
        else:
            correlation = EmotionalCorrelation.MODERATE_POSITIVE
    else:
        correlation = EmotionalCorrelation.NEUTRAL

    return {
        "financial_status": status.value,
        "emotional_correlation": correlation.value,
        "findings": findings,
    }
