"""Student status: the period score, penalised by compliance events,
mapped onto a health tier.

Compliance events come from two places: detector findings (tilt and
revenge) and the plan ledger (risk / reward:risk breaches and trades
taken after the stop).  Each event subtracts its configured penalty,
floored at 0.  Because thresholds are kept ordered, a lower adjusted
score never maps to a healthier tier.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from ..core.config import PenaltyConfig, StatusThresholds
from ..core.enums import FindingType, LedgerEvent, StudentStatus
from ..journal.findings import Finding
from ..journal.ledger import LedgerEntry

logger = logging.getLogger(__name__)

# Compliance event type -> PenaltyConfig field
EVENT_PENALTY_FIELDS = {
    "TILT_DETECTED": "tilt_detected",
    "REVENGE_DETECTED": "revenge_detected",
    "RISK_VIOLATION": "risk_violation",
    "RR_VIOLATION": "rr_violation",
    "POST_STOP_TRADE": "post_stop_trade",
}

STATUS_LABELS = {
    StudentStatus.HEALTHY: "Healthy",
    StudentStatus.ATTENTION: "Attention",
    StudentStatus.WARNING: "Warning",
    StudentStatus.CRITICAL: "Critical",
}

_REVENGE_TYPES = (
    FindingType.REVENGE_RAPID_SEQUENCE,
    FindingType.REVENGE_EXPLICIT_EMOTION,
    FindingType.REVENGE_SIZE_ESCALATION,
)


def compliance_events(
    findings: Iterable[Finding] = (),
    ledger: Sequence[LedgerEntry] = (),
) -> list[dict[str, Any]]:
    """Collect penalisable events, findings first, then ledger order."""
    events: list[dict[str, Any]] = []
    for finding in findings:
        if finding.finding_type == FindingType.TILT:
            event_type = "TILT_DETECTED"
        elif finding.finding_type in _REVENGE_TYPES:
            event_type = "REVENGE_DETECTED"
        else:
            continue
        events.append({
            "type": event_type,
            "severity": finding.severity.value,
            "timestamp": finding.timestamp,
            "trade_ids": list(finding.trade_ids),
            "source": finding.finding_type.value,
        })

    for entry in ledger:
        for event, event_type in (
            (LedgerEvent.RO_FORA, "RISK_VIOLATION"),
            (LedgerEvent.RR_FORA, "RR_VIOLATION"),
            (LedgerEvent.POST_STOP, "POST_STOP_TRADE"),
        ):
            if entry.has(event):
                events.append({
                    "type": event_type,
                    "timestamp": entry.trade.timestamp,
                    "trade_ids": [entry.trade_id],
                    "source": event.value,
                })
    return events


def total_penalty(
    events: Iterable[dict[str, Any]], penalties: PenaltyConfig | None = None
) -> float:
    penalties = penalties or PenaltyConfig()
    total = 0.0
    for event in events:
        field = EVENT_PENALTY_FIELDS.get(event.get("type", ""))
        if field is not None:
            total += getattr(penalties, field)
    return total


def status_for_score(
    score: float, thresholds: StatusThresholds | None = None
) -> StudentStatus:
    thresholds = thresholds or StatusThresholds()
    if score >= thresholds.healthy:
        return StudentStatus.HEALTHY
    if score >= thresholds.attention:
        return StudentStatus.ATTENTION
    if score >= thresholds.warning:
        return StudentStatus.WARNING
    return StudentStatus.CRITICAL


def calculate_student_status(
    period_score: float,
    events: Iterable[dict[str, Any]] = (),
    thresholds: StatusThresholds | None = None,
    penalties: PenaltyConfig | None = None,
) -> dict[str, Any]:
    """Map a period score and its compliance events onto a status tier.

    Parameters
    ----------
    period_score : float
        Score in 0..100 from ``score_period``.
    events : iterable of dict
        Compliance events (``type`` key); unknown types carry no penalty.
    thresholds, penalties
        Configuration sections; defaults apply when omitted.

    Returns
    -------
    dict
        ``status``, ``label``, ``adjusted_score``, ``penalty``, ``score``.
    """
    events = list(events)
    penalty = total_penalty(events, penalties)
    adjusted = max(0.0, period_score - penalty)
    status = status_for_score(adjusted, thresholds)
    if status == StudentStatus.CRITICAL:
        logger.info(
            "Critical status: score %.0f, penalty %.0f over %d event(s)",
            period_score,
            penalty,
            len(events),
        )
    return {
        "status": status.value,
        "label": STATUS_LABELS[status],
        "score": period_score,
        "adjusted_score": round(adjusted, 2),
        "penalty": penalty,
        "events_count": len(events),
    }
