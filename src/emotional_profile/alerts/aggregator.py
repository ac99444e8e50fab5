"""Alert aggregation: findings in, one deduplicated, ranked list out.

Fresh alerts are built from detector and correlator findings plus a
synthetic STATUS_CRITICAL alert.  They are then merged with alerts the
notification store already holds: for the same (subject, type) pair the
persisted alert wins and the fresh one is dropped.  The merged list is
stable-sorted by severity rank, so ties keep merge order.

Usage::

    fresh = collect_alerts("student-1", tilt=tilt_findings, status=status)
    alerts = merge_alerts(stored_notifications, fresh)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from ..core.enums import AlertType, FindingType, Severity, StudentStatus
from ..core.ids import content_hash
from ..journal.findings import Finding

logger = logging.getLogger(__name__)

FINDING_ALERT_TYPES: dict[FindingType, AlertType] = {
    FindingType.TILT: AlertType.TILT_DETECTED,
    FindingType.REVENGE_RAPID_SEQUENCE: AlertType.REVENGE_DETECTED,
    FindingType.REVENGE_EXPLICIT_EMOTION: AlertType.REVENGE_DETECTED,
    FindingType.REVENGE_SIZE_ESCALATION: AlertType.REVENGE_DETECTED,
    FindingType.OVERTRADING: AlertType.OVERTRADING,
    FindingType.FOMO: AlertType.FOMO,
    FindingType.RISK_BREACH_EMOTIONAL: AlertType.RISK_BREACH_EMOTIONAL,
    FindingType.RR_BREACH_EMOTIONAL: AlertType.RR_BREACH_EMOTIONAL,
    FindingType.REVENGE_CONFIRMED: AlertType.REVENGE_CONFIRMED,
    FindingType.CRITICAL_EMOTION_AFTER_STOP: AlertType.CRITICAL_EMOTION_AFTER_STOP,
    FindingType.GREED_CONFIRMED: AlertType.GREED_CONFIRMED,
}


@dataclass(frozen=True)
class Alert:
    """One alert, fresh or read back from the notification store."""

    id: str
    alert_type: AlertType
    severity: Severity
    message: str
    timestamp: str | None
    subject_id: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)
    persisted: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def dedupe_key(self) -> tuple[str, AlertType]:
        return self.subject_id, self.alert_type

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "subject_id": self.subject_id,
            "details": dict(self.details),
            "persisted": self.persisted,
        }

    def to_notification(self) -> dict[str, Any]:
        """Record shape written to the notification store."""
        return {
            "id": self.id,
            "type": self.alert_type.value,
            "severity": self.severity.value,
            "studentId": self.subject_id,
            "message": self.message,
            "timestamp": self.timestamp,
            "read": False,
        }

    @classmethod
    def from_notification(cls, record: Mapping[str, Any]) -> "Alert":
        """Parse a stored notification.

        Raises ``ValueError`` for an unknown type or severity and
        ``KeyError`` when ``id`` or ``type`` is missing.
        """
        timestamp = record.get("timestamp")
        return cls(
            id=str(record["id"]),
            alert_type=AlertType(record["type"]),
            severity=Severity(record.get("severity", Severity.MEDIUM.value)),
            message=str(record.get("message", "")),
            timestamp=None if timestamp is None else str(timestamp),
            subject_id=str(record.get("studentId") or record.get("subject_id") or ""),
            details=record.get("details") or {},
            persisted=True,
        )


# ---------------------------------------------------------------------------
# Building fresh alerts
# ---------------------------------------------------------------------------

def alert_from_finding(finding: Finding, subject_id: str, index: int) -> Alert:
    alert_type = FINDING_ALERT_TYPES[finding.finding_type]
    return Alert(
        id=content_hash(
            subject_id, alert_type.value, finding.finding_type.value, str(index)
        ),
        alert_type=alert_type,
        severity=finding.severity,
        message=finding.message,
        timestamp=finding.timestamp,
        subject_id=subject_id,
        details={
            "finding_type": finding.finding_type.value,
            "trade_ids": list(finding.trade_ids),
            **finding.details,
        },
    )


def status_alert(
    status: Mapping[str, Any], subject_id: str, as_of: str | None
) -> Alert | None:
    """STATUS_CRITICAL alert when the derived status is CRITICAL."""
    if status.get("status") != StudentStatus.CRITICAL.value:
        return None
    return Alert(
        id=content_hash(subject_id, AlertType.STATUS_CRITICAL.value, "0"),
        alert_type=AlertType.STATUS_CRITICAL,
        severity=Severity.CRITICAL,
        message=(
            "Critical emotional status: adjusted score "
            f"{status.get('adjusted_score', 0):g}/100"
        ),
        timestamp=as_of,
        subject_id=subject_id,
        details={
            "adjusted_score": status.get("adjusted_score"),
            "penalty": status.get("penalty"),
        },
    )


def collect_alerts(
    subject_id: str = "",
    *,
    tilt: Iterable[Finding] = (),
    revenge: Iterable[Finding] = (),
    correlation: Iterable[Finding] = (),
    overtrading: Iterable[Finding] = (),
    fomo: Iterable[Finding] = (),
    status: Mapping[str, Any] | None = None,
    as_of: str | None = None,
) -> list[Alert]:
    """Fresh alerts in source order.

    Only findings with an alert type become alerts: overtrading warnings
    and flow-state commendations are dropped here.
    """
    alerts: list[Alert] = []
    for source in (tilt, revenge, correlation, overtrading, fomo):
        for index, finding in enumerate(source):
            if finding.finding_type not in FINDING_ALERT_TYPES:
                continue
            alerts.append(alert_from_finding(finding, subject_id, index))
    if status is not None:
        critical = status_alert(status, subject_id, as_of)
        if critical is not None:
            alerts.append(critical)
    return alerts


# ---------------------------------------------------------------------------
# Merge + rank
# ---------------------------------------------------------------------------

def sort_by_severity(alerts: Iterable[Alert]) -> list[Alert]:
    """Stable sort, CRITICAL first; ties keep their relative order."""
    return sorted(alerts, key=lambda a: a.severity.rank)


def _coerce_persisted(records: Iterable[Alert | Mapping[str, Any]]) -> list[Alert]:
    parsed: list[Alert] = []
    for record in records:
        if isinstance(record, Alert):
            parsed.append(record)
            continue
        try:
            parsed.append(Alert.from_notification(record))
        except (KeyError, ValueError) as exc:
            logger.warning("Ignoring unreadable stored alert %r: %s", record, exc)
    return parsed


def merge_alerts(
    persisted: Iterable[Alert | Mapping[str, Any]] = (),
    fresh: Sequence[Alert] = (),
) -> list[Alert]:
    """Deduplicate persisted + fresh alerts and rank them.

    Persisted alerts come first, with exact-id duplicates collapsed.  A
    fresh alert is suppressed when its id was already seen or when a
    persisted alert exists for the same (subject, type).
    """
    seen_ids: set[str] = set()
    persisted_keys: set[tuple[str, AlertType]] = set()
    merged: list[Alert] = []

    for alert in _coerce_persisted(persisted):
        if alert.id in seen_ids:
            continue
        seen_ids.add(alert.id)
        persisted_keys.add(alert.dedupe_key)
        merged.append(alert)

    suppressed = 0
    for alert in fresh:
        if alert.id in seen_ids or alert.dedupe_key in persisted_keys:
            suppressed += 1
            continue
        seen_ids.add(alert.id)
        merged.append(alert)

    if suppressed:
        logger.debug("Suppressed %d fresh alert(s) already persisted", suppressed)
    return sort_by_severity(merged)
