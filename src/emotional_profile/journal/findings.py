"""Pattern findings and shared sequencing helpers.

A ``Finding`` is the structured output of every detector and of the
compliance correlator: what was found, how severe it is, which trades
are involved and when it happened.  Findings are produced, never
mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ..core.enums import FindingType, Severity
from ..core.models import Trade


@dataclass(frozen=True)
class Finding:
    """Immutable record of one detected pattern."""

    finding_type: FindingType
    severity: Severity
    message: str
    timestamp: str | None           # ISO timestamp of the triggering trade
    trade_ids: tuple[str, ...] = ()
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.finding_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "trade_ids": list(self.trade_ids),
            "details": dict(self.details),
        }


def chronological(trades: Iterable[Trade]) -> list[Trade]:
    """Stable sort by (date, entry time); the ledger uses the same order."""
    return sorted(trades, key=lambda t: t.sort_key)


def timed(trades: Iterable[Trade]) -> list[Trade]:
    """Chronological trades usable in time-window calculations."""
    return [t for t in chronological(trades) if t.has_timing]


def minutes_between(previous: Trade, following: Trade) -> float:
    """Gap from the previous trade's exit (or entry) to the next entry.

    Both trades must have timing (see ``Trade.has_timing``).
    """
    start = previous.closed_at
    end = following.entry_time
    return abs((end - start).total_seconds()) / 60.0
