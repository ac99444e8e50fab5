"""Plan ledger: the chronological running-balance view of a plan's trades.

Turns an unordered trade snapshot plus a plan into an ordered sequence
where every entry carries the cumulative result, the running balance,
and the plan events it triggered:

- GOAL_HIT / STOP_HIT  first entry whose running result crosses the
  goal (>= +goal) or the stop (<= -stop).  At most one HIT per ledger.
- POST_GOAL / POST_STOP  every entry after the crossing.
- RO_FORA  risk per operation above the plan limit.
- RR_FORA  reward:risk below the plan minimum (server verdict only).

Usage::

    ledger = build_ledger(trades, plan)
    summary = summarize_ledger(ledger, plan)
    print(summary["financial_status"])
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from ..core.enums import FinancialStatus, LedgerEvent, LedgerScope
from ..core.models import Plan, Trade, resolve_plan, resolve_trades
from .findings import chronological

logger = logging.getLogger(__name__)

NO_DATE_BUCKET = "no-date"


@dataclass(frozen=True)
class LedgerEntry:
    """One trade projected onto the plan ledger."""

    seq: int                 # 1-based chronological position
    trade: Trade
    running_result: float
    running_balance: float
    events: tuple[LedgerEvent, ...] = ()

    @property
    def trade_id(self) -> str:
        return self.trade.id

    @property
    def date(self) -> dt.date | None:
        return self.trade.date

    @property
    def result(self) -> float:
        return self.trade.result

    def has(self, event: LedgerEvent) -> bool:
        return event in self.events

    def to_dict(self) -> dict[str, Any]:
        t = self.trade
        return {
            "seq": self.seq,
            "trade_id": t.id,
            "date": t.date.isoformat() if t.date else None,
            "entry_time": t.entry_time.isoformat() if t.entry_time else None,
            "exit_time": t.exit_time.isoformat() if t.exit_time else None,
            "ticker": t.ticker,
            "side": t.side.value if t.side else None,
            "qty": t.qty,
            "result": t.result,
            "running_result": round(self.running_result, 2),
            "running_balance": round(self.running_balance, 2),
            "events": [e.value for e in self.events],
            "emotion_entry": t.emotion_entry,
            "emotion_exit": t.emotion_exit,
            "compliance": t.compliance.model_dump() if t.compliance else None,
        }


def _as_date(value: dt.date | str | None) -> dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


def _ro_breached(trade: Trade, plan: Plan) -> bool:
    """Risk-per-operation check.  Server compliance data always wins; the
    local estimate runs only for trades without it and only considers
    realised losses."""
    if trade.compliance is not None:
        return trade.compliance.ro_breached
    base = plan.base_pl
    if not plan.risk_per_operation or base <= 0:
        return False
    risk_pct = abs(min(trade.result, 0.0)) / base * 100
    return risk_pct > plan.risk_per_operation


def build_ledger(
    trades: Any,
    plan: Any = None,
    *,
    date_from: dt.date | str | None = None,
    date_to: dt.date | str | None = None,
    scope: LedgerScope | str = LedgerScope.CYCLE,
) -> list[LedgerEntry]:
    """Build the plan ledger.

    Parameters
    ----------
    trades : list
        Raw trade dicts or ``Trade`` objects, in any order.
    plan : dict | Plan | None
        Plan thresholds.  A plan without positive capital disables the
        goal/stop checks.
    date_from, date_to : date | str | None
        Inclusive date filter.  Undated trades are dropped when set.
    scope : LedgerScope
        ``cycle`` checks cycleGoal/cycleStop, ``period`` checks
        periodGoal/periodStop.

    Returns
    -------
    list[LedgerEntry]
        Empty when there are no trades.
    """
    resolved = resolve_trades(trades)
    if not resolved:
        return []
    plan = resolve_plan(plan)
    scope = LedgerScope(scope)

    start = _as_date(date_from)
    end = _as_date(date_to)
    if start is not None:
        resolved = [t for t in resolved if t.date is not None and t.date >= start]
    if end is not None:
        resolved = [t for t in resolved if t.date is not None and t.date <= end]

    goal = plan.goal_amount(scope)
    stop = plan.stop_amount(scope)
    base = plan.base_pl

    running = 0.0
    crossed: LedgerEvent | None = None
    ledger: list[LedgerEntry] = []

    for seq, trade in enumerate(chronological(resolved), start=1):
        running += trade.result
        events: list[LedgerEvent] = []

        if _ro_breached(trade, plan):
            events.append(LedgerEvent.RO_FORA)
        if trade.compliance is not None and trade.compliance.rr_breached:
            events.append(LedgerEvent.RR_FORA)

        if crossed is None:
            if goal is not None and running >= goal:
                crossed = LedgerEvent.GOAL_HIT
                events.append(LedgerEvent.GOAL_HIT)
            elif stop is not None and running <= -stop:
                crossed = LedgerEvent.STOP_HIT
                events.append(LedgerEvent.STOP_HIT)
        elif crossed == LedgerEvent.GOAL_HIT:
            events.append(LedgerEvent.POST_GOAL)
        else:
            events.append(LedgerEvent.POST_STOP)

        ledger.append(
            LedgerEntry(
                seq=seq,
                trade=trade,
                running_result=running,
                running_balance=base + running,
                events=tuple(events),
            )
        )

    if crossed is not None:
        logger.debug("Ledger crossed %s (%d entries)", crossed.value, len(ledger))
    return ledger


def financial_status(
    ledger: Sequence[LedgerEntry],
    goal: float | None = None,
    stop: float | None = None,
) -> FinancialStatus:
    """Classify the plan outcome of a ledger.

    Without goal/stop amounts only the HIT events can be observed, so a
    give-back after the goal cannot be told apart from holding it.
    """
    if not ledger:
        return FinancialStatus.NO_DATA
    final = ledger[-1].running_result
    if any(e.has(LedgerEvent.GOAL_HIT) for e in ledger):
        if goal is not None and final < goal:
            if stop is not None and final <= -stop:
                return FinancialStatus.GOAL_TO_STOP
            return FinancialStatus.GOAL_GAVE_BACK
        return FinancialStatus.GOAL_HIT
    if any(e.has(LedgerEvent.STOP_HIT) for e in ledger):
        return FinancialStatus.STOP_HIT
    return FinancialStatus.ON_TRACK


def summarize_ledger(
    ledger: Sequence[LedgerEntry],
    plan: Any = None,
    *,
    scope: LedgerScope | str = LedgerScope.CYCLE,
) -> dict[str, Any]:
    """Header totals for a ledger: result, win rate, goal/stop progress."""
    plan = resolve_plan(plan)
    scope = LedgerScope(scope)
    goal = plan.goal_amount(scope)
    stop = plan.stop_amount(scope)

    if not ledger:
        return {
            "total_trades": 0,
            "total_result": 0.0,
            "current_balance": plan.base_pl,
            "wins": 0,
            "losses": 0,
            "win_rate": 0.0,
            "goal_reached": False,
            "stop_reached": False,
            "violations": 0,
            "goal_amount": goal,
            "stop_amount": stop,
            "progress_percent": 0.0,
            "consumed_stop_percent": 0.0,
            "financial_status": FinancialStatus.NO_DATA.value,
        }

    last = ledger[-1]
    total = last.running_result
    wins = sum(1 for e in ledger if e.result > 0)
    losses = sum(1 for e in ledger if e.result < 0)

    progress = (total / goal) * 100 if goal else 0.0
    consumed = (abs(total) / stop) * 100 if stop and total < 0 else 0.0

    return {
        "total_trades": len(ledger),
        "total_result": round(total, 2),
        "current_balance": round(last.running_balance, 2),
        "wins": wins,
        "losses": losses,
        "win_rate": round(wins / len(ledger) * 100, 2),
        "goal_reached": any(e.has(LedgerEvent.GOAL_HIT) for e in ledger),
        "stop_reached": any(e.has(LedgerEvent.STOP_HIT) for e in ledger),
        # Trading on after the stop is a discipline violation
        "violations": sum(1 for e in ledger if e.has(LedgerEvent.POST_STOP)),
        "goal_amount": goal,
        "stop_amount": stop,
        "progress_percent": round(min(progress, 100.0), 2),
        "consumed_stop_percent": round(min(consumed, 100.0), 2),
        "financial_status": financial_status(ledger, goal, stop).value,
    }


def group_ledger_by_date(
    ledger: Sequence[LedgerEntry],
) -> dict[str, list[LedgerEntry]]:
    """Group entries by ISO date, preserving ledger order."""
    grouped: dict[str, list[LedgerEntry]] = {}
    for entry in ledger:
        key = entry.date.isoformat() if entry.date else NO_DATE_BUCKET
        grouped.setdefault(key, []).append(entry)
    return grouped
