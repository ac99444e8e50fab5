"""End-to-end analysis pipeline.

``analyze`` is a pure function: raw trades, plan, registry and detection
config in; a plain JSON-serializable dict out.  The flow is strictly
left to right:

    trades + plan -> ledger -> detectors + scoring -> status
                  -> compliance correlation -> alerts

Callers decide when to run it and whether to memoize; nothing here is
cached or persisted.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Iterable, Mapping

from .alerts.aggregator import collect_alerts, merge_alerts
from .compliance.correlator import correlate
from .core.config import DetectionConfig
from .core.enums import EmotionCategory, LedgerScope
from .core.ids import payload_hash
from .core.models import Plan, Trade, resolve_plan, resolve_trades
from .core.registry import EmotionRegistry
from .journal.findings import Finding
from .journal.flow_state import FlowStateDetector
from .journal.fomo import FomoDetector
from .journal.ledger import build_ledger, summarize_ledger
from .journal.overtrading import OvertradingDetector
from .journal.revenge import RevengeDetector
from .journal.tilt import TiltDetector
from .observability.logger import analysis_context
from .scoring.period import calculate_daily_scores, score_period
from .scoring.status import calculate_student_status, compliance_events

logger = logging.getLogger(__name__)


def _findings(findings: Iterable[Finding]) -> list[dict[str, Any]]:
    return [f.to_dict() for f in findings]


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def _metrics(
    period: Mapping[str, Any],
    status: Mapping[str, Any],
    tilt: list[Finding],
    revenge: list[Finding],
    overtrading: Mapping[str, Any],
    fomo: Mapping[str, Any],
    flow: Mapping[str, Any],
) -> dict[str, Any]:
    total = period["trades_count"]
    dist = period["distribution"]
    top = period["top_emotions"]
    return {
        "total_trades": total,
        "score": period["score"],
        "adjusted_score": status["adjusted_score"],
        "positive_rate": _percent(dist[EmotionCategory.POSITIVE.value], total),
        "neutral_rate": _percent(dist[EmotionCategory.NEUTRAL.value], total),
        "negative_rate": _percent(dist[EmotionCategory.NEGATIVE.value], total),
        "critical_rate": _percent(dist[EmotionCategory.CRITICAL.value], total),
        "tilt_count": len(tilt),
        "revenge_count": len(revenge),
        "overtrading_days": len(overtrading["days_exceeded"]),
        "max_trades_in_day": overtrading["max_trades_in_day"],
        "fomo_rate": fomo["percentage"],
        "in_zone": flow["in_zone"],
        "zone_confidence": flow["confidence"],
        "trend": period["trend"],
        "top_emotion": top[0]["name"] if top else None,
    }


def analyze(
    trades: Any,
    registry: Any = None,
    *,
    plan: Any = None,
    config: Any = None,
    subject_id: str = "",
    persisted_alerts: Iterable[Any] = (),
    date_from: dt.date | str | None = None,
    date_to: dt.date | str | None = None,
    scope: LedgerScope | str = LedgerScope.CYCLE,
    as_of: str | None = None,
) -> dict[str, Any]:
    """Run the full emotional profile analysis for one subject.

    Parameters
    ----------
    trades : list
        Raw trade records (dicts) or ``Trade`` objects.
    registry : EmotionRegistry | list | None
        Emotion registry snapshot.  Without one, emotional analysis is
        skipped and only the ledger is produced.
    plan : dict | Plan | None
    config : dict | DetectionConfig | None
        Partial detection config; omitted keys use defaults.
    subject_id : str
        Student/account the alerts belong to.
    persisted_alerts : iterable
        Alerts already in the notification store; they win over fresh
        alerts of the same type.
    date_from, date_to, scope
        Ledger window and goal/stop scope.
    as_of : str | None
        Timestamp for status alerts; defaults to the latest trade.

    Returns
    -------
    dict
        ``analysis``, ``status``, ``daily_scores``, ``metrics``,
        ``alerts``, ``ledger``, ``ledger_summary``, ``compliance_emotional``.
    """
    resolved = resolve_trades(trades)
    registry = EmotionRegistry.from_records(registry)
    config = DetectionConfig.from_mapping(config)
    plan = resolve_plan(plan)
    scope = LedgerScope(scope)

    analysis_id = payload_hash({
        "subject": subject_id,
        "trades": [t.to_dict() for t in resolved],
        "plan": plan.model_dump(mode="json"),
        "config": config.model_dump(mode="json"),
        "registry": registry.to_list(),
        "scope": scope.value,
        "from": str(date_from),
        "to": str(date_to),
    })
    with analysis_context(analysis_id):
        return _run(
            resolved,
            registry,
            plan,
            config,
            subject_id=subject_id,
            persisted_alerts=persisted_alerts,
            date_from=date_from,
            date_to=date_to,
            scope=scope,
            as_of=as_of,
        )


def _run(
    resolved: list[Trade],
    registry: EmotionRegistry,
    plan: Plan,
    config: DetectionConfig,
    *,
    subject_id: str,
    persisted_alerts: Iterable[Any],
    date_from: dt.date | str | None,
    date_to: dt.date | str | None,
    scope: LedgerScope,
    as_of: str | None,
) -> dict[str, Any]:
    """Pipeline body; runs with the analysis ID bound."""
    ledger = build_ledger(
        resolved, plan, date_from=date_from, date_to=date_to, scope=scope
    )
    summary = summarize_ledger(ledger, plan, scope=scope)
    # Emotional analysis needs both trades and a registry
    trades_in_scope = [] if registry.is_empty else [e.trade for e in ledger]

    tilt = TiltDetector(config.tilt).detect(trades_in_scope, registry)
    revenge = RevengeDetector(config.revenge).detect(trades_in_scope, registry)
    overtrading_detector = OvertradingDetector(config.overtrading)
    overtrading = overtrading_detector.detect(trades_in_scope)
    overtrading_report = overtrading_detector.report(trades_in_scope)
    fomo_detector = FomoDetector(config.fomo)
    fomo = fomo_detector.detect(trades_in_scope, registry)
    fomo_report = fomo_detector.report(trades_in_scope, registry)
    flow_detector = FlowStateDetector(config.flow_state)
    flow = flow_detector.evaluate(trades_in_scope, registry)
    flow_findings = flow_detector.detect(trades_in_scope, registry)

    period = score_period(trades_in_scope, registry, config.trend)
    events = compliance_events(
        [*tilt, *revenge], ledger if trades_in_scope else ()
    )
    status = calculate_student_status(
        period["score"], events, config.status_thresholds, config.penalties
    )

    correlation = correlate(
        ledger if trades_in_scope else None,
        trades_in_scope,
        registry,
        goal=summary["goal_amount"],
        stop=summary["stop_amount"],
        config=config.correlation,
    )

    if as_of is None and ledger:
        as_of = ledger[-1].trade.timestamp
    fresh = collect_alerts(
        subject_id,
        tilt=tilt,
        revenge=revenge,
        correlation=correlation["findings"] if correlation else (),
        overtrading=overtrading,
        fomo=fomo,
        status=status if trades_in_scope else None,
        as_of=as_of,
    )
    alerts = merge_alerts(persisted_alerts, fresh)

    analysis = None
    if trades_in_scope:
        analysis = {
            "trades_count": period["trades_count"],
            "period_score": {
                "score": period["score"],
                "raw_average": period["raw_average"],
                "details": period["details"],
            },
            "distribution": period["distribution"],
            "trend": period["trend"],
            "top_emotions": period["top_emotions"],
            "tilt": {"detected": bool(tilt), "sequences": _findings(tilt)},
            "revenge": {
                "detected": bool(revenge),
                "count": len(revenge),
                "instances": _findings(revenge),
            },
            "overtrading": {
                **overtrading_report,
                "detected": overtrading_report["is_overtrading"],
                "days": _findings(overtrading),
            },
            "fomo": {**fomo_report, "findings": _findings(fomo)},
            "flow_state": {**flow, "findings": _findings(flow_findings)},
            "compliance_events": events,
        }

    compliance_emotional = None
    if correlation is not None:
        compliance_emotional = {
            "financial_status": correlation["financial_status"],
            "emotional_correlation": correlation["emotional_correlation"],
            "alerts": _findings(correlation["findings"]),
        }

    logger.info(
        "Analysis for %r: %d trade(s), status %s, %d alert(s)",
        subject_id,
        len(trades_in_scope),
        status["status"],
        len(alerts),
    )
    return {
        "analysis": analysis,
        "status": status,
        "daily_scores": calculate_daily_scores(trades_in_scope, registry),
        "metrics": _metrics(
            period, status, tilt, revenge, overtrading_report, fomo_report, flow
        ),
        "alerts": [a.to_dict() for a in alerts],
        "ledger": [e.to_dict() for e in ledger],
        "ledger_summary": summary,
        "compliance_emotional": compliance_emotional,
    }
