"""Property test: scoring bounds, tilt threshold and alert merge stability."""

from hypothesis import given, settings, strategies as st

from emotional_profile.alerts.aggregator import Alert, merge_alerts, sort_by_severity
from emotional_profile.core.config import TiltConfig
from emotional_profile.core.enums import AlertType, Severity
from emotional_profile.core.models import resolve_trades
from emotional_profile.core.registry import DEFAULT_EMOTIONS, EmotionRegistry
from emotional_profile.journal.tilt import TiltDetector
from emotional_profile.scoring.period import normalize_score, score_period
from emotional_profile.scoring.status import calculate_student_status

REGISTRY = EmotionRegistry.default()
EMOTION_NAMES = [e["name"] for e in DEFAULT_EMOTIONS] + ["Desconhecida", None]
COMPLIANCE_EVENTS = [
    "TILT_DETECTED", "REVENGE_DETECTED", "RISK_VIOLATION",
    "RR_VIOLATION", "POST_STOP_TRADE", "SOMETHING_ELSE",
]


def _trades(entries, exits=None):
    exits = exits or [None] * len(entries)
    return resolve_trades([
        {
            "id": f"t{i}",
            "date": "2024-03-04",
            "entryTime": f"10:{i:02d}",
            "result": -10.0,
            "emotionEntry": entry,
            "emotionExit": exit_,
        }
        for i, (entry, exit_) in enumerate(zip(entries, exits))
    ])


# ---------------------------------------------------------------------------
# Score bounds
# ---------------------------------------------------------------------------

@given(raw=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
def test_normalized_score_in_range(raw):
    assert 0 <= normalize_score(raw) <= 100


@given(
    emotions=st.lists(
        st.tuples(st.sampled_from(EMOTION_NAMES), st.sampled_from(EMOTION_NAMES)),
        max_size=40,
    )
)
@settings(max_examples=200)
def test_period_score_in_range(emotions):
    trades = _trades([e for e, _ in emotions], [x for _, x in emotions])
    result = score_period(trades, REGISTRY)
    assert 0 <= result["score"] <= 100
    assert sum(result["distribution"].values()) == len(trades)


@given(
    score=st.integers(min_value=0, max_value=100),
    events=st.lists(st.sampled_from(COMPLIANCE_EVENTS), max_size=20),
)
def test_adjusted_score_never_negative(score, events):
    status = calculate_student_status(score, [{"type": t} for t in events])
    assert 0 <= status["adjusted_score"] <= score
    assert status["status"] in {"HEALTHY", "ATTENTION", "WARNING", "CRITICAL"}


@given(
    score=st.integers(min_value=0, max_value=100),
    events=st.lists(st.sampled_from(COMPLIANCE_EVENTS), max_size=10),
)
def test_more_events_never_improve_status(score, events):
    order = ["HEALTHY", "ATTENTION", "WARNING", "CRITICAL"]
    base = calculate_student_status(score, [{"type": t} for t in events])
    worse = calculate_student_status(
        score, [{"type": t} for t in events] + [{"type": "TILT_DETECTED"}]
    )
    assert order.index(worse["status"]) >= order.index(base["status"])


# ---------------------------------------------------------------------------
# Tilt threshold
# ---------------------------------------------------------------------------

@given(n=st.integers(min_value=2, max_value=8))
def test_tilt_fires_exactly_at_threshold(n):
    detector = TiltDetector(TiltConfig(consecutive_trades=n))
    assert detector.detect(_trades(["Raiva"] * n), REGISTRY) != []
    assert detector.detect(_trades(["Raiva"] * (n - 1)), REGISTRY) == []


@given(run=st.integers(min_value=3, max_value=20))
def test_one_finding_per_maximal_run(run):
    trades = _trades(["Raiva"] * run)
    findings = TiltDetector().detect(trades, REGISTRY)
    assert len(findings) == 1
    assert findings[0].details["trades_count"] == run


# ---------------------------------------------------------------------------
# Alert merge
# ---------------------------------------------------------------------------

alerts = st.lists(
    st.builds(
        Alert,
        id=st.text(alphabet="abcdef0123456789", min_size=4, max_size=8),
        alert_type=st.sampled_from(list(AlertType)),
        severity=st.sampled_from(list(Severity)),
        message=st.just("m"),
        timestamp=st.just("2024-03-04T10:00:00"),
        subject_id=st.sampled_from(["s1", "s2"]),
    ),
    max_size=15,
)


@given(persisted=alerts, fresh=alerts)
@settings(max_examples=200)
def test_merge_idempotent(persisted, fresh):
    once = merge_alerts(persisted, fresh)
    assert merge_alerts(once, fresh) == once
    assert len({a.id for a in once}) == len(once)


@given(fresh=alerts)
def test_sort_orders_by_severity(fresh):
    rank = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]
    ranked = [rank.index(a.severity) for a in sort_by_severity(fresh)]
    assert ranked == sorted(ranked)
