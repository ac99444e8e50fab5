"""End-to-end tests for the analysis pipeline.

trades + plan + registry -> ledger -> detectors/scoring -> correlation
-> alerts, checked through the public ``analyze`` entry point.
"""

import json

import pytest

from emotional_profile.analysis import analyze
from emotional_profile.observability.logger import get_analysis_id, set_analysis_id


class TestTiltScenario:
    """Frustrado -> Raiva -> Raiva, 10 minutes apart, -200/-100/-100."""

    @pytest.fixture
    def result(self, tilt_scenario, registry):
        return analyze(tilt_scenario, registry, subject_id="student-1")

    def test_tilt_detected(self, result):
        tilt = result["analysis"]["tilt"]
        assert tilt["detected"] is True
        assert len(tilt["sequences"]) == 1
        assert tilt["sequences"][0]["severity"] in {"MEDIUM", "HIGH", "CRITICAL"}

    def test_low_score_and_status(self, result):
        assert result["analysis"]["period_score"]["score"] < 30
        assert result["status"]["status"] in {"WARNING", "CRITICAL"}

    def test_alerts_ranked(self, result):
        types = [a["type"] for a in result["alerts"]]
        assert "TILT_DETECTED" in types
        assert types[0] == "STATUS_CRITICAL"
        status_alert = result["alerts"][0]
        assert status_alert["timestamp"].startswith("2024-03-04T10:20")
        assert status_alert["subject_id"] == "student-1"

    def test_metrics(self, result):
        metrics = result["metrics"]
        assert metrics["total_trades"] == 3
        assert metrics["negative_rate"] == 100.0
        assert metrics["tilt_count"] == 1
        assert metrics["top_emotion"] == "Raiva"


class TestGoalScenario:
    """R$10,000 plan with a 5% cycle goal; +200, +200, +150, then one more."""

    def test_goal_hit_on_third_trade(self, make_series, registry):
        trades = make_series(["Calmo"] * 3, [200, 200, 150])
        result = analyze(trades, registry, plan={"pl": 10000, "cycleGoal": 5})
        ledger = result["ledger"]
        assert ledger[2]["running_result"] == 550
        assert "GOAL_HIT" in ledger[2]["events"]
        assert result["ledger_summary"]["financial_status"] == "GOAL_HIT"

    def test_fourth_trade_post_goal(self, make_series, registry):
        trades = make_series(["Calmo"] * 4, [200, 200, 150, 100])
        result = analyze(trades, registry, plan={"pl": 10000, "cycleGoal": 5})
        events = [e["events"] for e in result["ledger"]]
        assert events[3] == ["POST_GOAL"]
        assert sum("GOAL_HIT" in e for e in events) == 1
        assert result["compliance_emotional"]["emotional_correlation"] == "STRONG_POSITIVE"


class TestEmptyScenario:
    def test_empty_trades(self, registry):
        result = analyze([], registry)
        assert result["ledger"] == []
        assert result["analysis"] is None
        assert result["status"]["status"] == "HEALTHY"
        assert result["status"]["adjusted_score"] == 100
        assert result["alerts"] == []
        assert result["daily_scores"] == []
        assert result["compliance_emotional"] is None

    def test_none_trades(self, registry):
        assert analyze(None, registry)["alerts"] == []

    def test_empty_registry_keeps_ledger(self, tilt_scenario, empty_registry):
        result = analyze(tilt_scenario, empty_registry)
        assert result["analysis"] is None
        assert result["status"]["status"] == "HEALTHY"
        assert len(result["ledger"]) == 3
        assert result["alerts"] == []


class TestPipelineContract:
    def test_json_serializable(self, make_series, registry, goal_plan):
        trades = make_series(
            ["Calmo", "Medo", "Revanche", "FOMO", "Disciplinado"],
            [100, -250, -200, 50, 10],
            step=5,
            qtys=[1, 1, 3, 1, 1],
        )
        result = analyze(trades, registry, plan=goal_plan, subject_id="s1")
        json.dumps(result)
        assert set(result) == {
            "analysis", "status", "daily_scores", "metrics", "alerts",
            "ledger", "ledger_summary", "compliance_emotional",
        }

    def test_deterministic(self, make_series, registry, goal_plan):
        trades = make_series(["Raiva", "Revanche", "Calmo"], [-300, -50, 20], step=5)
        first = analyze(trades, registry, plan=goal_plan, subject_id="s1")
        second = analyze(trades, registry, plan=goal_plan, subject_id="s1")
        assert first == second

    def test_analysis_id_not_left_bound(self, tilt_scenario, registry):
        set_analysis_id("")
        analyze(tilt_scenario, registry, subject_id="s1")
        assert get_analysis_id() == ""

    def test_persisted_alerts_win(self, tilt_scenario, registry):
        fresh = analyze(tilt_scenario, registry, subject_id="s1")["alerts"]
        tilt = next(a for a in fresh if a["type"] == "TILT_DETECTED")
        stored = [{
            "id": "db-tilt",
            "type": "TILT_DETECTED",
            "severity": "HIGH",
            "studentId": "s1",
            "message": "stored tilt",
            "timestamp": "2024-03-01T00:00:00+00:00",
            "read": False,
        }]
        merged = analyze(
            tilt_scenario, registry, subject_id="s1", persisted_alerts=stored
        )["alerts"]
        tilt_alerts = [a for a in merged if a["type"] == "TILT_DETECTED"]
        assert [a["id"] for a in tilt_alerts] == ["db-tilt"]
        assert tilt["id"] != "db-tilt"

    def test_config_mapping_applied(self, tilt_scenario, registry):
        result = analyze(
            tilt_scenario, registry, config={"tilt": {"consecutiveTrades": 4}}
        )
        assert result["analysis"]["tilt"]["detected"] is False

    def test_date_window(self, make_series, registry):
        trades = (
            make_series(["Raiva"] * 3, [-1] * 3, date="2024-03-04", prefix="a")
            + make_series(["Calmo"] * 2, [1] * 2, date="2024-03-05", prefix="b")
        )
        result = analyze(trades, registry, date_from="2024-03-05")
        assert result["metrics"]["total_trades"] == 2
        assert result["analysis"]["tilt"]["detected"] is False

    def test_legacy_emotion_field(self, make_trade, registry):
        record = make_trade(emotion=None)
        record["emotion"] = "Revanche"
        result = analyze([record], registry)
        assert result["analysis"]["revenge"]["count"] == 1

    def test_correlation_alerts_surface(self, make_series, registry, goal_plan):
        trades = make_series(["Medo", "Revanche"], [-300, -10], step=30)
        result = analyze(trades, registry, plan=goal_plan, subject_id="s1")
        types = {a["type"] for a in result["alerts"]}
        assert {"RISK_BREACH_EMOTIONAL", "REVENGE_CONFIRMED"} <= types
        assert result["compliance_emotional"]["emotional_correlation"] == "STRONG_NEGATIVE"
