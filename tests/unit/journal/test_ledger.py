"""Tests for the plan ledger builder and summary."""

import pytest

from emotional_profile.core.enums import FinancialStatus, LedgerEvent
from emotional_profile.core.errors import InvalidInputError
from emotional_profile.journal.ledger import (
    NO_DATE_BUCKET,
    build_ledger,
    financial_status,
    group_ledger_by_date,
    summarize_ledger,
)


def _events(ledger):
    return [set(e.events) for e in ledger]


class TestOrdering:
    def test_empty_input(self, goal_plan):
        assert build_ledger([], goal_plan) == []
        assert build_ledger(None) == []

    def test_non_list_raises(self):
        with pytest.raises(InvalidInputError):
            build_ledger({"id": "t1"})

    def test_sorted_by_date_then_entry(self, make_trade):
        trades = [
            make_trade("c", date="2024-03-05", entry="09:00", result=10),
            make_trade("b", date="2024-03-04", entry="11:00", result=20),
            make_trade("a", date="2024-03-04", entry="10:00", result=30),
        ]
        ledger = build_ledger(trades)
        assert [e.trade_id for e in ledger] == ["a", "b", "c"]
        assert [e.seq for e in ledger] == [1, 2, 3]

    def test_running_result_and_balance(self, make_series):
        ledger = build_ledger(make_series(["Calmo"] * 3, [100, -50, 25]), {"pl": 1000})
        assert [e.running_result for e in ledger] == [100, 50, 75]
        assert [e.running_balance for e in ledger] == [1100, 1050, 1075]

    def test_date_filter_inclusive(self, make_trade):
        trades = [
            make_trade("a", date="2024-03-01"),
            make_trade("b", date="2024-03-02"),
            make_trade("c", date="2024-03-03"),
            make_trade("d", date=None),
        ]
        ledger = build_ledger(trades, date_from="2024-03-02", date_to="2024-03-03")
        assert [e.trade_id for e in ledger] == ["b", "c"]

    def test_undated_trades_kept_without_filter(self, make_trade):
        ledger = build_ledger([make_trade("a"), make_trade("u", date=None)])
        assert {e.trade_id for e in ledger} == {"a", "u"}


class TestGoalAndStop:
    def test_goal_hit_then_post_goal(self, make_series, goal_plan):
        trades = make_series(["Calmo"] * 4, [200, 200, 150, 50])
        ledger = build_ledger(trades, goal_plan)
        assert ledger[2].running_result == 550
        assert LedgerEvent.GOAL_HIT in ledger[2].events
        assert ledger[3].events == (LedgerEvent.POST_GOAL,)
        assert sum(e.has(LedgerEvent.GOAL_HIT) for e in ledger) == 1

    def test_stop_hit_then_post_stop(self, make_series, goal_plan):
        trades = make_series(["Raiva"] * 3, [-150, -150, -10])
        ledger = build_ledger(trades, goal_plan)
        assert LedgerEvent.STOP_HIT in ledger[1].events
        assert LedgerEvent.POST_STOP in ledger[2].events

    def test_no_second_hit_after_crossing(self, make_series, goal_plan):
        # Goal first, then a collapse well past the stop
        trades = make_series(["Calmo"] * 3, [600, -1000, -200])
        ledger = build_ledger(trades, goal_plan)
        hits = [e for e in ledger if e.has(LedgerEvent.STOP_HIT)]
        assert hits == []
        assert all(e.has(LedgerEvent.POST_GOAL) for e in ledger[1:])

    def test_period_scope_uses_period_thresholds(self, make_series):
        plan = {"pl": 10000, "cycleGoal": 50, "periodGoal": 1}
        ledger = build_ledger(make_series(["Calmo"], [100]), plan, scope="period")
        assert ledger[0].has(LedgerEvent.GOAL_HIT)

    def test_no_capital_means_no_hits(self, make_series):
        ledger = build_ledger(make_series(["Calmo"], [1000]), {"cycleGoal": 5})
        assert ledger[0].events == ()

    def test_zero_pl_ignores_current_pl(self, make_series):
        plan = {"pl": 0, "currentPl": 10000, "cycleGoal": 5}
        ledger = build_ledger(make_series(["Calmo"], [600]), plan)
        assert ledger[0].events == ()
        assert ledger[0].running_balance == 600


class TestComplianceEvents:
    def test_local_risk_check(self, make_series, goal_plan):
        # riskPerOperation 2% of 10,000 = 200
        ledger = build_ledger(make_series(["Medo"] * 2, [-200, -250]), goal_plan)
        assert not ledger[0].has(LedgerEvent.RO_FORA)
        assert ledger[1].has(LedgerEvent.RO_FORA)

    def test_server_verdict_wins(self, make_trade, goal_plan):
        trade = make_trade(result=-500, compliance={"roStatus": "CONFORME"})
        assert not build_ledger([trade], goal_plan)[0].has(LedgerEvent.RO_FORA)

    def test_local_check_skipped_when_compliance_present(self, make_trade, goal_plan):
        trade = make_trade(result=-500, compliance={"rrStatus": "CONFORME"})
        assert not build_ledger([trade], goal_plan)[0].has(LedgerEvent.RO_FORA)

    def test_rr_breach_from_server(self, make_trade):
        trade = make_trade(compliance={"rrStatus": "NAO_CONFORME"})
        assert build_ledger([trade])[0].has(LedgerEvent.RR_FORA)


class TestSummary:
    def test_empty_summary(self, goal_plan):
        summary = summarize_ledger([], goal_plan)
        assert summary["financial_status"] == "NO_DATA"
        assert summary["total_trades"] == 0
        assert summary["current_balance"] == 10000

    def test_goal_summary(self, make_series, goal_plan):
        ledger = build_ledger(make_series(["Calmo"] * 3, [200, 200, 150]), goal_plan)
        summary = summarize_ledger(ledger, goal_plan)
        assert summary["goal_reached"] is True
        assert summary["financial_status"] == "GOAL_HIT"
        assert summary["progress_percent"] == 100
        assert summary["win_rate"] == 100

    def test_stop_violations_counted(self, make_series, goal_plan):
        ledger = build_ledger(make_series(["Raiva"] * 4, [-200, -200, -50, 10]), goal_plan)
        summary = summarize_ledger(ledger, goal_plan)
        assert summary["stop_reached"] is True
        assert summary["violations"] == 2
        assert summary["consumed_stop_percent"] == 100
        assert summary["financial_status"] == "STOP_HIT"

    def test_summary_is_json_friendly(self, make_series, goal_plan):
        import json

        ledger = build_ledger(make_series(["Calmo"], [10]), goal_plan)
        json.dumps(summarize_ledger(ledger, goal_plan))
        json.dumps([e.to_dict() for e in ledger])


class TestFinancialStatus:
    def test_gave_back(self, make_series, goal_plan):
        ledger = build_ledger(make_series(["Calmo"] * 2, [600, -200]), goal_plan)
        assert financial_status(ledger, 500, 300) == FinancialStatus.GOAL_GAVE_BACK

    def test_goal_to_stop(self, make_series, goal_plan):
        ledger = build_ledger(make_series(["Calmo"] * 2, [600, -1000]), goal_plan)
        assert financial_status(ledger, 500, 300) == FinancialStatus.GOAL_TO_STOP

    def test_on_track(self, make_series, goal_plan):
        ledger = build_ledger(make_series(["Calmo"], [100]), goal_plan)
        assert financial_status(ledger, 500, 300) == FinancialStatus.ON_TRACK


def test_group_by_date(make_trade):
    ledger = build_ledger([
        make_trade("a", date="2024-03-04"),
        make_trade("b", date="2024-03-05"),
        make_trade("c", date="2024-03-04", entry="11:00"),
        make_trade("u", date=None),
    ])
    grouped = group_ledger_by_date(ledger)
    assert list(grouped) == [NO_DATE_BUCKET, "2024-03-04", "2024-03-05"]
    assert [e.trade_id for e in grouped["2024-03-04"]] == ["a", "c"]
