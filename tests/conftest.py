"""Shared fixtures for the emotional-profile test suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Sequence

import pytest

from emotional_profile.core.config import DetectionConfig
from emotional_profile.core.models import Trade, resolve_trades
from emotional_profile.core.registry import EmotionRegistry


TRADE_DATE = "2024-03-04"


def _shift(clock: str, minutes: float) -> str:
    moved = datetime.strptime(clock, "%H:%M") + timedelta(minutes=minutes)
    return moved.strftime("%H:%M")


# ---------------------------------------------------------------------------
# Registry / config
# ---------------------------------------------------------------------------

@pytest.fixture
def registry() -> EmotionRegistry:
    """The built-in default registry (Calmo +2, Raiva -2, Revanche -4, ...)."""
    return EmotionRegistry.default()


@pytest.fixture
def empty_registry() -> EmotionRegistry:
    return EmotionRegistry()


@pytest.fixture
def detection_config() -> DetectionConfig:
    return DetectionConfig()


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------

@pytest.fixture
def make_trade() -> Callable[..., dict[str, Any]]:
    """Factory for raw trade records in the persistence (camelCase) shape."""

    def _make(
        trade_id: str = "t1",
        *,
        date: str | None = TRADE_DATE,
        entry: str | None = "10:00",
        exit: str | None = None,
        result: float = 0.0,
        emotion: str | None = "Calmo",
        qty: float = 1.0,
        **extra: Any,
    ) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": trade_id,
            "date": date,
            "entryTime": entry,
            "exitTime": exit,
            "ticker": "WINFUT",
            "side": "LONG",
            "qty": qty,
            "result": result,
            "emotionEntry": emotion,
        }
        record.update(extra)
        return record

    return _make


@pytest.fixture
def make_series(make_trade) -> Callable[..., list[dict[str, Any]]]:
    """Factory for a sequence of trades ``step`` minutes apart (entry to entry)."""

    def _make(
        emotions: Sequence[str | None],
        results: Sequence[float],
        *,
        step: float = 10,
        start: str = "10:00",
        date: str = TRADE_DATE,
        qtys: Sequence[float] | None = None,
        prefix: str = "t",
    ) -> list[dict[str, Any]]:
        assert len(emotions) == len(results)
        return [
            make_trade(
                f"{prefix}{i + 1}",
                date=date,
                entry=_shift(start, i * step),
                result=result,
                emotion=emotion,
                qty=qtys[i] if qtys else 1.0,
            )
            for i, (emotion, result) in enumerate(zip(emotions, results))
        ]

    return _make


@pytest.fixture
def as_trades() -> Callable[[list[dict[str, Any]]], list[Trade]]:
    return resolve_trades


@pytest.fixture
def tilt_scenario(make_series) -> list[dict[str, Any]]:
    """Frustrado -> Raiva -> Raiva, 10 minutes apart, all losses."""
    return make_series(["Frustrado", "Raiva", "Raiva"], [-200, -100, -100])


@pytest.fixture
def goal_plan() -> dict[str, Any]:
    """R$10,000 capital, 5% cycle goal (R$500), 3% cycle stop (R$300)."""
    return {"pl": 10000, "cycleGoal": 5, "cycleStop": 3, "riskPerOperation": 2}
