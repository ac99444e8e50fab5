"""Shared fixtures for journal tests."""

import pytest

from emotional_profile.core.config import (
    FlowStateConfig,
    FomoConfig,
    OvertradingConfig,
    RevengeConfig,
    TiltConfig,
)
from emotional_profile.journal.flow_state import FlowStateDetector
from emotional_profile.journal.fomo import FomoDetector
from emotional_profile.journal.overtrading import OvertradingDetector
from emotional_profile.journal.revenge import RevengeDetector
from emotional_profile.journal.tilt import TiltDetector


@pytest.fixture
def tilt_detector():
    return TiltDetector(TiltConfig())


@pytest.fixture
def revenge_detector():
    return RevengeDetector(RevengeConfig())


@pytest.fixture
def overtrading_detector():
    return OvertradingDetector(
        OvertradingConfig(max_trades_per_day=5, warning_threshold=0.8)
    )


@pytest.fixture
def fomo_detector():
    return FomoDetector(FomoConfig())


@pytest.fixture
def flow_detector():
    return FlowStateDetector(FlowStateConfig())
