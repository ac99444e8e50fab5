"""Plan ledger and behavioural pattern detectors.

Key components
--------------
LedgerEntry           One trade projected onto the plan ledger
Finding               Immutable record of one detected pattern
TiltDetector          Consecutive compromised-state trades
RevengeDetector       Revenge trading after losses
OvertradingDetector   Too many trades per calendar day
FomoDetector          Impulsive-entry rate
FlowStateDetector     Sustained disciplined, winning trading
"""

from .findings import Finding
from .ledger import (
    LedgerEntry,
    build_ledger,
    financial_status,
    group_ledger_by_date,
    summarize_ledger,
)
from .tilt import TiltDetector, detect_tilt
from .revenge import RevengeDetector, detect_revenge
from .overtrading import OvertradingDetector, detect_overtrading
from .fomo import FomoDetector, detect_fomo
from .flow_state import FlowStateDetector, detect_flow_state

__all__ = [
    "Finding",
    "LedgerEntry",
    "build_ledger",
    "financial_status",
    "group_ledger_by_date",
    "summarize_ledger",
    "TiltDetector",
    "detect_tilt",
    "RevengeDetector",
    "detect_revenge",
    "OvertradingDetector",
    "detect_overtrading",
    "FomoDetector",
    "detect_fomo",
    "FlowStateDetector",
    "detect_flow_state",
]
