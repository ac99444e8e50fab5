"""Input models consumed by the engine.

Trades and plans arrive as plain dicts from the persistence layer
(camelCase keys, loosely typed).  These pydantic models are the single
boundary where that data is coerced into canonical form; everything
downstream only sees validated, immutable ``Trade`` and ``Plan`` objects.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .enums import LedgerScope, RoStatus, RrStatus, Side
from .errors import InvalidInputError

logger = logging.getLogger(__name__)

# "09:30", "09:30:15", "09:30:15.250"
_CLOCK_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?$")

_TIME_KEYS = (("entryTime", "entry_time"), ("exitTime", "exit_time"))


def _anchor_clock(day: dt.date | str | None, clock: str) -> dt.datetime | None:
    """Combine a bare ``H:MM[:SS[.ffffff]]`` clock with the trade date.

    Returns None when there is no usable date or the clock is out of
    range; the trade is kept without timing.
    """
    if not day:
        return None
    hours, minutes, *rest = clock.split(":")
    seconds, _, fraction = (rest[0] if rest else "0").partition(".")
    try:
        if isinstance(day, str):
            day = dt.date.fromisoformat(day)
        moment = dt.time(
            int(hours),
            int(minutes),
            int(seconds),
            int(fraction[:6].ljust(6, "0")),
        )
    except ValueError:
        logger.warning("Ignoring unusable clock time %r on %s", clock, day)
        return None
    return dt.datetime.combine(day, moment)


class _InputModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )


# ---------------------------------------------------------------------------
# Trade
# ---------------------------------------------------------------------------

class TradeCompliance(_InputModel):
    """Compliance verdicts pre-computed by the server for one trade.

    Kept as plain strings so an unexpected status value never invalidates
    the whole trade; comparisons go through the enums.
    """

    ro_status: str | None = None
    rr_status: str | None = None

    @property
    def ro_breached(self) -> bool:
        return self.ro_status == RoStatus.FORA_DO_PLANO.value

    @property
    def rr_breached(self) -> bool:
        return self.rr_status == RrStatus.NAO_CONFORME.value


class Trade(_InputModel):
    """One journaled trade, read-only to the engine."""

    id: str = ""
    date: dt.date | None = None
    entry_time: dt.datetime | None = None
    exit_time: dt.datetime | None = None
    ticker: str = ""
    side: Side | None = None
    qty: float = 0.0
    result: float = 0.0
    emotion_entry: str | None = None
    emotion_exit: str | None = None
    plan_id: str | None = None
    account_id: str | None = None
    student_id: str | None = None
    compliance: TradeCompliance | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_raw(cls, data: Any) -> Any:
        """Canonicalize loose persistence data before field validation.

        This is the only place legacy field names are handled: older
        trades carry ``emotion`` instead of ``emotionEntry``.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)

        if not (data.get("emotionEntry") or data.get("emotion_entry")):
            legacy = data.get("emotion")
            if legacy:
                data["emotionEntry"] = legacy

        raw_date = data.get("date")
        if isinstance(raw_date, dt.datetime):
            raw_date = raw_date.date()
        elif isinstance(raw_date, str):
            raw_date = raw_date.strip()[:10] or None
        data["date"] = raw_date

        for camel, snake in _TIME_KEYS:
            key = camel if camel in data else snake
            value = data.get(key)
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    value = None
                elif _CLOCK_RE.match(value):
                    value = _anchor_clock(raw_date, value)
            data[key] = value

        for key in ("qty", "result"):
            if data.get(key) is None:
                data.pop(key, None)
        return data

    @field_validator("side", mode="before")
    @classmethod
    def _coerce_side(cls, v: Any) -> Any:
        if v is None or isinstance(v, Side):
            return v
        text = str(v).strip().upper()
        aliases = {"BUY": "LONG", "C": "LONG", "SELL": "SHORT", "V": "SHORT"}
        text = aliases.get(text, text)
        return text if text in Side.__members__ else None

    @field_validator("entry_time", "exit_time")
    @classmethod
    def _to_utc(cls, v: dt.datetime | None) -> dt.datetime | None:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=dt.timezone.utc)
        return v.astimezone(dt.timezone.utc)

    # ------------------------------------------------------------------ #
    # Derived views                                                        #
    # ------------------------------------------------------------------ #

    @property
    def sort_key(self) -> tuple[str, str]:
        """Chronological key: (date, entry time), ISO strings compared lexically."""
        day = self.date.isoformat() if self.date else ""
        entry = self.entry_time.isoformat() if self.entry_time else ""
        return day, entry

    @property
    def has_timing(self) -> bool:
        """True when the trade can take part in time-window calculations."""
        return self.date is not None and self.entry_time is not None

    @property
    def closed_at(self) -> dt.datetime | None:
        """Exit time, falling back to entry time."""
        return self.exit_time or self.entry_time

    @property
    def is_loss(self) -> bool:
        return self.result < 0

    @property
    def timestamp(self) -> str | None:
        """Best machine-usable timestamp for this trade."""
        if self.entry_time is not None:
            return self.entry_time.isoformat()
        if self.date is not None:
            return self.date.isoformat()
        return None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

class Plan(_InputModel):
    """Trading plan thresholds.  Percentages; 0 or absent disables a check."""

    pl: float | None = None
    current_pl: float | None = None
    cycle_goal: float | None = None
    cycle_stop: float | None = None
    period_goal: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "periodGoal", "period_goal", "goalPercent", "goal_percent"
        ),
    )
    period_stop: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "periodStop", "period_stop", "stopPercent", "stop_percent"
        ),
    )
    risk_per_operation: float | None = None
    rr_target: float | None = None

    @field_validator(
        "cycle_goal",
        "cycle_stop",
        "period_goal",
        "period_stop",
        "risk_per_operation",
        "rr_target",
    )
    @classmethod
    def _clamp_non_negative(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            logger.warning("Negative plan threshold %s clamped to 0", v)
            return 0.0
        return v

    @property
    def base_pl(self) -> float:
        """Base capital reference: ``pl``, or ``currentPl`` when ``pl`` is absent."""
        if self.pl is not None:
            return self.pl
        return self.current_pl or 0.0

    def amount_for(self, percent: float | None) -> float | None:
        """Convert a percentage threshold into currency, or None if disabled."""
        base = self.base_pl
        if base <= 0 or not percent:
            return None
        return base * percent / 100

    def goal_amount(self, scope: LedgerScope = LedgerScope.CYCLE) -> float | None:
        if scope == LedgerScope.PERIOD:
            return self.amount_for(self.period_goal)
        return self.amount_for(self.cycle_goal)

    def stop_amount(self, scope: LedgerScope = LedgerScope.CYCLE) -> float | None:
        if scope == LedgerScope.PERIOD:
            return self.amount_for(self.period_stop)
        return self.amount_for(self.cycle_stop)


# ---------------------------------------------------------------------------
# Boundary coercion
# ---------------------------------------------------------------------------

def resolve_trades(raw: Any) -> list[Trade]:
    """Coerce raw trade records into validated ``Trade`` objects.

    ``None`` means "no trades yet" and yields an empty list.  Anything
    other than a list/tuple is a programmer error and raises.  Individual
    records that fail validation are logged and skipped so one bad row
    never blocks the rest of the analysis.
    """
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise InvalidInputError("trades", "list of trade records", raw)

    trades: list[Trade] = []
    for index, item in enumerate(raw):
        if isinstance(item, Trade):
            trades.append(item)
            continue
        if not isinstance(item, dict):
            logger.warning(
                "Skipping trade #%d: unsupported record type %s",
                index,
                type(item).__name__,
            )
            continue
        try:
            trades.append(Trade.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed trade #%d (id=%s): %d validation error(s)",
                index,
                item.get("id"),
                exc.error_count(),
            )
    return trades


def resolve_plan(raw: Any) -> Plan:
    """Coerce a raw plan dict (or None) into a ``Plan``."""
    if raw is None:
        return Plan()
    if isinstance(raw, Plan):
        return raw
    if not isinstance(raw, dict):
        raise InvalidInputError("plan", "plan mapping", raw)
    return Plan.model_validate(raw)
