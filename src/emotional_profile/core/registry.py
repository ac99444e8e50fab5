"""Emotion registry: static classification of each emotional state.

The registry is administrator-managed data (category, score and
behavioural tag per emotion).  The engine receives it as an immutable
snapshot per invocation and never subscribes to live updates.

Usage::

    registry = EmotionRegistry.from_records(firestore_emotions)
    registry.get("Raiva").category   # EmotionCategory.NEGATIVE
    registry.get(None).score         # 0 (unknown emotions are neutral)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .enums import EmotionCategory
from .errors import ConfigError, InvalidInputError

logger = logging.getLogger(__name__)

UNKNOWN_EMOTION_ID = "UNKNOWN"


class EmotionDefinition(BaseModel):
    """One registry entry.

    Accepts both the canonical field names and the ones stored by the
    persistence layer (``name`` / ``analysisCategory``).
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    id: str
    label: str = Field(default="", validation_alias=AliasChoices("label", "name"))
    emoji: str = ""
    category: EmotionCategory = Field(
        default=EmotionCategory.NEUTRAL,
        validation_alias=AliasChoices("category", "analysisCategory", "analysis_category"),
    )
    score: int = 0
    behavioral_pattern: str = Field(
        default="OTHER",
        validation_alias=AliasChoices(
            "behavioralPattern", "behavioral_pattern", "pattern"
        ),
    )
    risk_level: str = Field(
        default="MEDIUM", validation_alias=AliasChoices("riskLevel", "risk_level")
    )
    description: str = ""

    @property
    def is_negative(self) -> bool:
        """NEGATIVE or CRITICAL category."""
        return self.category in (EmotionCategory.NEGATIVE, EmotionCategory.CRITICAL)

    @property
    def name(self) -> str:
        return self.label or self.id


def unknown_emotion(name: str | None = None) -> EmotionDefinition:
    """Neutral placeholder for absent or unregistered emotions."""
    return EmotionDefinition(
        id=UNKNOWN_EMOTION_ID,
        label=name or "Not informed",
        emoji="❓",
        category=EmotionCategory.NEUTRAL,
        score=0,
        behavioral_pattern="OTHER",
    )


# Default registry shipped with the platform (mentor-editable in production).
DEFAULT_EMOTIONS: list[dict[str, Any]] = [
    {"id": "disciplinado", "name": "Disciplinado", "emoji": "🎯", "score": 3,
     "analysisCategory": "POSITIVE", "behavioralPattern": "DISCIPLINE", "riskLevel": "LOW"},
    {"id": "calmo", "name": "Calmo", "emoji": "😌", "score": 2,
     "analysisCategory": "POSITIVE", "behavioralPattern": "CALM", "riskLevel": "LOW"},
    {"id": "confiante", "name": "Confiante", "emoji": "💪", "score": 2,
     "analysisCategory": "POSITIVE", "behavioralPattern": "CONFIDENCE", "riskLevel": "MEDIUM"},
    {"id": "neutro", "name": "Neutro", "emoji": "😐", "score": 0,
     "analysisCategory": "NEUTRAL", "behavioralPattern": "NEUTRAL", "riskLevel": "MEDIUM"},
    {"id": "aliviado", "name": "Aliviado", "emoji": "😮‍💨", "score": 0,
     "analysisCategory": "NEUTRAL", "behavioralPattern": "RELIEF", "riskLevel": "MEDIUM"},
    {"id": "ansioso", "name": "Ansioso", "emoji": "😰", "score": -1,
     "analysisCategory": "NEGATIVE", "behavioralPattern": "ANXIETY", "riskLevel": "HIGH"},
    {"id": "medo", "name": "Medo", "emoji": "😨", "score": -2,
     "analysisCategory": "NEGATIVE", "behavioralPattern": "FEAR", "riskLevel": "HIGH"},
    {"id": "frustrado", "name": "Frustrado", "emoji": "😤", "score": -2,
     "analysisCategory": "NEGATIVE", "behavioralPattern": "FRUSTRATION", "riskLevel": "HIGH"},
    {"id": "esgotado", "name": "Esgotado", "emoji": "😩", "score": -2,
     "analysisCategory": "NEGATIVE", "behavioralPattern": "FATIGUE", "riskLevel": "HIGH"},
    {"id": "raiva", "name": "Raiva", "emoji": "😡", "score": -2,
     "analysisCategory": "NEGATIVE", "behavioralPattern": "ANGER", "riskLevel": "HIGH"},
    # Euphoria is scored negative despite its tone
    {"id": "euforico", "name": "Eufórico", "emoji": "🤩", "score": -2,
     "analysisCategory": "NEGATIVE", "behavioralPattern": "EUPHORIA", "riskLevel": "HIGH"},
    {"id": "ganancia", "name": "Ganância", "emoji": "🤑", "score": -3,
     "analysisCategory": "CRITICAL", "behavioralPattern": "GREED", "riskLevel": "CRITICAL"},
    {"id": "fomo", "name": "FOMO", "emoji": "🔥", "score": -3,
     "analysisCategory": "CRITICAL", "behavioralPattern": "FOMO", "riskLevel": "CRITICAL"},
    {"id": "revanche", "name": "Revanche", "emoji": "👊", "score": -4,
     "analysisCategory": "CRITICAL", "behavioralPattern": "REVENGE", "riskLevel": "CRITICAL"},
]


class EmotionRegistry:
    """Immutable lookup from emotion id or label to its definition.

    Lookups never fail: unknown or missing emotions resolve to a neutral
    placeholder contributing score 0.
    """

    def __init__(self, definitions: Iterable[EmotionDefinition] = ()) -> None:
        self._by_id: dict[str, EmotionDefinition] = {}
        self._by_label: dict[str, EmotionDefinition] = {}
        self._by_folded: dict[str, EmotionDefinition] = {}
        for definition in definitions:
            self._by_id[definition.id] = definition
            if definition.label:
                self._by_label.setdefault(definition.label, definition)
            for key in (definition.id, definition.label):
                if key:
                    self._by_folded.setdefault(key.casefold(), definition)

    # ------------------------------------------------------------------ #
    # Construction                                                         #
    # ------------------------------------------------------------------ #

    @classmethod
    def from_records(cls, records: Any) -> "EmotionRegistry":
        """Build a registry from raw records (dicts or definitions).

        Records that fail validation are logged and skipped.
        """
        if records is None:
            return cls()
        if isinstance(records, EmotionRegistry):
            return records
        if not isinstance(records, (list, tuple)):
            raise InvalidInputError("emotions", "list of emotion records", records)

        definitions: list[EmotionDefinition] = []
        for record in records:
            if isinstance(record, EmotionDefinition):
                definitions.append(record)
                continue
            try:
                definitions.append(EmotionDefinition.model_validate(record))
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid emotion record %r: %d validation error(s)",
                    record.get("id") if isinstance(record, dict) else record,
                    exc.error_count(),
                )
        return cls(definitions)

    @classmethod
    def default(cls) -> "EmotionRegistry":
        return cls.from_records(DEFAULT_EMOTIONS)

    @classmethod
    def from_file(cls, path: str | Path) -> "EmotionRegistry":
        """Load a registry from a JSON file holding a list of records."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read emotion registry {path}: {exc}") from exc
        return cls.from_records(records)

    # ------------------------------------------------------------------ #
    # Lookup                                                               #
    # ------------------------------------------------------------------ #

    def get(self, name_or_id: str | None) -> EmotionDefinition:
        """Resolve an emotion by id, then label, then case-insensitively."""
        if not name_or_id:
            return unknown_emotion()
        found = (
            self._by_id.get(name_or_id)
            or self._by_label.get(name_or_id)
            or self._by_folded.get(name_or_id.casefold())
        )
        return found if found is not None else unknown_emotion(name_or_id)

    def category_of(self, name_or_id: str | None) -> EmotionCategory:
        return self.get(name_or_id).category

    def score_of(self, name_or_id: str | None) -> int:
        return self.get(name_or_id).score

    def pattern_of(self, name_or_id: str | None) -> str:
        return self.get(name_or_id).behavioral_pattern

    def __contains__(self, name_or_id: object) -> bool:
        return (
            isinstance(name_or_id, str)
            and self.get(name_or_id).id != UNKNOWN_EMOTION_ID
        )

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[EmotionDefinition]:
        return iter(self._by_id.values())

    @property
    def is_empty(self) -> bool:
        return not self._by_id

    def to_list(self) -> list[dict[str, Any]]:
        return [d.model_dump(mode="json") for d in self._by_id.values()]
