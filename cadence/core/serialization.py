"""
Persistence round-trip for card scheduling state.

Storage itself belongs to the caller. This module fixes the shape of a
stored record and normalizes timestamps so that a state written out and
read back is identical to the original.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from cadence.core.card_state import (
    INITIAL_EASE,
    MIN_DIFFICULTY,
    MIN_STABILITY,
    CardState,
    CardStatus,
    Grade,
)


def normalize_timestamp(value: datetime | date | str) -> datetime:
    """
    Convert a stored timestamp into an aware UTC datetime.

    Accepts:
    - datetime (naive values are taken to be UTC)
    - date (midnight UTC)
    - ISO-8601 string, with or without offset ("Z" allowed)

    Raises:
        ValueError: for unparseable input
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return normalize_timestamp(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported timestamp value: {value!r}")


class CardStateRecord(BaseModel):
    """Serialized form of a CardState."""

    model_config = ConfigDict(extra="ignore")

    card_id: str
    due: datetime
    stability: float = MIN_STABILITY
    difficulty: float = MIN_DIFFICULTY
    elapsed_days: float = 0.0
    scheduled_days: int = 0
    reps: int = 0
    lapses: int = 0
    state: CardStatus = CardStatus.NEW
    last_review: datetime | None = None
    last_grade: Grade | None = None
    ease: float = INITIAL_EASE
    score: int = 0

    @field_validator("due", "last_review", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if value is None:
            return None
        return normalize_timestamp(value)

    @field_validator("last_grade", mode="before")
    @classmethod
    def _parse_grade(cls, value: Any) -> Any:
        if value is None:
            return None
        return Grade.parse(value)

    @classmethod
    def from_state(cls, state: CardState) -> CardStateRecord:
        return cls(
            card_id=state.card_id,
            due=state.due,
            stability=state.stability,
            difficulty=state.difficulty,
            elapsed_days=state.elapsed_days,
            scheduled_days=state.scheduled_days,
            reps=state.reps,
            lapses=state.lapses,
            state=state.state,
            last_review=state.last_review,
            last_grade=state.last_grade,
            ease=state.ease,
            score=state.score,
        )

    def to_state(self) -> CardState:
        return CardState(
            card_id=self.card_id,
            due=self.due,
            stability=self.stability,
            difficulty=self.difficulty,
            elapsed_days=self.elapsed_days,
            scheduled_days=self.scheduled_days,
            reps=self.reps,
            lapses=self.lapses,
            state=self.state,
            last_review=self.last_review,
            last_grade=self.last_grade,
            ease=self.ease,
            score=self.score,
        )


def dump_card_state(state: CardState) -> dict[str, Any]:
    """JSON-safe dict for a card state (ISO timestamps, enum values)."""
    return CardStateRecord.from_state(state).model_dump(mode="json")


def load_card_state(data: dict[str, Any]) -> CardState:
    """
    Rebuild a CardState from a stored record.

    Timestamps may be native datetimes or ISO strings; grades may be
    names or 1-4.
    """
    return CardStateRecord.model_validate(data).to_state()
