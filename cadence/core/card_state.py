"""
Card Memory Model.

Durable per-card scheduling state and the derived quantities the
scheduler and due selector share.

Key concepts:
- Stability (S): days scale of the forgetting curve
- Difficulty (D): inherent item hardness, 1-10
- Retrievability (R): probability of recall now, R = exp(-elapsed / S)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cadence.core.errors import InvalidGradeError

# =============================================================================
# Constants
# =============================================================================

MIN_STABILITY = 0.1
MAX_STABILITY = 730.0  # 2 years
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
MIN_EASE = 1.3
MAX_EASE = 3.0
INITIAL_EASE = 2.5
DEFAULT_RETENTION = 0.9
MIN_INTERVAL_DAYS = 1

SECONDS_PER_DAY = 86400.0


# =============================================================================
# Enums
# =============================================================================


class Grade(str, Enum):
    """Learner's recall-quality signal for one review."""

    AGAIN = "again"  # Retrieval failed
    HARD = "hard"  # Retrieved with high effort
    GOOD = "good"  # Retrieved normally
    EASY = "easy"  # Retrieved fluently

    @classmethod
    def parse(cls, value: object) -> Grade:
        """
        Coerce a grade from a member, a name/value string or the ints 1-4.

        Raises:
            InvalidGradeError: for anything else
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                raise InvalidGradeError(value) from None
        if isinstance(value, int) and not isinstance(value, bool):
            ordered = list(cls)
            if 1 <= value <= len(ordered):
                return ordered[value - 1]
        raise InvalidGradeError(value)

    @property
    def is_success(self) -> bool:
        return self is not Grade.AGAIN


class CardStatus(str, Enum):
    """Position of a card in the learning state machine."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"

    @property
    def is_short_cycle(self) -> bool:
        """New and (re)learning cards are always eligible for review."""
        return self is not CardStatus.REVIEW


# =============================================================================
# Card State
# =============================================================================


@dataclass(frozen=True)
class CardState:
    """
    Scheduling state for a single card.

    Instances are immutable; the scheduler returns a new state for every
    grade so callers never share a mutable card between components.
    """

    card_id: str
    due: datetime
    stability: float = MIN_STABILITY
    difficulty: float = MIN_DIFFICULTY
    elapsed_days: float = 0.0  # Days since last_review at the previous grading
    scheduled_days: int = 0  # Interval chosen at the previous grading
    reps: int = 0  # Successful reviews since the last lapse
    lapses: int = 0  # "again" gradings ever
    state: CardStatus = CardStatus.NEW
    last_review: datetime | None = None
    last_grade: Grade | None = None  # Display/audit only

    # Variant-specific fields
    ease: float = INITIAL_EASE  # Ease factor (ease/mastery-score variants)
    score: int = 0  # Running 0-100 mastery score (mastery-score variant)

    @property
    def is_new(self) -> bool:
        return self.state is CardStatus.NEW


def new_card(
    card_id: str,
    now: datetime,
    initial_ease: float = INITIAL_EASE,
) -> CardState:
    """
    Initialize state for a card entering the scheduling system.

    Args:
        card_id: Identifier of the owning flashcard
        now: Creation time; the card is immediately due
        initial_ease: Starting ease factor

    Returns:
        New CardState with default stability/difficulty
    """
    return CardState(
        card_id=card_id,
        due=now,
        stability=MIN_STABILITY,
        difficulty=MIN_DIFFICULTY,
        ease=initial_ease,
    )


# =============================================================================
# Derived quantities
# =============================================================================


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (may be negative)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def elapsed_days(state: CardState, now: datetime) -> float:
    """Days since the last review, never negative; 0 for a new card."""
    if state.last_review is None:
        return 0.0
    return max(0.0, days_between(state.last_review, now))


def floor_stability(stability: float, minimum: float = MIN_STABILITY) -> float:
    """Stability safe to divide by or take the log of."""
    if not math.isfinite(stability):
        return minimum
    return max(minimum, stability)


def calculate_retrievability(stability: float, days: float) -> float:
    """
    Probability of recall after ``days`` with the given stability.

    Formula: R = exp(-days / S), with S floored at MIN_STABILITY.

    Returns:
        Retrievability between 0 and 1 (1.0 when no time has passed)
    """
    if days <= 0:
        return 1.0
    return math.exp(-days / floor_stability(stability))


def retrievability(state: CardState, now: datetime) -> float:
    """Current retrievability of a card; 1.0 if it has never been reviewed."""
    return calculate_retrievability(state.stability, elapsed_days(state, now))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

