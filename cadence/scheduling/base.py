"""
Scheduling Policy contract.

Every policy variant maps (card state, grade, now) to a new card state.
The variants differ only in how they compute stability, ease and the
next interval; the state machine, difficulty update, bookkeeping and
fallback path live here and are shared.

Order of evaluation for one grade:
1. Elapsed days and retrievability from the prior state
2. Difficulty from the pre-update difficulty
3. Policy-specific stability/ease/interval (Schedule)
4. Clamping, state transition, due date, counters
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from loguru import logger

from cadence.core.card_state import (
    DEFAULT_RETENTION,
    INITIAL_EASE,
    MAX_DIFFICULTY,
    MAX_EASE,
    MAX_STABILITY,
    MIN_DIFFICULTY,
    MIN_EASE,
    MIN_INTERVAL_DAYS,
    MIN_STABILITY,
    CardState,
    CardStatus,
    Grade,
    calculate_retrievability,
    clamp,
    elapsed_days,
)
from cadence.core.errors import ComputationFault

if TYPE_CHECKING:
    from cadence.config import Settings


# =============================================================================
# Shared parameters
# =============================================================================

# Multiplicative difficulty change per grade
DIFFICULTY_MULTIPLIERS: dict[Grade, float] = {
    Grade.AGAIN: 1.2,  # Increase difficulty significantly
    Grade.HARD: 1.1,  # Increase difficulty slightly
    Grade.GOOD: 1.0,  # Keep difficulty the same
    Grade.EASY: 0.9,  # Decrease difficulty
}

# Fallback schedule: base interval by grade, grown by 1.5 ** reps
FALLBACK_BASE_INTERVAL: dict[Grade, int] = {
    Grade.AGAIN: 1,
    Grade.HARD: 3,
    Grade.GOOD: 7,
    Grade.EASY: 14,
}
FALLBACK_GROWTH = 1.5
FALLBACK_MAX_EXPONENT = 64


@dataclass
class SchedulerConfig:
    """Parameters shared by all scheduling policies."""

    desired_retention: float = DEFAULT_RETENTION
    min_stability: float = MIN_STABILITY
    max_stability: float = MAX_STABILITY
    min_ease: float = MIN_EASE
    max_ease: float = MAX_EASE
    initial_ease: float = INITIAL_EASE
    hard_interval: float = 1.2
    easy_bonus: float = 1.3
    graduation_reps: int = 2
    mastery_stability: float = 365.0
    mastery_interval_days: int = 180

    def __post_init__(self) -> None:
        if not 0.0 < self.desired_retention < 1.0:
            raise ValueError(f"desired_retention must be in (0, 1), got {self.desired_retention!r}")
        if not 0.0 < self.min_stability <= self.max_stability:
            raise ValueError(
                f"need 0 < min_stability <= max_stability, got {self.min_stability!r}, {self.max_stability!r}"
            )
        if not 0.0 < self.min_ease <= self.initial_ease <= self.max_ease:
            raise ValueError(
                f"need 0 < min_ease <= initial_ease <= max_ease, got "
                f"{self.min_ease!r}, {self.initial_ease!r}, {self.max_ease!r}"
            )

    @property
    def max_interval(self) -> int:
        return max(MIN_INTERVAL_DAYS, int(self.max_stability))

    @classmethod
    def from_settings(cls, settings: Settings) -> SchedulerConfig:
        return cls(
            desired_retention=settings.desired_retention,
            min_stability=settings.min_stability,
            max_stability=settings.max_stability,
            min_ease=settings.min_ease,
            max_ease=settings.max_ease,
            initial_ease=settings.initial_ease,
            hard_interval=settings.hard_interval,
            easy_bonus=settings.easy_bonus,
            graduation_reps=settings.graduation_reps,
            mastery_stability=settings.mastery_stability,
            mastery_interval_days=settings.mastery_interval_days,
        )


@dataclass(frozen=True)
class Schedule:
    """Policy-specific result of the scheduling math, before clamping."""

    stability: float
    difficulty: float
    interval_days: int
    ease: float
    score: int


@dataclass(frozen=True)
class ReviewLog:
    """Audit record of one grade applied to one card."""

    card_id: str
    grade: Grade
    reviewed_at: datetime
    status_before: CardStatus
    status_after: CardStatus
    elapsed_days: float
    retrievability: float
    scheduled_days: int
    stability_before: float
    stability_after: float
    difficulty_before: float
    difficulty_after: float
    used_fallback: bool = False


# =============================================================================
# Policy base class
# =============================================================================


class SchedulingPolicy(ABC):
    """
    Base class for scheduling policy variants.

    Subclasses implement ``_schedule`` (the variant's stability/interval
    math), ``is_mastered`` and ``priority_key``. ``review`` never raises
    for a valid grade: any arithmetic failure inside the variant math
    switches to the deterministic fallback schedule.
    """

    name: ClassVar[str] = "base"

    def __init__(self, config: SchedulerConfig | None = None):
        """
        Initialize the policy.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SchedulerConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, state: CardState, grade: Grade | str | int, now: datetime) -> CardState:
        """Return the card state after applying ``grade`` at ``now``."""
        new_state, _ = self.review(state, grade, now)
        return new_state

    def review(
        self,
        state: CardState,
        grade: Grade | str | int,
        now: datetime,
    ) -> tuple[CardState, ReviewLog]:
        """
        Apply a grade and return the new state with its review log.

        Args:
            state: Current card state (not modified)
            grade: again/hard/good/easy
            now: Review time

        Returns:
            Tuple of (updated_state, review_log)

        Raises:
            InvalidGradeError: if ``grade`` is not one of the four grades
        """
        grade = Grade.parse(grade)

        elapsed = elapsed_days(state, now)
        recall = calculate_retrievability(state.stability, elapsed)

        used_fallback = False
        try:
            difficulty = self._next_difficulty(state.difficulty, grade)
            schedule = self._schedule(state, grade, recall, difficulty)
            self._check_schedule(schedule)
        except (ArithmeticError, ValueError) as exc:
            logger.warning(
                f"Scheduling fault for card {state.card_id} ({self.name}, grade={grade.value}): "
                f"{exc}; using fallback schedule"
            )
            schedule = self._fallback_schedule(state, grade)
            used_fallback = True

        new_state = self._apply(state, grade, now, elapsed, schedule)

        log = ReviewLog(
            card_id=state.card_id,
            grade=grade,
            reviewed_at=now,
            status_before=state.state,
            status_after=new_state.state,
            elapsed_days=elapsed,
            retrievability=recall,
            scheduled_days=new_state.scheduled_days,
            stability_before=state.stability,
            stability_after=new_state.stability,
            difficulty_before=state.difficulty,
            difficulty_after=new_state.difficulty,
            used_fallback=used_fallback,
        )

        logger.debug(
            f"Reviewed {state.card_id}: grade={grade.value}, "
            f"{state.state.value}->{new_state.state.value}, "
            f"S={new_state.stability:.2f}, D={new_state.difficulty:.2f}, "
            f"interval={new_state.scheduled_days}d"
        )

        return new_state, log

    def preview(self, state: CardState, now: datetime) -> dict[Grade, CardState]:
        """What each grade would produce for this card, without committing any."""
        return {grade: self.update(state, grade, now) for grade in Grade}

    @abstractmethod
    def is_mastered(self, state: CardState) -> bool:
        """Whether the card has crossed the retirement high-water mark."""

    @abstractmethod
    def priority_key(self, state: CardState, now: datetime) -> Any:
        """Sort key for session pools; weakest cards sort first."""

    # ------------------------------------------------------------------
    # Variant hook
    # ------------------------------------------------------------------

    @abstractmethod
    def _schedule(
        self,
        state: CardState,
        grade: Grade,
        recall: float,
        difficulty: float,
    ) -> Schedule:
        """
        Variant-specific stability, ease and interval.

        Args:
            state: Prior card state
            grade: Parsed grade
            recall: Retrievability at review time
            difficulty: Already-updated difficulty

        Raises:
            ComputationFault: (or any ArithmeticError) on a bad intermediate
        """

    # ------------------------------------------------------------------
    # Shared math
    # ------------------------------------------------------------------

    def _next_difficulty(self, difficulty: float, grade: Grade) -> float:
        """Grade-dependent multiplicative difficulty update, clamped to [1, 10]."""
        if not math.isfinite(difficulty):
            raise ComputationFault(f"non-finite difficulty {difficulty!r}")
        new_difficulty = difficulty * DIFFICULTY_MULTIPLIERS[grade]
        return clamp(new_difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY)

    def _usable_stability(self, state: CardState) -> float:
        """Prior stability floored at the minimum; non-finite input is a fault."""
        if not math.isfinite(state.stability):
            raise ComputationFault(f"non-finite stability {state.stability!r}")
        return max(self.config.min_stability, state.stability)

    def interval_from_stability(self, stability: float) -> int:
        """Days until retrievability decays to the target retention, rounded up."""
        return math.ceil(stability * -math.log(self.config.desired_retention))

    def stability_from_interval(self, interval_days: int) -> float:
        """Stability whose retention target is reached exactly at ``interval_days``."""
        return interval_days / -math.log(self.config.desired_retention)

    def _check_schedule(self, schedule: Schedule) -> None:
        for label, value in (
            ("stability", schedule.stability),
            ("difficulty", schedule.difficulty),
            ("ease", schedule.ease),
        ):
            if not math.isfinite(value):
                raise ComputationFault(f"non-finite {label} {value!r}")
        if schedule.stability <= 0:
            raise ComputationFault(f"stability collapsed to {schedule.stability!r}")
        if schedule.interval_days < 0:
            raise ComputationFault(f"negative interval {schedule.interval_days!r}")

    def _fallback_schedule(self, state: CardState, grade: Grade) -> Schedule:
        """
        Deterministic exponential backoff used after a computation fault.

        interval = ceil(base(grade) * 1.5 ** reps), capped at max_interval.
        Only the grade and the prior repetition count feed the interval.
        """
        exponent = min(max(state.reps, 0), FALLBACK_MAX_EXPONENT)
        interval = math.ceil(FALLBACK_BASE_INTERVAL[grade] * FALLBACK_GROWTH**exponent)
        interval = min(interval, self.config.max_interval)

        difficulty = state.difficulty if math.isfinite(state.difficulty) else MIN_DIFFICULTY
        ease = state.ease if math.isfinite(state.ease) else self.config.initial_ease

        return Schedule(
            stability=self.stability_from_interval(interval),
            difficulty=difficulty,
            interval_days=interval,
            ease=ease,
            score=state.score,
        )

    # ------------------------------------------------------------------
    # State machine and bookkeeping
    # ------------------------------------------------------------------

    def _next_status(self, current: CardStatus, grade: Grade, reps: int) -> CardStatus:
        """
        Transition table.

        New -> Learning on any first grade.
        Review -> Relearning on a lapse ("again").
        Learning/Relearning -> Review after ``graduation_reps`` successes.
        """
        if not grade.is_success:
            if current in (CardStatus.REVIEW, CardStatus.RELEARNING):
                return CardStatus.RELEARNING
            return CardStatus.LEARNING

        status = CardStatus.LEARNING if current is CardStatus.NEW else current
        if status in (CardStatus.LEARNING, CardStatus.RELEARNING) and reps >= self.config.graduation_reps:
            status = CardStatus.REVIEW
        return status

    def _apply(
        self,
        state: CardState,
        grade: Grade,
        now: datetime,
        elapsed: float,
        schedule: Schedule,
    ) -> CardState:
        if grade is Grade.AGAIN:
            reps = 0
            lapses = state.lapses + 1
            interval = MIN_INTERVAL_DAYS
        else:
            reps = state.reps + 1
            lapses = state.lapses
            interval = int(clamp(schedule.interval_days, MIN_INTERVAL_DAYS, self.config.max_interval))

        return replace(
            state,
            due=now + timedelta(days=interval),
            stability=clamp(schedule.stability, self.config.min_stability, self.config.max_stability),
            difficulty=clamp(schedule.difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY),
            elapsed_days=elapsed,
            scheduled_days=interval,
            reps=reps,
            lapses=lapses,
            state=self._next_status(state.state, grade, reps),
            last_review=now,
            last_grade=grade,
            ease=clamp(schedule.ease, self.config.min_ease, self.config.max_ease),
            score=int(clamp(schedule.score, 0, 100)),
        )
