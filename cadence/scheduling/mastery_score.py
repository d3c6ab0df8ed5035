"""
Mastery-score scheduling policy.

Ease-factor intervals plus a running 0-100 score per card. Cards start
from a lower ease (1.7) and "easy" doubles the interval on top of the
ease, independent of the configured easy_bonus and initial_ease. The score
drives session order (lowest first) and retirement: a card that reaches
100 is mastered and leaves the active pool, though it stays schedulable.
"""

from __future__ import annotations

from datetime import datetime

from cadence.core.card_state import CardState, Grade
from cadence.scheduling.base import Schedule
from cadence.scheduling.ease_factor import EaseFactorPolicy

MAX_SCORE = 100

# Score-variant constants: lower starting ease, steeper easy bonus
SCORE_INITIAL_EASE = 1.7
SCORE_EASY_BONUS = 2.0

SCORE_DELTA: dict[Grade, int] = {
    Grade.AGAIN: -20,
    Grade.HARD: 10,
    Grade.GOOD: 25,
    Grade.EASY: 40,
}


class MasteryScorePolicy(EaseFactorPolicy):
    """Score-driven variant of the ease-factor scheduler."""

    name = "mastery_score"

    @property
    def initial_ease(self) -> float:
        return SCORE_INITIAL_EASE

    @property
    def easy_bonus(self) -> float:
        return SCORE_EASY_BONUS

    def is_mastered(self, state: CardState) -> bool:
        return state.score >= MAX_SCORE

    def priority_key(self, state: CardState, now: datetime) -> tuple[int, datetime]:
        return (state.score, state.due)

    def _schedule(
        self,
        state: CardState,
        grade: Grade,
        recall: float,
        difficulty: float,
    ) -> Schedule:
        schedule = super()._schedule(state, grade, recall, difficulty)
        score = min(max(state.score + SCORE_DELTA[grade], 0), MAX_SCORE)

        return Schedule(
            stability=schedule.stability,
            difficulty=schedule.difficulty,
            interval_days=schedule.interval_days,
            ease=schedule.ease,
            score=score,
        )
