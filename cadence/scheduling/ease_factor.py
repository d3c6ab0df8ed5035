"""
Ease-factor scheduling policy.

Each card carries an ease factor (EF) bounded to [min_ease, max_ease]
and the interval chosen at its previous grading. The next interval
grows directly from the previous one:

- Again: 1 day, EF - 0.15
- Hard:  ceil(interval * hard_interval), EF - 0.05
- Good:  ceil(interval * EF), EF + 0.05
- Easy:  ceil(interval * EF * easy_bonus), EF + 0.10

The interval always grows from the pre-update EF; a never-reviewed card
starts from the policy's initial ease. Stability is kept in
step with the interval (the retention target is reached on the due
date) so retrievability stays meaningful for this variant too.
"""

from __future__ import annotations

import math
from datetime import datetime

from cadence.core.card_state import MIN_INTERVAL_DAYS, CardState, Grade
from cadence.core.errors import ComputationFault
from cadence.scheduling.base import Schedule, SchedulingPolicy

EASE_DELTA: dict[Grade, float] = {
    Grade.AGAIN: -0.15,
    Grade.HARD: -0.05,
    Grade.GOOD: 0.05,
    Grade.EASY: 0.10,
}


class EaseFactorPolicy(SchedulingPolicy):
    """Interval x ease scheduler."""

    name = "ease_factor"

    def is_mastered(self, state: CardState) -> bool:
        return state.scheduled_days >= self.config.mastery_interval_days

    def priority_key(self, state: CardState, now: datetime) -> tuple[datetime, float]:
        """Most overdue first; lower ease breaks ties."""
        return (state.due, state.ease)

    @property
    def initial_ease(self) -> float:
        """Ease a never-reviewed card starts from."""
        return self.config.initial_ease

    @property
    def easy_bonus(self) -> float:
        return self.config.easy_bonus

    def next_interval(self, previous: int, ease: float, grade: Grade) -> int:
        """Interval in days grown from ``previous`` with the pre-update ease."""
        base = max(previous, MIN_INTERVAL_DAYS)
        if grade is Grade.AGAIN:
            return MIN_INTERVAL_DAYS
        if grade is Grade.HARD:
            return math.ceil(base * self.config.hard_interval)
        if grade is Grade.GOOD:
            return math.ceil(base * ease)
        return math.ceil(base * ease * self.easy_bonus)

    def next_ease(self, ease: float, grade: Grade) -> float:
        new_ease = ease + EASE_DELTA[grade]
        return min(max(new_ease, self.config.min_ease), self.config.max_ease)

    def _prior_ease(self, state: CardState) -> float:
        ease = self.initial_ease if state.last_review is None else state.ease
        if not math.isfinite(ease):
            raise ComputationFault(f"non-finite ease {ease!r}")
        return min(max(ease, self.config.min_ease), self.config.max_ease)

    def _schedule(
        self,
        state: CardState,
        grade: Grade,
        recall: float,
        difficulty: float,
    ) -> Schedule:
        ease = self._prior_ease(state)
        interval = min(self.next_interval(state.scheduled_days, ease, grade), self.config.max_interval)

        return Schedule(
            stability=self.stability_from_interval(interval),
            difficulty=difficulty,
            interval_days=interval,
            ease=self.next_ease(ease, grade),
            score=state.score,
        )
