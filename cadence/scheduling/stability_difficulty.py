"""
Stability/Difficulty scheduling policy.

Memory model:
- R = exp(-elapsed / S)
- Interval = ceil(S * -ln(target_retention)), then dampened by
  0.972 ** (D - 1) so harder items come back sooner at equal stability

Stability updates:
- First grade: initial stability by grade
- Again: S * (1 - FORGET_PENALTY * R), failures cost more when recall was expected
- Hard: S * hard_interval
- Good: S * ease(D) * spacing(R)
- Easy: S * ease(D) * spacing(R) * easy_bonus

where ease(D) maps difficulty 1..10 linearly onto max_ease..min_ease and
spacing(R) = 2 - R rewards well-spaced (low R) successes.
"""

from __future__ import annotations

import math
from datetime import datetime

from cadence.core.card_state import MAX_DIFFICULTY, MIN_DIFFICULTY, CardState, Grade, retrievability
from cadence.scheduling.base import Schedule, SchedulingPolicy

# Initial stability (days) by first grade
INITIAL_STABILITY: dict[Grade, float] = {
    Grade.AGAIN: 0.4,
    Grade.HARD: 0.6,
    Grade.GOOD: 2.4,
    Grade.EASY: 5.8,
}

FORGET_PENALTY = 0.6
DIFFICULTY_DAMPING = 0.972


class StabilityDifficultyPolicy(SchedulingPolicy):
    """Forgetting-curve scheduler driven by stability and difficulty."""

    name = "stability_difficulty"

    def is_mastered(self, state: CardState) -> bool:
        return state.stability >= self.config.mastery_stability

    def priority_key(self, state: CardState, now: datetime) -> tuple[float, datetime]:
        """Lowest current retrievability first, then earliest due."""
        return (retrievability(state, now), state.due)

    def ease_for(self, difficulty: float) -> float:
        """Stability growth factor for a difficulty: D=1 -> max_ease, D=10 -> min_ease."""
        span = self.config.max_ease - self.config.min_ease
        position = (difficulty - MIN_DIFFICULTY) / (MAX_DIFFICULTY - MIN_DIFFICULTY)
        return self.config.max_ease - span * position

    def _schedule(
        self,
        state: CardState,
        grade: Grade,
        recall: float,
        difficulty: float,
    ) -> Schedule:
        ease = self.ease_for(difficulty)

        if state.last_review is None:
            stability = INITIAL_STABILITY[grade]
        else:
            prior = self._usable_stability(state)
            if grade is Grade.AGAIN:
                stability = prior * (1.0 - FORGET_PENALTY * recall)
            elif grade is Grade.HARD:
                stability = prior * self.config.hard_interval
            else:
                stability = prior * ease * (2.0 - recall)
                if grade is Grade.EASY:
                    stability *= self.config.easy_bonus

        bounded = min(max(stability, self.config.min_stability), self.config.max_stability)
        optimal = self.interval_from_stability(bounded)
        interval = math.ceil(optimal * DIFFICULTY_DAMPING ** (difficulty - MIN_DIFFICULTY))

        return Schedule(
            stability=stability,
            difficulty=difficulty,
            interval_days=interval,
            ease=ease,
            score=state.score,
        )
