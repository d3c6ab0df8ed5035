"""
Cadence - spaced-repetition scheduling engine.

Quick start:
    from cadence import StudyPool, get_policy, new_card

    pool = StudyPool(policy=get_policy("stability_difficulty"))
    pool.start_session(cards, now)
    outcome = pool.grade_current("good", now)
"""

from cadence.core import CardState, CardStatus, Grade, new_card
from cadence.scheduling import SchedulerConfig, SchedulingPolicy, get_policy, is_due
from cadence.study import GradeOutcome, PoolConfig, StudyPool, StudyStats, aggregate

__version__ = "0.1.0"

__all__ = [
    "CardState",
    "CardStatus",
    "Grade",
    "new_card",
    "SchedulingPolicy",
    "SchedulerConfig",
    "get_policy",
    "is_due",
    "StudyPool",
    "PoolConfig",
    "GradeOutcome",
    "StudyStats",
    "aggregate",
]
