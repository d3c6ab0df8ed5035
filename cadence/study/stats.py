"""
Stats Aggregator.

Read-only rollup over a card collection, always recomputed from the
full collection so it cannot drift from the cards it describes.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from cadence.core.card_state import DEFAULT_RETENTION, MAX_STABILITY, CardState, CardStatus, Grade
from cadence.scheduling.base import SchedulingPolicy
from cadence.scheduling.due import is_due


@dataclass(frozen=True)
class StudyStats:
    """Counts over one card collection at one point in time."""

    total_count: int = 0
    due_count: int = 0
    new_count: int = 0
    learning_count: int = 0  # Learning + Relearning
    review_count: int = 0
    mastered_count: int = 0
    grade_counts: dict[str, int] = field(
        default_factory=lambda: {grade.value: 0 for grade in Grade}
    )

    def to_dict(self) -> dict[str, int | dict[str, int]]:
        """Convert to dictionary."""
        return {
            "total_count": self.total_count,
            "due_count": self.due_count,
            "new_count": self.new_count,
            "learning_count": self.learning_count,
            "review_count": self.review_count,
            "mastered_count": self.mastered_count,
            "grade_counts": dict(self.grade_counts),
        }


def aggregate(
    cards: Iterable[CardState],
    now: datetime,
    *,
    policy: SchedulingPolicy | None = None,
    retention_target: float = DEFAULT_RETENTION,
) -> StudyStats:
    """
    Compute collection statistics.

    Args:
        cards: Card states to count
        now: Reference time for the due check
        policy: Policy used to judge mastery (mastered_count is 0 without one)
            and whose stability cap the due check applies
        retention_target: Retention target passed to the due check

    Returns:
        StudyStats snapshot
    """
    statuses: Counter[CardStatus] = Counter()
    grades: Counter[str] = Counter()
    total = due = mastered = 0
    max_stability = policy.config.max_stability if policy is not None else MAX_STABILITY

    for card in cards:
        total += 1
        statuses[card.state] += 1
        if card.last_grade is not None:
            grades[card.last_grade.value] += 1
        if is_due(card, now, retention_target, max_stability):
            due += 1
        if policy is not None and policy.is_mastered(card):
            mastered += 1

    return StudyStats(
        total_count=total,
        due_count=due,
        new_count=statuses[CardStatus.NEW],
        learning_count=statuses[CardStatus.LEARNING] + statuses[CardStatus.RELEARNING],
        review_count=statuses[CardStatus.REVIEW],
        mastered_count=mastered,
        grade_counts={grade.value: grades[grade.value] for grade in Grade},
    )
