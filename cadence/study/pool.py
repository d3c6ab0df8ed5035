"""
Study Pool Manager.

Holds the ordered queue of due cards for one study session and runs the
grade protocol:

1. Ask the scheduling policy for the card's new state
2. Remove the card from its pool position
3. Retired (mastered) cards leave the pool
4. "again"/"hard" cards are requeued a few positions ahead
   (min offset + random jitter, clamped to the pool length)
5. "good"/"easy" cards stay only if still due, at the end of the pool
6. An empty pool ends the session; completion is reported once

The pool keeps its own copy of the card collection. Updated states are
handed back to the caller in every GradeOutcome; nothing outside the
session is mutated.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from cadence.core.card_state import DEFAULT_RETENTION, CardState, Grade
from cadence.scheduling.base import ReviewLog, SchedulingPolicy
from cadence.scheduling.due import is_due
from cadence.scheduling.stability_difficulty import StabilityDifficultyPolicy
from cadence.study.stats import StudyStats, aggregate

if TYPE_CHECKING:
    from cadence.config import Settings

REQUEUE_GRADES = frozenset({Grade.AGAIN, Grade.HARD})


@dataclass
class PoolConfig:
    """Configuration for session pools."""

    requeue_min_offset: int = 2
    requeue_jitter: int = 2
    exclude_mastered: bool = True
    retention_target: float = DEFAULT_RETENTION
    seed: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> PoolConfig:
        return cls(
            requeue_min_offset=settings.requeue_min_offset,
            requeue_jitter=settings.requeue_jitter,
            exclude_mastered=settings.exclude_mastered,
            retention_target=settings.desired_retention,
            seed=settings.session_seed,
        )


@dataclass(frozen=True)
class GradeOutcome:
    """Result of one grade event."""

    updated_card: CardState | None
    session_over: bool = False
    applied: bool = True  # False for a stale card reference or an empty pool
    requeued_at: int | None = None  # Pool index the card was reinserted at
    log: ReviewLog | None = None


class StudyPool:
    """
    Session-scoped queue of due cards.

    Single writer, synchronous: each grade event is computed in full
    before the pool is replaced, so a failure part-way leaves the
    session exactly as it was.
    """

    def __init__(
        self,
        policy: SchedulingPolicy | None = None,
        config: PoolConfig | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize an empty pool.

        Args:
            policy: Scheduling policy (stability/difficulty if None)
            config: Pool configuration (uses defaults if None)
            rng: Random source for requeue jitter (seeded from config if None)
        """
        self.policy = policy or StabilityDifficultyPolicy()
        self.config = config or PoolConfig()
        self._rng = rng or random.Random(self.config.seed)

        self._pool: list[str] = []
        self._cards: dict[str, CardState] = {}
        self._completion_reported = False
        self.history: list[ReviewLog] = []

    # ------------------------------------------------------------------
    # Session API
    # ------------------------------------------------------------------

    def start_session(self, cards: Iterable[CardState], now: datetime) -> list[str]:
        """
        Build the pool from a flat card collection.

        Due, non-retired cards are ordered by the policy's priority key
        so the weakest items come first.

        Returns:
            Ordered card ids in the pool
        """
        self._cards = {card.card_id: card for card in cards}
        self._completion_reported = False
        self.history = []

        eligible = [card for card in self._cards.values() if self._eligible(card, now)]
        eligible.sort(key=lambda card: self.policy.priority_key(card, now))
        self._pool = [card.card_id for card in eligible]

        logger.info(
            f"Session started ({self.policy.name}): {len(self._pool)} due of "
            f"{len(self._cards)} cards"
        )

        return self.snapshot()

    def current_card(self) -> CardState | None:
        """The card being presented (front of the pool), or None when done."""
        if not self._pool:
            return None
        return self._cards[self._pool[0]]

    def grade_current(self, grade: Grade | str | int, now: datetime) -> GradeOutcome:
        """Grade the card at the front of the pool."""
        grade = Grade.parse(grade)
        if not self._pool:
            return GradeOutcome(updated_card=None, applied=False)
        return self.grade_card(self._pool[0], grade, now)

    def grade_card(self, card_id: str, grade: Grade | str | int, now: datetime) -> GradeOutcome:
        """
        Apply a grade to a specific pooled card.

        Args:
            card_id: Card to grade
            grade: again/hard/good/easy
            now: Review time

        Returns:
            GradeOutcome; ``applied`` is False if the card is not in the pool

        Raises:
            InvalidGradeError: before any state changes, for a bad grade
        """
        grade = Grade.parse(grade)

        if card_id not in self._pool:
            logger.debug(f"Ignoring grade for {card_id}: not in the session pool")
            return GradeOutcome(updated_card=None, applied=False)

        position = self._pool.index(card_id)
        new_state, log = self.policy.review(self._cards[card_id], grade, now)

        pool = [pooled for pooled in self._pool if pooled != card_id]
        requeued_at = self._requeue_position(new_state, grade, position, len(pool), now)
        if requeued_at is not None:
            pool.insert(requeued_at, card_id)

        # Commit
        self._cards[card_id] = new_state
        self._pool = pool
        self.history.append(log)

        session_over = not pool and not self._completion_reported
        if session_over:
            self._completion_reported = True
            logger.info(f"Session complete after {len(self.history)} reviews")

        return GradeOutcome(
            updated_card=new_state,
            session_over=session_over,
            applied=True,
            requeued_at=requeued_at,
            log=log,
        )

    def stats(self, now: datetime) -> StudyStats:
        """Aggregate over the session's copy of the collection."""
        return aggregate(
            self._cards.values(),
            now,
            policy=self.policy,
            retention_target=self.config.retention_target,
        )

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def snapshot(self) -> list[str]:
        """Card ids in pool order."""
        return list(self._pool)

    @property
    def remaining(self) -> int:
        return len(self._pool)

    @property
    def is_complete(self) -> bool:
        return not self._pool

    def card(self, card_id: str) -> CardState | None:
        return self._cards.get(card_id)

    def collection(self) -> list[CardState]:
        """Latest state of every card the session was started with."""
        return list(self._cards.values())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _eligible(self, card: CardState, now: datetime) -> bool:
        if self.config.exclude_mastered and self.policy.is_mastered(card):
            return False
        return is_due(card, now, self.config.retention_target, self.policy.config.max_stability)

    def _requeue_position(
        self,
        new_state: CardState,
        grade: Grade,
        position: int,
        pool_length: int,
        now: datetime,
    ) -> int | None:
        """Where the graded card goes back in, or None if it leaves the pool."""
        if self.config.exclude_mastered and self.policy.is_mastered(new_state):
            logger.debug(f"Retiring {new_state.card_id} from the session")
            return None

        if grade in REQUEUE_GRADES:
            offset = self.config.requeue_min_offset + self._rng.randint(0, self.config.requeue_jitter)
            return min(position + offset, pool_length)

        if is_due(new_state, now, self.config.retention_target, self.policy.config.max_stability):
            return pool_length

        return None
