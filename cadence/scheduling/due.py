"""
Due Selector.

A card is due when any of these hold:
1. It has never been reviewed
2. It is in a short cycle (New, Learning, Relearning)
3. Its due date has arrived
4. Its retrievability has dropped below the retention target, even if
   the due date is still ahead

A stability sitting at the cap understates any interval longer than the
cap allows, so for such cards the decay in (4) uses the stability implied
by the scheduled interval instead.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime

from cadence.core.card_state import (
    DEFAULT_RETENTION,
    MAX_STABILITY,
    CardState,
    calculate_retrievability,
    elapsed_days,
)


def recall_stability(
    state: CardState,
    retention_target: float = DEFAULT_RETENTION,
    max_stability: float = MAX_STABILITY,
) -> float:
    """Stability the due check decays with."""
    if state.stability < max_stability or state.scheduled_days <= 0:
        return state.stability
    if not 0.0 < retention_target < 1.0:
        return state.stability
    return max(state.stability, state.scheduled_days / -math.log(retention_target))


def is_due(
    state: CardState,
    now: datetime,
    retention_target: float = DEFAULT_RETENTION,
    max_stability: float = MAX_STABILITY,
) -> bool:
    """
    Whether the card is owed a review at ``now``.

    Args:
        state: Card to check
        now: Reference time
        retention_target: Recall probability below which the card is due early
        max_stability: Stability cap of the policy that scheduled the card
    """
    if state.last_review is None:
        return True
    if state.state.is_short_cycle:
        return True
    if now >= state.due:
        return True
    stability = recall_stability(state, retention_target, max_stability)
    return calculate_retrievability(stability, elapsed_days(state, now)) < retention_target


def select_due(
    cards: Iterable[CardState],
    now: datetime,
    retention_target: float = DEFAULT_RETENTION,
    max_stability: float = MAX_STABILITY,
) -> list[CardState]:
    """Due cards from a collection, in their original order."""
    return [card for card in cards if is_due(card, now, retention_target, max_stability)]
