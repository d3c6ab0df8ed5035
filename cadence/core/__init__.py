"""
Core Module - Card memory model shared by every scheduling policy.

Components:
- card_state: Grade, CardStatus, CardState and forgetting-curve helpers
- errors: Engine exceptions
- serialization: Persistence round-trip (records, timestamp normalization)
- decks: Flattening a deck hierarchy into one study scope
"""

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
    elapsed_days,
    new_card,
    retrievability,
)
from cadence.core.decks import Deck, collect_study_scope
from cadence.core.errors import CadenceError, ComputationFault, InvalidGradeError
from cadence.core.serialization import (
    CardStateRecord,
    dump_card_state,
    load_card_state,
    normalize_timestamp,
)

__all__ = [
    # State
    "CardState",
    "CardStatus",
    "Grade",
    "new_card",
    "elapsed_days",
    "retrievability",
    "calculate_retrievability",
    # Constants
    "DEFAULT_RETENTION",
    "INITIAL_EASE",
    "MAX_DIFFICULTY",
    "MAX_EASE",
    "MAX_STABILITY",
    "MIN_DIFFICULTY",
    "MIN_EASE",
    "MIN_INTERVAL_DAYS",
    "MIN_STABILITY",
    # Errors
    "CadenceError",
    "ComputationFault",
    "InvalidGradeError",
    # Persistence
    "CardStateRecord",
    "dump_card_state",
    "load_card_state",
    "normalize_timestamp",
    # Decks
    "Deck",
    "collect_study_scope",
]
