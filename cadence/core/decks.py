"""
Deck hierarchy flattening.

Decks nest through subdeck ids. The scheduling engine only ever sees the
flat card collection for one study scope; this is the walk that builds it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from cadence.core.card_state import CardState


@dataclass
class Deck:
    """A named group of cards with optional child decks."""

    id: str
    name: str
    cards: list[CardState] = field(default_factory=list)
    subdeck_ids: list[str] = field(default_factory=list)
    parent_id: str | None = None


def index_decks(decks: Iterable[Deck]) -> dict[str, Deck]:
    return {deck.id: deck for deck in decks}


def collect_study_scope(deck_id: str, decks: Mapping[str, Deck] | Iterable[Deck]) -> list[CardState]:
    """
    All cards in a deck and its descendants, depth-first.

    Args:
        deck_id: Root of the study scope
        decks: Decks keyed by id, or any iterable of decks

    Returns:
        Flat card list; empty if the deck is unknown. Each deck is
        visited once even if the hierarchy contains a cycle.
    """
    by_id = decks if isinstance(decks, Mapping) else index_decks(decks)

    cards: list[CardState] = []
    visited: set[str] = set()
    stack = [deck_id]

    while stack:
        current = stack.pop()
        if current in visited or current not in by_id:
            continue
        visited.add(current)

        deck = by_id[current]
        cards.extend(deck.cards)
        # Reverse so the first subdeck is walked first
        stack.extend(reversed(deck.subdeck_ids))

    return cards
