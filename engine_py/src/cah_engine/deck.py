"""
Deck assembly: merge a game's selected decks into a single card sequence.
"""

from typing import Dict, Iterable, List, Mapping, Sequence

from .constants import CARD_BLACK, CARD_WHITE
from .errors import ConfigurationError
from .models import CardRef, Deck, DeckSelection


def assemble_deck(
    selections: Sequence[DeckSelection],
    catalog: Mapping[str, Deck]
) -> List[CardRef]:
    """
    Build the ordered card sequence for a game.

    Selections are taken in ascending position and cards keep their deck
    order. Cards present in several decks appear once per deck.

    Args:
        selections: Decks chosen for the game, with per-type include flags
        catalog: Available decks keyed by id

    Returns:
        Flat list of CardRef tagged with their origin deck

    Raises:
        ConfigurationError: If a deck is unknown or the result lacks
            black or white cards
    """
    refs: List[CardRef] = []

    for selection in sorted(selections, key=lambda s: s.position):
        deck = catalog.get(selection.deck_id)
        if deck is None:
            raise ConfigurationError(f"Unknown deck: {selection.deck_id}")
        if not deck.is_active:
            continue

        for card in deck.cards:
            if not card.is_active:
                continue
            if (card.type == CARD_WHITE and selection.include_white) or \
                    (card.type == CARD_BLACK and selection.include_black):
                refs.append(CardRef(card=card, deck_id=deck.id))

    counts = count_by_type(refs)
    if counts[CARD_BLACK] == 0:
        raise ConfigurationError("Selected decks contain no black cards")
    if counts[CARD_WHITE] == 0:
        raise ConfigurationError("Selected decks contain no white cards")

    return refs


def count_by_type(refs: Iterable[CardRef]) -> Dict[str, int]:
    counts = {CARD_WHITE: 0, CARD_BLACK: 0}
    for ref in refs:
        counts[ref.card.type] += 1
    return counts


def selections_from_ids(deck_ids: Sequence[str]) -> List[DeckSelection]:
    """Default selection: every listed deck with both card types, in list order."""
    return [
        DeckSelection(deck_id=deck_id, position=position)
        for position, deck_id in enumerate(deck_ids)
    ]


def summarize_decks(catalog: Mapping[str, Deck]) -> List[dict]:
    """Per-deck card counts for the deck picker."""
    summaries = []
    for deck in catalog.values():
        if not deck.is_active:
            continue
        active_cards = [card for card in deck.cards if card.is_active]
        summaries.append({
            "id": deck.id,
            "name": deck.name,
            "white_count": sum(1 for card in active_cards if card.is_white),
            "black_count": sum(1 for card in active_cards if card.is_black),
            "total_cards": len(deck.cards),
        })
    return summaries
