"""
Deck catalog loading.

Card packs are read from JSON files laid out as a list of decks::

    [{"name": "...", "white": [{"text": "...", "pack": 0}],
      "black": [{"text": "...", "pick": 1, "pack": 0}]}]
"""

import logging
import uuid
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import orjson

from .constants import CARD_BLACK, CARD_WHITE
from .errors import ConfigurationError
from .models import Card, Deck

logger = logging.getLogger(__name__)

STARTER_DECKS = "starter_decks.json"


class DeckCatalog(dict):
    """Decks keyed by id, in load order."""

    def add(self, deck: Deck) -> Deck:
        self[deck.id] = deck
        return deck

    def by_name(self, name: str) -> Optional[Deck]:
        for deck in self.values():
            if deck.name == name:
                return deck
        return None


def _deck_id(name: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"cah-deck:{name}"))


def parse_decks(data: Iterable[dict]) -> List[Deck]:
    """Turn raw deck JSON into Deck models. Card ids are stable per deck/position."""
    decks = []
    for deck_data in data:
        name = deck_data.get("name")
        if not name:
            raise ConfigurationError("Deck entry is missing a name")

        deck_id = _deck_id(name)
        cards = []
        for index, white in enumerate(deck_data.get("white") or []):
            cards.append(Card(
                id=f"{deck_id}:w{index}",
                type=CARD_WHITE,
                content=white["text"],
            ))
        for index, black in enumerate(deck_data.get("black") or []):
            cards.append(Card(
                id=f"{deck_id}:b{index}",
                type=CARD_BLACK,
                content=black["text"],
                pick=black.get("pick") or 1,
                draw=black.get("draw") or 0,
            ))

        decks.append(Deck(id=deck_id, name=name, cards=cards))
    return decks


def load_catalog(path: Optional[Union[str, Path]] = None) -> DeckCatalog:
    """
    Load a deck catalog from a JSON file, or the bundled starter decks.

    Raises:
        FileNotFoundError: If an explicit path doesn't exist
        ConfigurationError: If the file isn't a list of decks
    """
    if path is None:
        raw = resources.files("cah_engine.data").joinpath(STARTER_DECKS).read_bytes()
        source = STARTER_DECKS
    else:
        deck_file = Path(path)
        if not deck_file.exists():
            raise FileNotFoundError(f"Deck file not found: {path}")
        raw = deck_file.read_bytes()
        source = str(deck_file)

    data = orjson.loads(raw)
    if not isinstance(data, list):
        raise ConfigurationError(f"Deck file must contain a list of decks: {source}")

    catalog = DeckCatalog()
    for deck in parse_decks(data):
        catalog.add(deck)

    logger.info(f"Loaded {len(catalog)} decks from {source}")
    return catalog
