"""
Card shuffling utilities.
"""

import random
import uuid
from typing import List, Optional, Sequence, TypeVar

from .constants import (
    LCG_INCREMENT, LCG_MODULUS, LCG_MULTIPLIER, SEED_ALPHABET, SEED_LENGTH,
)
from .models import CardRef, GameCard

T = TypeVar('T')


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _truncated_mod(value: int, modulus: int) -> int:
    # Remainder takes the sign of the dividend.
    remainder = abs(value) % modulus
    return -remainder if value < 0 else remainder


def seed_hash(seed: str) -> int:
    """Polynomial rolling hash (x31) of the seed, as a signed 32-bit integer."""
    h = 0
    for char in seed:
        h = _to_int32((h << 5) - h + ord(char))
    return h


def shuffle(items: Sequence[T], seed: Optional[str] = None) -> List[T]:
    """
    Shuffle a sequence, deterministically if a seed is provided.

    The seeded path runs Fisher-Yates from the last index down, picking each
    swap partner from ``[0, i]`` with a linear-congruential generator started
    from the seed's hash.

    Args:
        items: Items to shuffle
        seed: Optional seed string for reproducible ordering

    Returns:
        Shuffled copy of the items
    """
    shuffled = list(items)

    if seed:
        state = seed_hash(seed)
        for i in range(len(shuffled) - 1, 0, -1):
            state = _truncated_mod(state * LCG_MULTIPLIER + LCG_INCREMENT, LCG_MODULUS)
            j = abs(state) % (i + 1)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    else:
        for i in range(len(shuffled) - 1, 0, -1):
            j = random.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled


def generate_shuffle_seed(length: int = SEED_LENGTH) -> str:
    """Create a random base-36 seed for a new game."""
    return ''.join(random.choice(SEED_ALPHABET) for _ in range(length))


def shuffle_deck(card_refs: Sequence[CardRef], seed: Optional[str] = None) -> List[GameCard]:
    """
    Shuffle an assembled deck and turn it into a game's draw pile.

    Each GameCard's draw_order is its position after shuffling, so dealing
    "from the front" means ascending draw_order.
    """
    shuffled = shuffle(card_refs, seed)
    return [
        GameCard(
            id=str(uuid.uuid4()),
            card=ref.card,
            draw_order=position,
            origin_deck_id=ref.deck_id,
        )
        for position, ref in enumerate(shuffled)
    ]
