"""
Dealing white cards into player hands.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .constants import (
    CARD_WHITE, CARD_IN_DRAW_PILE, CARD_IN_HAND, CARD_SUBMITTED,
    CARD_USED, CARD_DISCARDED, HAND_SIZE,
)
from .errors import InsufficientCardsError
from .models import GameCard, GameState, Player

logger = logging.getLogger(__name__)


def _give(card: GameCard, player: Player, position: int):
    card.state = CARD_IN_HAND
    card.holder_player_id = player.id
    card.hand_position = position


def deal_hands(
    state: GameState,
    players: Sequence[Player],
    hand_size: int = HAND_SIZE
) -> Dict[str, List[GameCard]]:
    """
    Deal a full hand to each player from the front of the white draw pile.

    Players are served in seat order, each taking the next ``hand_size``
    cards. Nothing is dealt if the pile is too small.

    Args:
        state: Game being dealt (mutated in place)
        players: Players to deal to
        hand_size: Cards per player

    Returns:
        Dictionary mapping player_id to the cards they received

    Raises:
        InsufficientCardsError: If fewer than players * hand_size white
            cards remain
    """
    pile = state.draw_pile(CARD_WHITE)
    needed = len(players) * hand_size
    if len(pile) < needed:
        raise InsufficientCardsError(
            f"Need {needed} white cards to deal {len(players)} hands, only {len(pile)} left"
        )

    dealt: Dict[str, List[GameCard]] = {}
    index = 0
    for player in sorted(players, key=lambda p: p.seat_number):
        cards = pile[index:index + hand_size]
        index += hand_size
        for position, card in enumerate(cards):
            _give(card, player, position)
        dealt[player.id] = cards

    logger.debug(f"Dealt {needed} cards to {len(players)} players in game {state.id}")
    return dealt


def top_up_hands(
    state: GameState,
    players: Sequence[Player],
    hand_size: int = HAND_SIZE
) -> Dict[str, List[GameCard]]:
    """
    Refill each player's hand up to ``hand_size``.

    Only the shortfall is drawn; held cards keep their positions and new
    cards are appended after them.

    Raises:
        InsufficientCardsError: If the pile cannot cover every shortfall
    """
    shortfalls = []
    for player in sorted(players, key=lambda p: p.seat_number):
        hand = state.hand_of(player.id)
        missing = hand_size - len(hand)
        if missing > 0:
            shortfalls.append((player, hand, missing))

    pile = state.draw_pile(CARD_WHITE)
    needed = sum(missing for _, _, missing in shortfalls)
    if len(pile) < needed:
        raise InsufficientCardsError(
            f"Need {needed} white cards to refill hands, only {len(pile)} left"
        )

    dealt: Dict[str, List[GameCard]] = {}
    index = 0
    for player, hand, missing in shortfalls:
        next_position = max((gc.hand_position or 0 for gc in hand), default=-1) + 1
        cards = pile[index:index + missing]
        index += missing
        for offset, card in enumerate(cards):
            _give(card, player, next_position + offset)
        dealt[player.id] = cards

    return dealt


def deal_extra_cards(
    state: GameState,
    players: Sequence[Player],
    count: int
) -> Dict[str, List[GameCard]]:
    """Give each player ``count`` cards on top of what they hold (black card "draw")."""
    targets = {p.id: len(state.hand_of(p.id)) + count for p in players}
    dealt: Dict[str, List[GameCard]] = {}
    pile = state.draw_pile(CARD_WHITE)
    if len(pile) < count * len(players):
        raise InsufficientCardsError(
            f"Need {count * len(players)} white cards for extra draws, only {len(pile)} left"
        )
    for player in sorted(players, key=lambda p: p.seat_number):
        dealt.update(top_up_hands(state, [player], targets[player.id]))
    return dealt


def draw_black_card(state: GameState) -> Optional[GameCard]:
    """Take the next black card off the pile and mark it used."""
    for card in state.draw_pile():
        if card.card.is_black:
            card.state = CARD_USED
            return card
    return None


def card_partition(state: GameState) -> Dict[str, List[str]]:
    """Group every game card id by where it currently lives."""
    partition = {
        "draw_pile": [],
        "hands": [],
        "submissions": [],
        "used": [],
    }
    for card in state.game_cards.values():
        if card.state == CARD_IN_DRAW_PILE:
            partition["draw_pile"].append(card.id)
        elif card.state == CARD_IN_HAND:
            partition["hands"].append(card.id)
        elif card.state == CARD_SUBMITTED:
            partition["submissions"].append(card.id)
        elif card.state in (CARD_USED, CARD_DISCARDED):
            partition["used"].append(card.id)
    return partition


def validate_deck_integrity(state: GameState) -> bool:
    """
    Check that every game card is in exactly one place.

    Returns:
        True if the draw pile, hands, submissions and used cards partition
        the game's cards and hand/submission bookkeeping is consistent
    """
    partition = card_partition(state)
    placed = [card_id for ids in partition.values() for card_id in ids]
    if len(placed) != len(state.game_cards) or len(set(placed)) != len(placed):
        return False

    for card in state.game_cards.values():
        if card.state == CARD_IN_HAND:
            if card.holder_player_id not in state.players:
                return False
        elif card.state == CARD_IN_DRAW_PILE and card.holder_player_id is not None:
            return False

    submitted = [card_id for s in state.submissions.values() for card_id in s.items]
    if len(submitted) != len(set(submitted)):
        return False
    for card_id in partition["submissions"]:
        if card_id not in submitted:
            return False

    return True
