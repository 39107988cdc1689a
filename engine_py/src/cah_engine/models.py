"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional

from .constants import (
    CARD_BLACK, CARD_WHITE, CARD_IN_DRAW_PILE, CARD_IN_HAND, CARD_SUBMITTED,
    GAME_LOBBY, ROUND_COLLECTING, ROUND_COMPLETED, DEFAULT_WINNING_SCORE,
)


@dataclass
class Card:
    id: str
    type: str  # WHITE|BLACK
    content: str
    pick: int = 1  # BLACK only
    draw: int = 0  # BLACK only
    is_active: bool = True

    @property
    def is_black(self) -> bool:
        return self.type == CARD_BLACK

    @property
    def is_white(self) -> bool:
        return self.type == CARD_WHITE


@dataclass
class Deck:
    id: str
    name: str
    cards: List[Card] = field(default_factory=list)
    is_active: bool = True


@dataclass
class DeckSelection:
    deck_id: str
    include_white: bool = True
    include_black: bool = True
    position: int = 0


@dataclass(frozen=True)
class CardRef:
    """A card as it enters a game's pile, tagged with the deck it came from."""
    card: Card
    deck_id: str


@dataclass
class Player:
    id: str
    user_id: str
    name: str
    seat_number: int
    score: int = 0
    is_active: bool = True
    is_admin: bool = False


@dataclass
class GameCard:
    id: str
    card: Card
    draw_order: int
    origin_deck_id: Optional[str] = None
    state: str = CARD_IN_DRAW_PILE  # IN_DRAW_PILE|IN_HAND|SUBMITTED|USED|DISCARDED
    holder_player_id: Optional[str] = None
    hand_position: Optional[int] = None
    submitted_round_id: Optional[str] = None


@dataclass
class Round:
    id: str
    round_number: int
    czar_player_id: str
    black_card: Card
    black_game_card_id: str
    pick: int = 1
    draw: int = 0
    status: str = ROUND_COLLECTING  # COLLECTING_SUBMISSIONS|JUDGING|COMPLETED
    winning_submission_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status != ROUND_COMPLETED


@dataclass
class Submission:
    id: str
    round_id: str
    player_id: str
    items: List[str] = field(default_factory=list)  # game card ids, in play order
    is_winner: bool = False


@dataclass
class GameState:
    """Everything a single game owns. The store persists one per game id."""
    id: str
    room_id: str
    name: str
    status: str = GAME_LOBBY  # LOBBY|IN_PROGRESS|COMPLETED|CANCELLED
    winning_score: int = DEFAULT_WINNING_SCORE
    shuffle_seed: Optional[str] = None
    allow_player_joins_after_start: bool = False
    version: int = 0
    selected_decks: List[DeckSelection] = field(default_factory=list)
    players: Dict[str, Player] = field(default_factory=dict)
    game_cards: Dict[str, GameCard] = field(default_factory=dict)
    rounds: List[Round] = field(default_factory=list)
    submissions: Dict[str, Submission] = field(default_factory=dict)
    game_log: List[str] = field(default_factory=list)

    def increment_version(self):
        self.version += 1

    def active_players(self) -> List[Player]:
        """Active players in seat order."""
        return sorted(
            (p for p in self.players.values() if p.is_active),
            key=lambda p: p.seat_number,
        )

    def player_for_user(self, user_id: str) -> Optional[Player]:
        for player in self.players.values():
            if player.user_id == user_id:
                return player
        return None

    def current_round(self) -> Optional[Round]:
        for rnd in self.rounds:
            if rnd.is_open:
                return rnd
        return None

    def last_round(self) -> Optional[Round]:
        return self.rounds[-1] if self.rounds else None

    def draw_pile(self, card_type: Optional[str] = None) -> List[GameCard]:
        pile = [
            gc for gc in self.game_cards.values()
            if gc.state == CARD_IN_DRAW_PILE
            and (card_type is None or gc.card.type == card_type)
        ]
        return sorted(pile, key=lambda gc: gc.draw_order)

    def hand_of(self, player_id: str) -> List[GameCard]:
        hand = [
            gc for gc in self.game_cards.values()
            if gc.state == CARD_IN_HAND and gc.holder_player_id == player_id
        ]
        return sorted(hand, key=lambda gc: gc.hand_position or 0)

    def submissions_for_round(self, round_id: str) -> List[Submission]:
        return [s for s in self.submissions.values() if s.round_id == round_id]

    def submission_by(self, round_id: str, player_id: str) -> Optional[Submission]:
        for submission in self.submissions.values():
            if submission.round_id == round_id and submission.player_id == player_id:
                return submission
        return None

    def submitted_cards(self, round_id: str) -> List[GameCard]:
        return [
            gc for gc in self.game_cards.values()
            if gc.state == CARD_SUBMITTED and gc.submitted_round_id == round_id
        ]
