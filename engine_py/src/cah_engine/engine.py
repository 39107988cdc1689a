"""Game engine: game setup and the round lifecycle"""

import copy
import logging
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from .catalog import DeckCatalog
from .constants import (
    CARD_IN_HAND, CARD_SUBMITTED, CARD_USED, CARD_WHITE,
    GAME_LOBBY, GAME_IN_PROGRESS, GAME_COMPLETED, GAME_CANCELLED, GAME_STATUS_ORDER,
    ROUND_COLLECTING, ROUND_JUDGING, ROUND_COMPLETED,
    EVENT_GAME_CREATED, EVENT_PLAYER_JOINED, EVENT_GAME_STARTED, EVENT_HANDS_DEALT,
    EVENT_ROUND_STARTED, EVENT_SUBMISSION_RECEIVED, EVENT_ALL_SUBMISSIONS_RECEIVED,
    EVENT_ROUND_ENDED, EVENT_GAME_ENDED, EVENT_GAME_CANCELLED,
)
from .dealer import deal_extra_cards, deal_hands, draw_black_card, top_up_hands
from .deck import assemble_deck
from .errors import (
    AuthorizationError, InsufficientCardsError, InvalidStateError,
    NotFoundError, ValidationError,
)
from .models import DeckSelection, GameState, Player, Round, Submission
from .notifier import NullNotifier, StateChange, StateNotifier
from .projection import project_state
from .rules import RuleConfig, default_rules
from .shuffle import generate_shuffle_seed, shuffle_deck
from .store import GameStore, InMemoryGameStore

logger = logging.getLogger(__name__)


def _set_status(state: GameState, status: str):
    if GAME_STATUS_ORDER[status] <= GAME_STATUS_ORDER[state.status]:
        raise InvalidStateError(f"Game cannot move from {state.status} to {status}")
    state.status = status


def _require_status(state: GameState, status: str, action: str):
    if state.status != status:
        raise InvalidStateError(f"Cannot {action}: game is {state.status}")


def _require_player(state: GameState, player_id: str) -> Player:
    player = state.players.get(player_id)
    if player is None:
        raise NotFoundError(f"Player not found: {player_id}")
    return player


def _require_admin(state: GameState, player_id: str) -> Player:
    player = _require_player(state, player_id)
    if not player.is_admin:
        raise AuthorizationError("Only the game admin can do that")
    return player


class CAHEngine:
    """
    Runs games against a GameStore.

    Every mutating call is one store transaction: it either commits in full
    or raises a GameError and leaves the stored game untouched. The notifier
    hears about a change only after it has been committed.
    """

    def __init__(
        self,
        store: Optional[GameStore] = None,
        catalog: Optional[DeckCatalog] = None,
        rules: Optional[RuleConfig] = None,
        notifier: Optional[StateNotifier] = None
    ):
        self.store = store or InMemoryGameStore()
        self.catalog = catalog if catalog is not None else DeckCatalog()
        self.rules = rules or default_rules
        self.notifier = notifier or NullNotifier()

    # -----------------------------
    # Notifications
    # -----------------------------

    def _notify(self, state: GameState, event: str, **data):
        change = StateChange(
            game_id=state.id,
            room_id=state.room_id,
            event=event,
            version=state.version,
            data=data,
        )
        try:
            self.notifier.state_changed(change)
        except Exception:
            # The mutation is already committed; a failed fan-out must not undo it.
            logger.exception(f"Notifier failed for {event} on game {state.id}")

    # -----------------------------
    # Queries
    # -----------------------------

    def get_game(self, game_id: str) -> GameState:
        return self.store.get(game_id)

    def find_game_for_room(self, room_id: str) -> Optional[GameState]:
        return self.store.find_by_room(room_id)

    def project_state(self, game_id: str, viewer_player_id: Optional[str] = None) -> dict:
        """Point-in-time view of a game for one viewer. Never mutates."""
        state = self.store.get(game_id)
        if viewer_player_id is not None and viewer_player_id not in state.players:
            raise NotFoundError(f"Player not found: {viewer_player_id}")
        return project_state(state, viewer_player_id, self.rules)

    # -----------------------------
    # Game setup
    # -----------------------------

    def create_game(
        self,
        room_id: str,
        name: str,
        admin_user_id: str,
        admin_name: str,
        decks: Sequence,
        winning_score: Optional[int] = None,
        allow_player_joins_after_start: Optional[bool] = None,
        shuffle_seed: Optional[str] = None
    ) -> GameState:
        """
        Create a game in LOBBY with its admin seated at 0.

        ``decks`` is a list of deck ids or DeckSelection objects. The
        selection is assembled once here so an unplayable choice fails
        before anyone joins.
        """
        selections = []
        for position, deck in enumerate(decks):
            if isinstance(deck, DeckSelection):
                selections.append(deck)
            elif isinstance(deck, str):
                selections.append(DeckSelection(deck_id=deck, position=position))
            else:
                raise ValidationError(f"Invalid deck selection: {deck!r}")
        assemble_deck(selections, self.catalog)

        score = winning_score if winning_score is not None else self.rules.winning_score
        if not 1 <= score <= 50:
            raise ValidationError("Winning score must be between 1 and 50")

        game_id = str(uuid.uuid4())
        admin = Player(
            id=str(uuid.uuid4()),
            user_id=admin_user_id,
            name=admin_name,
            seat_number=0,
            is_admin=True,
        )
        state = GameState(
            id=game_id,
            room_id=room_id,
            name=name,
            winning_score=score,
            shuffle_seed=shuffle_seed or generate_shuffle_seed(),
            allow_player_joins_after_start=(
                allow_player_joins_after_start
                if allow_player_joins_after_start is not None
                else self.rules.allow_player_joins_after_start
            ),
            selected_decks=selections,
            players={admin.id: admin},
        )
        state.game_log.append(f"{admin_name} created the game")
        state = self.store.add(state)

        logger.info(f"Created game {game_id} in room {room_id} (seed {state.shuffle_seed})")
        self._notify(state, EVENT_GAME_CREATED)
        return state

    def join_game(self, game_id: str, user_id: str, name: str) -> Player:
        """Seat a user at the next free seat. Late joiners are dealt in."""
        with self.store.transaction(game_id) as state:
            if state.player_for_user(user_id) is not None:
                raise InvalidStateError(f"{name} has already joined this game")

            if state.status == GAME_IN_PROGRESS:
                if not state.allow_player_joins_after_start:
                    raise InvalidStateError("This game does not accept players after it has started")
            elif state.status != GAME_LOBBY:
                raise InvalidStateError(f"Cannot join: game is {state.status}")

            if len(state.players) >= self.rules.max_players:
                raise InvalidStateError("Game is full")

            player = Player(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=name,
                seat_number=len(state.players),
            )
            state.players[player.id] = player

            if state.status == GAME_IN_PROGRESS:
                deal_hands(state, [player], self.rules.hand_size)

            state.game_log.append(f"{name} joined in seat {player.seat_number}")
            state.increment_version()

        self._notify(state, EVENT_PLAYER_JOINED, player_id=player.id)
        return copy.deepcopy(player)

    def start_game(self, game_id: str, requested_by: str) -> Round:
        """
        Build the draw pile, deal opening hands and start round 1.
        """
        with self.store.transaction(game_id) as state:
            _require_admin(state, requested_by)
            _require_status(state, GAME_LOBBY, "start game")

            players = state.active_players()
            if len(players) < self.rules.min_players:
                raise InvalidStateError(f"Need at least {self.rules.min_players} players to start")

            refs = assemble_deck(state.selected_decks, self.catalog)
            for game_card in shuffle_deck(refs, state.shuffle_seed):
                state.game_cards[game_card.id] = game_card

            deal_hands(state, players, self.rules.hand_size)
            _set_status(state, GAME_IN_PROGRESS)
            first_round = self._start_round(state, 1)

            state.game_log.append(f"Game started with {len(players)} players")
            state.increment_version()

        logger.info(f"Game {game_id} started: {len(state.game_cards)} cards, {len(players)} players")
        self._notify(state, EVENT_GAME_STARTED, round_id=first_round.id)
        return copy.deepcopy(first_round)

    def deal_hands(
        self,
        game_id: str,
        player_ids: Optional[Sequence[str]] = None,
        hand_size: Optional[int] = None
    ) -> Dict[str, List[str]]:
        """
        Deal full hands to players holding no cards.

        Defaults to every active player. Returns the dealt game card ids per
        player.
        """
        size = hand_size or self.rules.hand_size
        with self.store.transaction(game_id) as state:
            if state.status in (GAME_COMPLETED, GAME_CANCELLED):
                raise InvalidStateError(f"Cannot deal: game is {state.status}")
            if not state.game_cards:
                raise InvalidStateError("Cannot deal: draw pile has not been built")

            if player_ids is None:
                players = state.active_players()
            else:
                players = [_require_player(state, pid) for pid in player_ids]

            for player in players:
                if state.hand_of(player.id):
                    raise InvalidStateError(f"{player.name} already holds cards")

            dealt = deal_hands(state, players, size)
            state.increment_version()

        self._notify(state, EVENT_HANDS_DEALT, player_ids=list(dealt))
        return {pid: [gc.id for gc in cards] for pid, cards in dealt.items()}

    def cancel_game(self, game_id: str, requested_by: str) -> GameState:
        with self.store.transaction(game_id) as state:
            _require_admin(state, requested_by)
            _set_status(state, GAME_CANCELLED)
            state.game_log.append("Game cancelled")
            state.increment_version()

        logger.info(f"Game {game_id} cancelled")
        self._notify(state, EVENT_GAME_CANCELLED)
        return copy.deepcopy(state)

    # -----------------------------
    # Round lifecycle
    # -----------------------------

    def _start_round(self, state: GameState, round_number: int) -> Round:
        _require_status(state, GAME_IN_PROGRESS, "start round")

        if state.current_round() is not None:
            raise InvalidStateError("The current round has not finished")

        last = state.last_round()
        expected = last.round_number + 1 if last else 1
        if round_number != expected:
            raise InvalidStateError(f"Next round is {expected}, not {round_number}")

        players = state.active_players()
        if len(players) < 2:
            raise InvalidStateError("Not enough active players for a round")
        czar = players[(round_number - 1) % len(players)]

        black = draw_black_card(state)
        if black is None:
            raise InsufficientCardsError("No black cards available")

        rnd = Round(
            id=str(uuid.uuid4()),
            round_number=round_number,
            czar_player_id=czar.id,
            black_card=black.card,
            black_game_card_id=black.id,
            pick=black.card.pick or 1,
            draw=black.card.draw or 0,
        )
        state.rounds.append(rnd)

        if rnd.draw:
            deal_extra_cards(state, [p for p in players if p.id != czar.id], rnd.draw)

        state.game_log.append(f"Round {round_number}: {czar.name} is the czar")
        logger.info(f"Game {state.id} round {round_number} started, czar {czar.id}, pick {rnd.pick}")
        return rnd

    def start_round(self, game_id: str, round_number: Optional[int] = None) -> Round:
        """
        Start a round without refilling hands.

        ``round_number`` defaults to the next number in sequence.
        """
        with self.store.transaction(game_id) as state:
            if round_number is None:
                last = state.last_round()
                round_number = last.round_number + 1 if last else 1
            rnd = self._start_round(state, round_number)
            state.increment_version()

        self._notify(state, EVENT_ROUND_STARTED, round_id=rnd.id, round_number=rnd.round_number)
        return copy.deepcopy(rnd)

    def _advance_if_complete(self, state: GameState) -> bool:
        """Move a collecting round to judging once every answer is in."""
        rnd = state.current_round()
        if rnd is None or rnd.status != ROUND_COLLECTING:
            return False

        answering = [p for p in state.active_players() if p.id != rnd.czar_player_id]
        submitted = {s.player_id for s in state.submissions_for_round(rnd.id)}
        if not answering or not all(p.id in submitted for p in answering):
            return False

        rnd.status = ROUND_JUDGING
        state.game_log.append(f"All answers are in for round {rnd.round_number}")
        return True

    def advance_if_complete(self, game_id: str) -> bool:
        """
        Re-evaluate the judging guard for the current round.

        Safe to call any number of times; returns True only on the call that
        actually moved the round to judging.
        """
        with self.store.transaction(game_id) as state:
            advanced = self._advance_if_complete(state)
            if advanced:
                state.increment_version()

        if advanced:
            self._notify(state, EVENT_ALL_SUBMISSIONS_RECEIVED, round_id=state.current_round().id)
        return advanced

    def submit_cards(self, game_id: str, player_id: str, card_ids: Sequence[str]) -> Submission:
        """
        Submit white cards for the current round.

        Raises:
            InvalidStateError: No round collecting answers, or the player
                already submitted
            AuthorizationError: Player is the czar or inactive
            ValidationError: Wrong number of cards, repeated cards, or cards
                not in the player's hand
        """
        card_ids = list(card_ids)
        with self.store.transaction(game_id) as state:
            _require_status(state, GAME_IN_PROGRESS, "submit cards")
            rnd = state.current_round()
            if rnd is None or rnd.status != ROUND_COLLECTING:
                raise InvalidStateError("No round is collecting submissions")

            player = _require_player(state, player_id)
            if not player.is_active:
                raise AuthorizationError(f"{player.name} is not an active player")
            if player.id == rnd.czar_player_id:
                raise AuthorizationError("Czar cannot submit cards")

            if state.submission_by(rnd.id, player.id) is not None:
                raise InvalidStateError("Already submitted for this round")

            if len(card_ids) != rnd.pick:
                raise ValidationError(f"Must submit exactly {rnd.pick} cards")
            if len(set(card_ids)) != len(card_ids):
                raise ValidationError("The same card cannot be submitted twice")

            for card_id in card_ids:
                game_card = state.game_cards.get(card_id)
                if game_card is None or game_card.state != CARD_IN_HAND \
                        or game_card.holder_player_id != player.id \
                        or game_card.card.type != CARD_WHITE:
                    raise ValidationError("Invalid cards selected")

            submission = Submission(
                id=str(uuid.uuid4()),
                round_id=rnd.id,
                player_id=player.id,
                items=card_ids,
            )
            state.submissions[submission.id] = submission

            for card_id in card_ids:
                game_card = state.game_cards[card_id]
                game_card.state = CARD_SUBMITTED
                game_card.submitted_round_id = rnd.id
                game_card.hand_position = None

            advanced = self._advance_if_complete(state)
            state.increment_version()

        logger.debug(f"{player_id} submitted {len(card_ids)} cards in round {rnd.round_number}")
        self._notify(state, EVENT_SUBMISSION_RECEIVED, round_id=rnd.id, submission_id=submission.id)
        if advanced:
            self._notify(state, EVENT_ALL_SUBMISSIONS_RECEIVED, round_id=rnd.id)
        return copy.deepcopy(submission)

    def _check_game_end(self, state: GameState) -> bool:
        """End the game when someone has reached the winning score."""
        scores = [p.score for p in state.active_players()]
        if scores and max(scores) >= state.winning_score:
            _set_status(state, GAME_COMPLETED)
            leader = max(state.active_players(), key=lambda p: p.score)
            state.game_log.append(f"{leader.name} wins with {leader.score} points!")
            return True
        return False

    def judge_submission(
        self,
        game_id: str,
        submission_id: str,
        judge_player_id: str,
        auto_advance: bool = False
    ) -> Round:
        """
        Pick the winning submission of the current round.

        The winner scores one point, the round completes and the game ends if
        the winning score is reached. With ``auto_advance`` the next round is
        started afterwards in its own transaction; if the pile cannot supply
        it, the judgment stays committed and no round is started.

        Raises:
            InvalidStateError: Round is not waiting for judgment (including a
                second vote on a finished round)
            AuthorizationError: Judge is not the czar
            ValidationError: Submission is not part of the current round
        """
        with self.store.transaction(game_id) as state:
            _require_status(state, GAME_IN_PROGRESS, "judge")
            rnd = state.current_round()
            if rnd is None:
                raise InvalidStateError("Round has already been judged")
            if rnd.status != ROUND_JUDGING:
                raise InvalidStateError("Round is still collecting submissions")

            _require_player(state, judge_player_id)
            if judge_player_id != rnd.czar_player_id:
                raise AuthorizationError("Only the czar can vote")

            submission = state.submissions.get(submission_id)
            if submission is None or submission.round_id != rnd.id:
                raise ValidationError("Submission is not part of the current round")

            submission.is_winner = True
            rnd.winning_submission_id = submission.id
            rnd.status = ROUND_COMPLETED

            winner = state.players[submission.player_id]
            winner.score += 1

            for game_card in state.submitted_cards(rnd.id):
                game_card.state = CARD_USED

            state.game_log.append(f"{winner.name} wins round {rnd.round_number}")
            logger.info(f"Game {game_id} round {rnd.round_number} won by {winner.id} (score {winner.score})")

            game_ended = self._check_game_end(state)
            state.increment_version()

        self._notify(state, EVENT_ROUND_ENDED, round_id=rnd.id, winner_player_id=winner.id)
        if game_ended:
            self._notify(state, EVENT_GAME_ENDED)
        if auto_advance and not game_ended:
            try:
                self.start_next_round(game_id)
            except (InsufficientCardsError, InvalidStateError) as e:
                logger.warning(f"Game {game_id} could not advance after round {rnd.round_number}: {e}")
        return copy.deepcopy(rnd)

    def _next_round(self, state: GameState) -> Round:
        top_up_hands(state, state.active_players(), self.rules.hand_size)
        last = state.last_round()
        return self._start_round(state, last.round_number + 1 if last else 1)

    def start_next_round(self, game_id: str) -> Tuple[Optional[Round], bool]:
        """
        End the game or refill hands and start the next round.

        Returns:
            (round, game_ended). The round is None when the game ended.
        """
        with self.store.transaction(game_id) as state:
            _require_status(state, GAME_IN_PROGRESS, "start the next round")
            if state.current_round() is not None:
                raise InvalidStateError("The current round has not finished")

            if self._check_game_end(state):
                state.increment_version()
                rnd = None
            else:
                rnd = self._next_round(state)
                state.increment_version()

        if rnd is None:
            self._notify(state, EVENT_GAME_ENDED)
            return None, True

        self._notify(state, EVENT_ROUND_STARTED, round_id=rnd.id, round_number=rnd.round_number)
        return copy.deepcopy(rnd), False
