"""
Pytest fixtures for CAH engine tests.
"""

import pytest

from cah_engine.catalog import DeckCatalog
from cah_engine.constants import CARD_BLACK, CARD_WHITE
from cah_engine.engine import CAHEngine
from cah_engine.models import Card, Deck
from cah_engine.notifier import RecordingNotifier


def build_deck(deck_id="core", white=60, black=10, pick=1, draw=0, name=None):
    cards = [
        Card(id=f"{deck_id}-w{i}", type=CARD_WHITE, content=f"White {i}")
        for i in range(white)
    ]
    cards += [
        Card(id=f"{deck_id}-b{i}", type=CARD_BLACK, content=f"Black {i} _", pick=pick, draw=draw)
        for i in range(black)
    ]
    return Deck(id=deck_id, name=name or deck_id.title(), cards=cards)


def build_catalog(*decks):
    catalog = DeckCatalog()
    for deck in decks or (build_deck(),):
        catalog.add(deck)
    return catalog


def start_game(engine, players=3, decks=("core",), winning_score=5, seed="test-seed"):
    """Create a game, seat ``players`` players and start it. Returns (game_id, player_ids by seat)."""
    state = engine.create_game(
        room_id=f"room-{len(engine.store.list_games())}",
        name="Test Game",
        admin_user_id="user-0",
        admin_name="Player 0",
        decks=list(decks),
        winning_score=winning_score,
        shuffle_seed=seed,
    )
    admin = state.player_for_user("user-0")
    player_ids = [admin.id]
    for i in range(1, players):
        player_ids.append(engine.join_game(state.id, f"user-{i}", f"Player {i}").id)
    engine.start_game(state.id, admin.id)
    return state.id, player_ids


def submit_all(engine, game_id):
    """Every answering player submits the first ``pick`` cards of their hand."""
    state = engine.get_game(game_id)
    rnd = state.current_round()
    submissions = {}
    for player in state.active_players():
        if player.id == rnd.czar_player_id:
            continue
        hand = state.hand_of(player.id)
        card_ids = [gc.id for gc in hand[:rnd.pick]]
        submissions[player.id] = engine.submit_cards(game_id, player.id, card_ids)
    return rnd, submissions


def play_round(engine, game_id, winner_id):
    """Submit for everyone and let the czar pick ``winner_id``'s answer."""
    rnd, submissions = submit_all(engine, game_id)
    return engine.judge_submission(game_id, submissions[winner_id].id, rnd.czar_player_id)


@pytest.fixture
def catalog():
    return build_catalog()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine(catalog, notifier):
    return CAHEngine(catalog=catalog, notifier=notifier)


@pytest.fixture
def game(engine):
    return start_game(engine)
