"""
Tests for the in-memory game store.
"""

import pytest

from cah_engine.errors import InvalidStateError, NotFoundError
from cah_engine.models import GameState, Player
from cah_engine.store import InMemoryGameStore


def make_game(game_id="g1", room_id="r1"):
    return GameState(id=game_id, room_id=room_id, name="Game")


def test_get_returns_detached_snapshot():
    """Test get returns detached snapshot."""
    store = InMemoryGameStore()
    store.add(make_game())

    snapshot = store.get("g1")
    snapshot.name = "Changed"

    assert store.get("g1").name == "Game"


def test_transaction_commits_on_success():
    """Test transaction commits on success."""
    store = InMemoryGameStore()
    store.add(make_game())

    with store.transaction("g1") as state:
        state.players["p1"] = Player(id="p1", user_id="u1", name="Alice", seat_number=0)
        state.increment_version()

    committed = store.get("g1")
    assert "p1" in committed.players
    assert committed.version == 1


def test_transaction_rolls_back_on_error():
    """A failed transaction leaves no partial change behind."""
    store = InMemoryGameStore()
    store.add(make_game())

    with pytest.raises(RuntimeError):
        with store.transaction("g1") as state:
            state.name = "Half done"
            state.increment_version()
            raise RuntimeError("boom")

    committed = store.get("g1")
    assert committed.name == "Game"
    assert committed.version == 0


def test_snapshot_taken_before_commit_is_unchanged():
    """Test snapshot taken before commit is unchanged."""
    store = InMemoryGameStore()
    store.add(make_game())
    before = store.get("g1")

    with store.transaction("g1") as state:
        state.name = "After"

    assert before.name == "Game"
    assert store.get("g1").name == "After"


def test_one_game_per_room():
    """Test one game per room."""
    store = InMemoryGameStore()
    store.add(make_game("g1", "r1"))

    with pytest.raises(InvalidStateError):
        store.add(make_game("g2", "r1"))
    with pytest.raises(InvalidStateError):
        store.add(make_game("g1", "r2"))


def test_find_by_room_and_list():
    """Test find by room and list."""
    store = InMemoryGameStore()
    store.add(make_game("g1", "r1"))
    store.add(make_game("g2", "r2"))

    assert store.find_by_room("r2").id == "g2"
    assert store.find_by_room("r3") is None
    assert sorted(g.id for g in store.list_games()) == ["g1", "g2"]


def test_missing_game():
    """Test missing game."""
    store = InMemoryGameStore()
    with pytest.raises(NotFoundError):
        store.get("nope")
    with pytest.raises(NotFoundError):
        with store.transaction("nope"):
            pass


def test_remove_releases_game_and_lock():
    """Removing a game drops both the game and its lock."""
    store = InMemoryGameStore()
    store.add(make_game("g1", "r1"))
    with store.transaction("g1"):
        pass

    store.remove("g1")

    assert store.find_by_room("r1") is None
    assert "g1" not in store._game_locks
    with pytest.raises(NotFoundError):
        store.get("g1")
    with pytest.raises(NotFoundError):
        store.remove("g1")
    assert "g1" not in store._game_locks

    # The room is free again
    store.add(make_game("g2", "r1"))
    assert store.find_by_room("r1").id == "g2"
