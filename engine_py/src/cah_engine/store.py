"""
Game state store.

The engine only talks to the GameStore interface. Every mutation happens
inside ``transaction(game_id)``, which serializes writers of one game and
commits all-or-nothing.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .errors import InvalidStateError, NotFoundError
from .models import GameState

logger = logging.getLogger(__name__)


class GameStore(ABC):
    """Persistence port for game aggregates."""

    @abstractmethod
    def add(self, state: GameState) -> GameState:
        """Store a brand-new game."""

    @abstractmethod
    def get(self, game_id: str) -> GameState:
        """Return a detached, read-only snapshot of a game."""

    @abstractmethod
    def find_by_room(self, room_id: str) -> Optional[GameState]:
        """Return the game attached to a room, if any."""

    @abstractmethod
    def list_games(self) -> List[GameState]:
        """Snapshots of every stored game."""

    @abstractmethod
    def remove(self, game_id: str) -> None:
        """Forget a game and release its lock."""

    @abstractmethod
    def transaction(self, game_id: str):
        """
        Context manager yielding a mutable GameState.

        Changes become visible only when the block exits normally; any
        exception discards them.
        """


class InMemoryGameStore(GameStore):
    """
    Process-local store.

    Writers work on a private copy under a per-game lock and swap it in on
    commit. Committed states are never mutated afterwards, so readers copy
    them without taking the lock.
    """

    def __init__(self):
        self._games: Dict[str, GameState] = {}
        self._game_locks = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def _lock_for(self, game_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._game_locks[game_id]

    def add(self, state: GameState) -> GameState:
        with self._registry_lock:
            if state.id in self._games:
                raise InvalidStateError(f"Game {state.id} already exists")
            if any(g.room_id == state.room_id for g in self._games.values()):
                raise InvalidStateError(f"Game already exists for room {state.room_id}")
            self._games[state.id] = copy.deepcopy(state)
        logger.info(f"Stored game {state.id} for room {state.room_id}")
        return copy.deepcopy(state)

    def get(self, game_id: str) -> GameState:
        state = self._games.get(game_id)
        if state is None:
            raise NotFoundError(f"Game not found: {game_id}")
        return copy.deepcopy(state)

    def find_by_room(self, room_id: str) -> Optional[GameState]:
        for state in list(self._games.values()):
            if state.room_id == room_id:
                return copy.deepcopy(state)
        return None

    def list_games(self) -> List[GameState]:
        return [copy.deepcopy(state) for state in list(self._games.values())]

    def remove(self, game_id: str) -> None:
        with self._lock_for(game_id):
            removed = self._games.pop(game_id, None)
        with self._registry_lock:
            self._game_locks.pop(game_id, None)
        if removed is None:
            raise NotFoundError(f"Game not found: {game_id}")
        logger.info(f"Removed game {game_id}")

    @contextmanager
    def transaction(self, game_id: str) -> Iterator[GameState]:
        with self._lock_for(game_id):
            committed = self._games.get(game_id)
            if committed is None:
                raise NotFoundError(f"Game not found: {game_id}")

            working = copy.deepcopy(committed)
            try:
                yield working
            except Exception:
                logger.debug(f"Rolled back transaction on game {game_id}")
                raise
            self._games[game_id] = working
