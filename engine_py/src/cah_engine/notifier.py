"""
State-change notifications from the engine to whatever fans them out.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class StateChange:
    game_id: str
    room_id: str
    event: str
    version: int
    data: Dict[str, Any] = field(default_factory=dict)


class StateNotifier(ABC):
    """Receives a StateChange after every committed mutation."""

    @abstractmethod
    def state_changed(self, change: StateChange) -> None:
        ...


class NullNotifier(StateNotifier):
    def state_changed(self, change: StateChange) -> None:
        logger.debug(f"{change.event} on game {change.game_id} (v{change.version})")


class RecordingNotifier(StateNotifier):
    """Keeps every change in memory. Useful for tests and replays."""

    def __init__(self):
        self.changes: List[StateChange] = []
        self._lock = Lock()

    def state_changed(self, change: StateChange) -> None:
        with self._lock:
            self.changes.append(change)

    def events(self, game_id: Optional[str] = None) -> List[str]:
        return [
            c.event for c in self.changes
            if game_id is None or c.game_id == game_id
        ]

    def clear(self):
        with self._lock:
            self.changes.clear()
