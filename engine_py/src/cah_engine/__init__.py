"""Cards Against Humanity game engine: decks, dealing, rounds and per-viewer state."""

from .engine import CAHEngine
from .errors import (
    GameError, ConfigurationError, InsufficientCardsError, InvalidStateError,
    AuthorizationError, ValidationError, NotFoundError,
)
from .shuffle import shuffle

__all__ = [
    "CAHEngine",
    "GameError",
    "ConfigurationError",
    "InsufficientCardsError",
    "InvalidStateError",
    "AuthorizationError",
    "ValidationError",
    "NotFoundError",
    "shuffle",
]
