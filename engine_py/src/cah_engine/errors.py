# engine_py/src/cah_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
INSUFFICIENT_CARDS = "INSUFFICIENT_CARDS"
INVALID_STATE = "INVALID_STATE"
NOT_AUTHORIZED = "NOT_AUTHORIZED"
VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"
INTERNAL_ERROR = "INTERNAL_ERROR"


class ConfigurationError(GameError):
    """Deck selection cannot produce a playable game."""
    def __init__(self, message: str):
        super().__init__(CONFIGURATION_ERROR, message)


class InsufficientCardsError(GameError):
    """Draw pile does not hold enough cards for the request."""
    def __init__(self, message: str):
        super().__init__(INSUFFICIENT_CARDS, message)


class InvalidStateError(GameError):
    """Operation attempted in the wrong game or round status."""
    def __init__(self, message: str):
        super().__init__(INVALID_STATE, message)


class AuthorizationError(GameError):
    """Player is not allowed to perform this action."""
    def __init__(self, message: str):
        super().__init__(NOT_AUTHORIZED, message)


class ValidationError(GameError):
    """Request payload is inconsistent with the current round."""
    def __init__(self, message: str):
        super().__init__(VALIDATION_ERROR, message)


class NotFoundError(GameError):
    def __init__(self, message: str):
        super().__init__(NOT_FOUND, message)
