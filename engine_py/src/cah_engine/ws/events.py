"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_GAME = "create_game"
    JOIN = "join"
    START = "start"
    SUBMIT = "submit"
    JUDGE = "judge"
    NEXT_ROUND = "next_round"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INSUFFICIENT_CARDS = "INSUFFICIENT_CARDS"
    INVALID_STATE = "INVALID_STATE"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    INTERNAL = "INTERNAL_ERROR"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateGameEvent(BaseEvent):
    """Create a game for a room; the sender becomes its admin."""
    type: EventType = EventType.CREATE_GAME
    room_id: str = Field(..., min_length=1, max_length=50)
    game_name: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=30)
    deck_ids: List[str] = Field(..., min_length=1)
    winning_score: Optional[int] = Field(default=None, ge=1, le=50)
    allow_player_joins_after_start: Optional[bool] = None
    shuffle_seed: Optional[str] = Field(default=None, max_length=64)


class JoinEvent(BaseEvent):
    """Join the game attached to a room."""
    type: EventType = EventType.JOIN
    room_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=30)


class StartEvent(BaseEvent):
    """Start game event."""
    type: EventType = EventType.START


class SubmitEvent(BaseEvent):
    """Submit white cards for the current round."""
    type: EventType = EventType.SUBMIT
    cards: List[str] = Field(..., min_length=1, max_length=5)


class JudgeEvent(BaseEvent):
    """Czar picks the winning submission."""
    type: EventType = EventType.JUDGE
    submission_id: str = Field(..., min_length=1)
    auto_advance: bool = False


class NextRoundEvent(BaseEvent):
    type: EventType = EventType.NEXT_ROUND


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateGameEvent,
    JoinEvent,
    StartEvent,
    SubmitEvent,
    JudgeEvent,
    NextRoundEvent,
    RequestStateEvent,
]


# Outbound event models
class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    game_id: str
    player_id: str
    timestamp: float


class StateFullEvent(BaseModel):
    """Full projected state, tagged with the change that produced it."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    event: Optional[str] = None
    state: Dict[str, Any]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


OutboundEvent = Union[
    JoinSuccessEvent,
    StateFullEvent,
    ErrorEvent,
]


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.CREATE_GAME: CreateGameEvent,
        EventType.JOIN: JoinEvent,
        EventType.START: StartEvent,
        EventType.SUBMIT: SubmitEvent,
        EventType.JUDGE: JudgeEvent,
        EventType.NEXT_ROUND: NextRoundEvent,
        EventType.REQUEST_STATE: RequestStateEvent,
    }

    event_class = event_map[event_type]

    try:
        return event_class(**data)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid event data: {e}")


def error_code_for(code: str) -> ErrorCode:
    try:
        return ErrorCode(code)
    except ValueError:
        return ErrorCode.INTERNAL


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_join_success_event(game_id: str, player_id: str) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(
        game_id=game_id,
        player_id=player_id,
        timestamp=time.time()
    )


def create_state_full_event(state: Dict[str, Any], event: Optional[str] = None) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(
        event=event,
        state=state,
        timestamp=time.time()
    )
