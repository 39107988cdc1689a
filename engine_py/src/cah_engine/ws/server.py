"""
FastAPI WebSocket server for Cards Against Humanity games.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict, Optional, Set

import orjson
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from ..catalog import load_catalog
from ..deck import summarize_decks
from ..engine import CAHEngine
from ..errors import GameError, NotFoundError
from ..notifier import StateChange, StateNotifier
from ..settings import ServerSettings
from .events import (
    parse_inbound_event, create_error_event, create_join_success_event,
    create_state_full_event, error_code_for, ErrorCode,
    CreateGameEvent, JoinEvent, StartEvent, SubmitEvent, JudgeEvent,
    NextRoundEvent, RequestStateEvent,
)

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    websocket: WebSocket
    user_id: str
    game_id: Optional[str] = None
    player_id: Optional[str] = None


class ConnectionManager(StateNotifier):
    """
    Tracks WebSocket connections per game and pushes projected state.

    Acts as the engine's notifier: every committed change is fanned out as
    a personalized ``state_full`` event to each connection in that game.
    """

    def __init__(self, engine: Optional[CAHEngine] = None):
        self.engine = engine
        self.connections: Dict[WebSocket, Connection] = {}
        self.game_connections: Dict[str, Set[WebSocket]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    def bind(self, engine: CAHEngine):
        self.engine = engine
        engine.notifier = self

    async def accept(self, websocket: WebSocket) -> Connection:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        connection = Connection(websocket=websocket, user_id=str(uuid.uuid4()))
        self.connections[websocket] = connection
        logger.info(f"Connection {connection.user_id} accepted")
        return connection

    def attach(self, connection: Connection, game_id: str, player_id: str):
        """Subscribe a connection to a game's updates."""
        connection.game_id = game_id
        connection.player_id = player_id
        self.game_connections.setdefault(game_id, set()).add(connection.websocket)
        logger.info(f"Player {player_id} connected to game {game_id}")

    def disconnect(self, websocket: WebSocket) -> Optional[Connection]:
        connection = self.connections.pop(websocket, None)
        if connection is None:
            return None

        if connection.game_id:
            sockets = self.game_connections.get(connection.game_id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self.game_connections[connection.game_id]

        logger.info(f"Connection {connection.user_id} disconnected")
        return connection

    async def send(self, websocket: WebSocket, payload: dict):
        await websocket.send_text(orjson.dumps(payload).decode())

    async def send_state(self, connection: Connection, event: Optional[str] = None):
        state = self.engine.project_state(connection.game_id, connection.player_id)
        message = create_state_full_event(state, event)
        await self.send(connection.websocket, message.model_dump(mode="json"))

    async def send_error(self, websocket: WebSocket, code: ErrorCode, message: str):
        error_event = create_error_event(code, message)
        await self.send(websocket, error_event.model_dump(mode="json"))

    async def broadcast_state(self, change: StateChange):
        """Send each connection in the game its own view of the new state."""
        for websocket in list(self.game_connections.get(change.game_id, ())):
            connection = self.connections.get(websocket)
            if connection is None:
                continue
            try:
                await self.send_state(connection, change.event)
            except Exception as e:
                logger.error(f"Error broadcasting to {connection.player_id}: {e}")
                # Remove dead connection
                self.disconnect(websocket)

    def state_changed(self, change: StateChange) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self.broadcast_state(change))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif self._loop is not None and self._loop.is_running():
            asyncio.run_coroutine_threadsafe(self.broadcast_state(change), self._loop)
        else:
            logger.debug(f"No event loop for {change.event} on game {change.game_id}")

    async def close_all(self):
        for websocket in list(self.connections):
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing connection: {e}")
            self.disconnect(websocket)


async def handle_event(manager: ConnectionManager, connection: Connection, event):
    """Dispatch an inbound event to the engine."""
    engine = manager.engine

    if isinstance(event, (CreateGameEvent, JoinEvent)) and connection.game_id is not None:
        await manager.send_error(connection.websocket, ErrorCode.ACTION_NOT_ALLOWED, "Already in a game")
        return

    if isinstance(event, CreateGameEvent):
        state = engine.create_game(
            room_id=event.room_id,
            name=event.game_name,
            admin_user_id=connection.user_id,
            admin_name=event.name,
            decks=event.deck_ids,
            winning_score=event.winning_score,
            allow_player_joins_after_start=event.allow_player_joins_after_start,
            shuffle_seed=event.shuffle_seed,
        )
        admin = state.player_for_user(connection.user_id)
        await _attach_and_greet(manager, connection, state.id, admin.id)
        return

    if isinstance(event, JoinEvent):
        state = engine.find_game_for_room(event.room_id)
        if state is None:
            raise NotFoundError(f"No game in room {event.room_id}")
        player = engine.join_game(state.id, connection.user_id, event.name)
        await _attach_and_greet(manager, connection, state.id, player.id)
        return

    if connection.game_id is None:
        await manager.send_error(connection.websocket, ErrorCode.ACTION_NOT_ALLOWED, "Not in a game")
        return

    if isinstance(event, StartEvent):
        engine.start_game(connection.game_id, connection.player_id)
    elif isinstance(event, SubmitEvent):
        engine.submit_cards(connection.game_id, connection.player_id, event.cards)
    elif isinstance(event, JudgeEvent):
        engine.judge_submission(
            connection.game_id, event.submission_id, connection.player_id,
            auto_advance=event.auto_advance,
        )
    elif isinstance(event, NextRoundEvent):
        engine.start_next_round(connection.game_id)
    elif isinstance(event, RequestStateEvent):
        await manager.send_state(connection)
    else:
        raise ValueError(f"Unhandled event type: {type(event)}")


async def _attach_and_greet(manager: ConnectionManager, connection: Connection, game_id: str, player_id: str):
    # join_success must reach the client before any broadcast does.
    connection.game_id = game_id
    connection.player_id = player_id
    join_success_event = create_join_success_event(game_id, player_id)
    await manager.send(connection.websocket, join_success_event.model_dump(mode="json"))
    await manager.send_state(connection)
    manager.attach(connection, game_id, player_id)


def create_app(
    engine: Optional[CAHEngine] = None,
    settings: Optional[ServerSettings] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    The engine and connection manager are created here and live on
    ``app.state``; connections are closed when the app shuts down.
    """
    settings = settings or ServerSettings.from_env()
    if engine is None:
        engine = CAHEngine(catalog=load_catalog(settings.decks_path))

    manager = ConnectionManager()
    manager.bind(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Serving {len(engine.catalog)} decks")
        yield
        await manager.close_all()

    app = FastAPI(title="Cards Against Humanity Game Engine", version="1.0.0", lifespan=lifespan)
    app.state.engine = engine
    app.state.manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Cards Against Humanity Game API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "games": len(engine.store.list_games()),
            "connections": len(manager.connections),
        }

    @app.get("/decks")
    async def list_decks():
        return summarize_decks(engine.catalog)

    @app.get("/games/{game_id}/state")
    async def game_state(game_id: str):
        """Spectator view; hands are only ever sent over the player's own socket."""
        try:
            return engine.project_state(game_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=e.message)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Main WebSocket endpoint."""
        connection = await manager.accept(websocket)

        try:
            while True:
                raw_data = await websocket.receive_text()

                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                    await handle_event(manager, connection, event)
                except GameError as e:
                    await manager.send_error(websocket, error_code_for(e.code), e.message)
                except ValueError as e:
                    # Invalid event
                    await manager.send_error(websocket, ErrorCode.INVALID_EVENT, str(e))
                except Exception:
                    logger.exception("Error handling event")
                    await manager.send_error(websocket, ErrorCode.INTERNAL, "Internal server error")

        except WebSocketDisconnect:
            logger.info("WebSocket disconnected")
        finally:
            manager.disconnect(websocket)

    return app
