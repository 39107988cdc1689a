"""
Tests for the WebSocket events and the FastAPI server.
"""

import orjson
import pytest
from fastapi.testclient import TestClient

from cah_engine.engine import CAHEngine
from cah_engine.settings import ServerSettings
from cah_engine.ws.events import (
    CreateGameEvent, ErrorCode, JudgeEvent, SubmitEvent,
    error_code_for, parse_inbound_event,
)
from cah_engine.ws.server import create_app

from conftest import build_catalog, start_game


@pytest.mark.asyncio
async def test_websocket_events():
    """Test WebSocket event parsing."""
    event = parse_inbound_event({
        "type": "create_game",
        "room_id": "room-1",
        "game_name": "Friday",
        "name": "Alice",
        "deck_ids": ["core"],
    })
    assert isinstance(event, CreateGameEvent)
    assert event.winning_score is None

    event = parse_inbound_event({"type": "submit", "cards": ["a", "b"]})
    assert isinstance(event, SubmitEvent)
    assert event.cards == ["a", "b"]

    event = parse_inbound_event({"type": "judge", "submission_id": "s1"})
    assert isinstance(event, JudgeEvent)
    assert event.auto_advance is False

    with pytest.raises(ValueError):
        parse_inbound_event({"type": "invalid"})


@pytest.mark.parametrize("data", [
    {},
    [],
    {"type": "submit", "cards": []},
    {"type": "join", "room_id": "room-1"},
    {"type": "create_game", "room_id": "r", "game_name": "g", "name": "n", "deck_ids": ["core"],
     "winning_score": 0},
])
def test_malformed_events_are_rejected(data):
    """Test malformed events are rejected."""
    with pytest.raises(ValueError):
        parse_inbound_event(data)


def test_error_codes_follow_game_errors():
    """Test error codes follow game errors."""
    assert error_code_for("NOT_AUTHORIZED") == ErrorCode.NOT_AUTHORIZED
    assert error_code_for("SOMETHING_NEW") == ErrorCode.INTERNAL


def test_settings_from_env(monkeypatch):
    """Test settings from env."""
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

    settings = ServerSettings.from_env()

    assert settings.port == 9001
    assert settings.log_level == "debug"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.decks_path is None


# -----------------------------
# Server
# -----------------------------

@pytest.fixture
def client():
    engine = CAHEngine(catalog=build_catalog())
    app = create_app(engine=engine, settings=ServerSettings())
    with TestClient(app) as test_client:
        yield test_client


def send(ws, payload):
    ws.send_text(orjson.dumps(payload).decode())


def receive_until(ws, predicate):
    """Read messages until one matches; broadcasts may arrive in between."""
    while True:
        message = orjson.loads(ws.receive_text())
        if predicate(message):
            return message


def of_type(message_type):
    return lambda m: m["type"] == message_type


def in_phase(phase):
    return lambda m: m["type"] == "state_full" and m["state"]["phase"] == phase


def test_http_endpoints(client):
    """Test http endpoints."""
    assert client.get("/").status_code == 200

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["games"] == 0

    decks = client.get("/decks").json()
    assert decks == [{"id": "core", "name": "Core", "white_count": 60,
                      "black_count": 10, "total_cards": 70}]

    assert client.get("/games/missing/state").status_code == 404


def test_actions_require_a_game(client):
    """Test actions require a game."""
    with client.websocket_connect("/ws") as ws:
        send(ws, {"type": "start"})
        error = receive_until(ws, of_type("error"))
        assert error["code"] == "ACTION_NOT_ALLOWED"

        send(ws, {"type": "nope"})
        assert receive_until(ws, of_type("error"))["code"] == "INVALID_EVENT"

        ws.send_text("not json")
        assert receive_until(ws, of_type("error"))["code"] == "INVALID_EVENT"

        send(ws, {"type": "join", "room_id": "empty-room", "name": "Bob"})
        assert receive_until(ws, of_type("error"))["code"] == "NOT_FOUND"


def test_full_round_over_websockets(client):
    """Test full round over websockets."""
    with client.websocket_connect("/ws") as alice, \
            client.websocket_connect("/ws") as bob, \
            client.websocket_connect("/ws") as cat:

        send(alice, {"type": "create_game", "room_id": "room-1", "game_name": "Friday",
                     "name": "Alice", "deck_ids": ["core"], "shuffle_seed": "ws-seed"})
        alice_id = receive_until(alice, of_type("join_success"))["player_id"]

        send(bob, {"type": "join", "room_id": "room-1", "name": "Bob"})
        bob_id = receive_until(bob, of_type("join_success"))["player_id"]
        send(cat, {"type": "join", "room_id": "room-1", "name": "Cat"})
        receive_until(cat, of_type("join_success"))

        # Joining twice from the same connection is refused
        send(bob, {"type": "join", "room_id": "room-1", "name": "Bob"})
        assert receive_until(bob, of_type("error"))["code"] == "ACTION_NOT_ALLOWED"

        # Only the admin can start
        send(bob, {"type": "start"})
        assert receive_until(bob, of_type("error"))["code"] == "NOT_AUTHORIZED"

        send(alice, {"type": "start"})
        alice_view = receive_until(alice, in_phase("playing"))["state"]
        assert alice_view["is_czar"] is True
        assert alice_view["viewer_id"] == alice_id

        for ws in (bob, cat):
            view = receive_until(ws, in_phase("playing"))["state"]
            assert view["can_submit"] is True
            send(ws, {"type": "submit", "cards": [view["hand"][0]["id"]]})

        judging = receive_until(alice, in_phase("judging"))["state"]
        submissions = judging["current_round"]["submissions"]
        assert len(submissions) == 2
        winning = next(s for s in submissions if s["player_id"] == bob_id)

        send(alice, {"type": "judge", "submission_id": winning["id"]})
        round_end = receive_until(alice, in_phase("round_end"))["state"]
        scores = {p["id"]: p["score"] for p in round_end["players"]}
        assert scores[bob_id] == 1

        send(alice, {"type": "next_round"})
        view = receive_until(bob, lambda m: m["type"] == "state_full"
                             and m["event"] == "round_started")["state"]
        assert view["is_czar"] is True
        assert view["current_round"]["round_number"] == 2

        send(cat, {"type": "request_state"})
        view = receive_until(cat, lambda m: m["type"] == "state_full" and m["event"] is None)["state"]
        assert view["phase"] == "playing"
        assert len(view["hand"]) == 7

        assert client.get("/health").json()["connections"] == 3


def test_http_state_never_shows_a_hand(client):
    """Test the HTTP state view is a spectator view even when given a player id."""
    engine = client.app.state.engine
    game_id, players = start_game(engine)

    spectator = client.get(f"/games/{game_id}/state").json()
    other_id = spectator["players"][1]["id"]
    assert other_id == players[1]

    view = client.get(f"/games/{game_id}/state", params={"player_id": other_id}).json()

    assert view["hand"] == []
    assert view["viewer_id"] is None
    assert [p["hand_count"] for p in view["players"]] == [7, 7, 7]
