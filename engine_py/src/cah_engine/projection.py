"""
Per-viewer game state projection.

Builds the JSON-safe view a single player is allowed to see: their own hand
in full, everyone else's as a count, and submissions revealed according to
the round's status.
"""

from typing import Any, Dict, List, Optional

from .constants import (
    CARD_BLACK, CARD_WHITE,
    GAME_LOBBY, GAME_IN_PROGRESS,
    ROUND_COLLECTING, ROUND_JUDGING, ROUND_COMPLETED,
    PHASE_LOBBY, PHASE_PLAYING, PHASE_JUDGING, PHASE_ROUND_END, PHASE_GAME_END,
)
from .models import Card, GameCard, GameState, Round, Submission
from .rules import RuleConfig, default_rules


def game_phase(state: GameState) -> str:
    """Coarse phase from game status and the latest round's status."""
    if state.status == GAME_LOBBY:
        return PHASE_LOBBY
    if state.status != GAME_IN_PROGRESS:
        return PHASE_GAME_END

    rnd = state.current_round()
    if rnd is not None:
        if rnd.status == ROUND_COLLECTING:
            return PHASE_PLAYING
        if rnd.status == ROUND_JUDGING:
            return PHASE_JUDGING
    if state.last_round() is not None:
        return PHASE_ROUND_END
    return PHASE_LOBBY


def _card(card: Card) -> Dict[str, Any]:
    data = {"id": card.id, "type": card.type, "content": card.content}
    if card.type == CARD_BLACK:
        data["pick"] = card.pick
        data["draw"] = card.draw
    return data


def _game_card(game_card: GameCard) -> Dict[str, Any]:
    # Clients act on game card ids; the catalog id is kept for display.
    return {**_card(game_card.card), "id": game_card.id, "card_id": game_card.card.id}


def _submission(
    state: GameState,
    submission: Submission,
    reveal_player: bool
) -> Dict[str, Any]:
    return {
        "id": submission.id,
        "player_id": submission.player_id if reveal_player else None,
        "cards": [_game_card(state.game_cards[card_id]) for card_id in submission.items],
        "is_winner": submission.is_winner,
    }


def _round_submissions(
    state: GameState,
    rnd: Round,
    viewer_id: Optional[str],
    rules: RuleConfig
) -> List[Dict[str, Any]]:
    submissions = state.submissions_for_round(rnd.id)

    if rnd.status == ROUND_COLLECTING:
        # Only your own answer is visible while others are still choosing.
        return [
            _submission(state, s, reveal_player=True)
            for s in submissions if s.player_id == viewer_id
        ]

    if rnd.status == ROUND_JUDGING and rules.anonymize_submissions:
        ordered = sorted(submissions, key=lambda s: s.id)
        return [_submission(state, s, reveal_player=False) for s in ordered]

    return [_submission(state, s, reveal_player=True) for s in submissions]


def _serialize_round(
    state: GameState,
    rnd: Round,
    viewer_id: Optional[str],
    rules: RuleConfig
) -> Dict[str, Any]:
    answering = [p for p in state.active_players() if p.id != rnd.czar_player_id]
    submission_count = len(state.submissions_for_round(rnd.id))
    return {
        "id": rnd.id,
        "round_number": rnd.round_number,
        "status": rnd.status,
        "czar_player_id": rnd.czar_player_id,
        "black_card": _card(rnd.black_card),
        "pick": rnd.pick,
        "draw": rnd.draw,
        "submission_count": submission_count,
        "expected_submissions": len(answering),
        "ready_for_judging": bool(answering) and submission_count >= len(answering),
        "winning_submission_id": rnd.winning_submission_id,
        "submissions": _round_submissions(state, rnd, viewer_id, rules),
    }


def _round_summary(state: GameState, rnd: Round) -> Dict[str, Any]:
    winner = state.submissions.get(rnd.winning_submission_id) if rnd.winning_submission_id else None
    return {
        "round_number": rnd.round_number,
        "czar_player_id": rnd.czar_player_id,
        "black_card": _card(rnd.black_card),
        "winner_player_id": winner.player_id if winner else None,
        "winning_cards": [
            _card(state.game_cards[card_id].card) for card_id in winner.items
        ] if winner else [],
    }


def project_state(
    state: GameState,
    viewer_id: Optional[str] = None,
    rules: Optional[RuleConfig] = None
) -> Dict[str, Any]:
    """
    Project game state for one viewer.

    Args:
        state: Game to project (not modified)
        viewer_id: Player ID of the viewer; None for a spectator
        rules: Rule configuration (submission anonymity)

    Returns:
        View dictionary safe for JSON transmission
    """
    rules = rules or default_rules
    current = state.current_round()
    latest = current or state.last_round()
    viewer = state.players.get(viewer_id) if viewer_id else None

    is_czar = bool(viewer and current and current.czar_player_id == viewer.id)
    has_submitted = bool(
        viewer and current and state.submission_by(current.id, viewer.id) is not None
    )
    can_submit = bool(
        viewer
        and viewer.is_active
        and state.status == GAME_IN_PROGRESS
        and current is not None
        and current.status == ROUND_COLLECTING
        and not is_czar
        and not has_submitted
    )

    players = []
    for player in sorted(state.players.values(), key=lambda p: p.seat_number):
        players.append({
            "id": player.id,
            "name": player.name,
            "seat_number": player.seat_number,
            "score": player.score,
            "is_active": player.is_active,
            "is_admin": player.is_admin,
            "is_czar": bool(current and current.czar_player_id == player.id),
            "has_submitted": bool(
                current and state.submission_by(current.id, player.id) is not None
            ),
            "hand_count": len(state.hand_of(player.id)),
        })

    view = {
        "game": {
            "id": state.id,
            "room_id": state.room_id,
            "name": state.name,
            "status": state.status,
            "winning_score": state.winning_score,
            "version": state.version,
            "allow_player_joins_after_start": state.allow_player_joins_after_start,
        },
        "phase": game_phase(state),
        "viewer_id": viewer.id if viewer else None,
        "is_czar": is_czar,
        "can_submit": can_submit,
        "has_submitted": has_submitted,
        "players": players,
        "hand": [_game_card(gc) for gc in state.hand_of(viewer.id)] if viewer else [],
        "current_round": _serialize_round(state, latest, viewer_id, rules) if latest else None,
        "rounds": [
            _round_summary(state, rnd)
            for rnd in state.rounds if rnd.status == ROUND_COMPLETED
        ],
        "draw_pile": {
            "white": len(state.draw_pile(CARD_WHITE)),
            "black": len(state.draw_pile(CARD_BLACK)),
        },
    }

    # The seed fixes the whole card order, so it is only shown once play is over.
    if view["phase"] == PHASE_GAME_END:
        view["game"]["shuffle_seed"] = state.shuffle_seed

    return view
