"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from clubleague.auth.decorators import login_required
from clubleague.errors import NotFoundError
from clubleague.utils import form_error

from . import bp
from .bracket import count_rounds
from .demo import seed_demo_tournament
from .forms import AssignPlayersForm, MatchResultForm
from .services import TournamentService
from .utils import standings_payload


@bp.route("/<string:league_id>/bracket", methods=["POST"])
@login_required
def generate_bracket(league_id: str) -> Any:
    """Generate the single-elimination bracket for a league."""
    matches = TournamentService.generate_bracket(league_id, g.user["uid"])
    return (
        jsonify(
            {
                "status": "success",
                "matchCount": len(matches),
                "rounds": count_rounds(matches),
            }
        ),
        201,
    )


@bp.route("/<string:league_id>/bracket", methods=["GET"])
@login_required
def view_bracket(league_id: str) -> Any:
    """Return the bracket, or null when it has not been generated."""
    bracket = TournamentService.get_bracket(league_id)
    return jsonify({"bracket": bracket.to_dict() if bracket else None})


@bp.route("/<string:league_id>/bracket", methods=["DELETE"])
@login_required
def clear_bracket(league_id: str) -> Any:
    """Delete all matches so the bracket can be generated again."""
    deleted = TournamentService.clear_bracket(league_id, g.user["uid"])
    return jsonify({"status": "success", "deleted": deleted})


@bp.route("/<string:league_id>/standings", methods=["GET"])
@login_required
def view_standings(league_id: str) -> Any:
    """Return the ranked standings of the league's active members."""
    standings = TournamentService.get_standings(league_id)
    return jsonify({"standings": standings_payload(standings)})


@bp.route(
    "/<string:league_id>/matches/<int:round_number>/<int:match_number>/start",
    methods=["POST"],
)
@login_required
def start_match(league_id: str, round_number: int, match_number: int) -> Any:
    """Mark a match as in progress."""
    match = TournamentService.start_match(
        league_id, round_number, match_number, g.user["uid"]
    )
    return jsonify({"status": "success", "match": match.to_dict()})


@bp.route(
    "/<string:league_id>/matches/<int:round_number>/<int:match_number>/result",
    methods=["POST"],
)
@login_required
def record_result(league_id: str, round_number: int, match_number: int) -> Any:
    """Record the winner and scores of a match."""
    form = MatchResultForm()
    if not form.validate_on_submit():
        raise form_error(form)
    match = TournamentService.record_match_result(
        league_id,
        round_number,
        match_number,
        g.user["uid"],
        winner_id=form.winner_id.data,
        player1_score=form.player1_score.data,
        player2_score=form.player2_score.data,
    )
    return jsonify({"status": "success", "match": match.to_dict()})


@bp.route(
    "/<string:league_id>/matches/<int:round_number>/<int:match_number>/players",
    methods=["POST"],
)
@login_required
def assign_players(league_id: str, round_number: int, match_number: int) -> Any:
    """Fill the empty player slots of a later-round match."""
    form = AssignPlayersForm()
    if not form.validate_on_submit():
        raise form_error(form)
    match = TournamentService.assign_match_players(
        league_id,
        round_number,
        match_number,
        g.user["uid"],
        player1_id=form.player1_id.data or None,
        player2_id=form.player2_id.data or None,
    )
    return jsonify({"status": "success", "match": match.to_dict()})


@bp.route("/<string:league_id>/demo", methods=["POST"])
@login_required
def seed_demo(league_id: str) -> Any:
    """Seed demo members and a finished bracket (development only)."""
    if not current_app.config.get("DEMO_DATA_ENABLED"):
        raise NotFoundError("Demo data is disabled.")
    matches = seed_demo_tournament(firestore.client(), league_id, g.user["uid"])
    return jsonify({"status": "success", "matchCount": len(matches)}), 201
