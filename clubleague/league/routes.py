"""Routes for the league blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, g, jsonify

from clubleague.auth.decorators import login_required
from clubleague.utils import form_error

from . import bp
from .forms import AddMemberForm, JoinByCodeForm, LeagueForm, LeagueUpdateForm
from .services import LeagueService


@bp.route("/", methods=["POST"])
@login_required
def create_league() -> Any:
    """Create a new league owned by the current user."""
    form = LeagueForm()
    if not form.validate_on_submit():
        raise form_error(form)
    result = LeagueService.create_league(form.data, g.user["uid"])
    return jsonify({"status": "success", **result}), 201


@bp.route("/<string:league_id>", methods=["GET"])
@login_required
def view_league(league_id: str) -> Any:
    """Return a league document."""
    return jsonify({"league": LeagueService.get_league(league_id)})


@bp.route("/<string:league_id>", methods=["PATCH"])
@login_required
def edit_league(league_id: str) -> Any:
    """Edit league details."""
    form = LeagueUpdateForm()
    if not form.validate_on_submit():
        raise form_error(form)
    league = LeagueService.update_league(league_id, g.user["uid"], form.data)
    return jsonify({"status": "success", "league": league})


@bp.route("/<string:league_id>", methods=["DELETE"])
@login_required
def delete_league(league_id: str) -> Any:
    """Delete a league and everything that belongs to it."""
    LeagueService.delete_league(league_id, g.user["uid"])
    current_app.logger.info(f"League {league_id} deleted.")
    return jsonify({"status": "success"})


@bp.route("/<string:league_id>/join", methods=["POST"])
@login_required
def join_league(league_id: str) -> Any:
    """Join a league as the current user."""
    member = LeagueService.join_league(league_id, g.user["uid"])
    return jsonify({"status": "success", "memberId": member["id"]}), 201


@bp.route("/join", methods=["POST"])
@login_required
def join_by_code() -> Any:
    """Join a league using its invite code."""
    form = JoinByCodeForm()
    if not form.validate_on_submit():
        raise form_error(form)
    league_id = LeagueService.join_league_by_code(form.invite_code.data, g.user["uid"])
    return jsonify({"status": "success", "leagueId": league_id})


@bp.route("/<string:league_id>/members", methods=["GET"])
@login_required
def list_members(league_id: str) -> Any:
    """List league members."""
    return jsonify({"members": LeagueService.list_members(league_id, g.user["uid"])})


@bp.route("/<string:league_id>/members", methods=["POST"])
@login_required
def add_member(league_id: str) -> Any:
    """Add a member by email, or invite them if they have no profile yet."""
    form = AddMemberForm()
    if not form.validate_on_submit():
        raise form_error(form)
    result = LeagueService.add_member_by_email(
        league_id, form.email.data, g.user["uid"], role=form.role.data
    )
    return jsonify({"status": "success", **result}), 201


@bp.route("/<string:league_id>/members/<string:user_id>", methods=["DELETE"])
@login_required
def remove_member(league_id: str, user_id: str) -> Any:
    """Remove a member, or leave the league when removing yourself."""
    LeagueService.remove_member(league_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:league_id>/invites", methods=["GET"])
@login_required
def list_invites(league_id: str) -> Any:
    """List pending and answered invites of a league."""
    return jsonify({"invites": LeagueService.list_invites(league_id, g.user["uid"])})
