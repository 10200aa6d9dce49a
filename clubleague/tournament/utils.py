"""Utility functions for reading brackets and computing standings."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from clubleague.core.constants import MATCHES_COLLECTION

from .bracket import count_rounds
from .models import Bracket, Match, MatchStatus, Participant, Standing

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.query import Query


def league_matches_query(
    db: Client, league_id: str, status: Optional[MatchStatus] = None
) -> Query:
    """Query for the match documents of a league, optionally by status."""
    query = db.collection(MATCHES_COLLECTION).where(
        filter=firestore.FieldFilter("leagueId", "==", league_id)
    )
    if status is not None:
        query = query.where(filter=firestore.FieldFilter("status", "==", status.value))
    return query


def fetch_league_matches(
    db: Client, league_id: str, status: Optional[MatchStatus] = None
) -> list[Match]:
    """Fetch and decode every match document associated with the league."""
    matches = []
    for doc in league_matches_query(db, league_id, status).stream():
        data = doc.to_dict()
        if not data:
            continue
        matches.append(Match.from_firestore(data, doc.id))
    return matches


def build_bracket(matches: Iterable[Match]) -> Optional[Bracket]:
    """Assemble the bracket view of a league's matches.

    Returns ``None`` when there are no matches, i.e. the bracket was never
    generated. The current round is the lowest round that still has an
    unfinished match; once everything is complete it is the last round.
    """
    ordered = sorted(matches, key=lambda m: (m.round, m.match_number))
    if not ordered:
        return None

    rounds = count_rounds(ordered)
    current_round = min(
        (m.round for m in ordered if m.status != MatchStatus.COMPLETED),
        default=rounds,
    )
    return Bracket(matches=ordered, rounds=rounds, current_round=current_round or 1)


def compute_standings(
    participants: Iterable[Participant], matches: Iterable[Match]
) -> list[Standing]:
    """Rank participants by wins, then by win rate.

    Only completed matches count. Participants who never played are listed
    with zero wins, zero losses and a 0% win rate.
    """
    completed = [m for m in matches if m.is_completed and m.result is not None]

    standings = []
    for participant in participants:
        uid = participant.user_id
        wins = sum(1 for m in completed if m.result.winner_id == uid)
        losses = sum(
            1
            for m in completed
            if uid in (m.player1_id, m.player2_id) and m.result.winner_id != uid
        )
        standings.append(Standing(participant=participant, wins=wins, losses=losses))

    # Stable sort: ties keep the order the participants were given in
    standings.sort(key=lambda s: (s.wins, s.win_rate), reverse=True)
    return standings


def standings_payload(standings: Iterable[Standing]) -> list[dict[str, Any]]:
    """Serialize standings for API responses, with 1-based ranks."""
    return [
        {**standing.to_dict(), "rank": position}
        for position, standing in enumerate(standings, start=1)
    ]
