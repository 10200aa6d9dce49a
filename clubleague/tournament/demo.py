"""Sample data for trying out the bracket screens."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from firebase_admin import firestore

from clubleague.core.constants import (
    FORMAT_SINGLE_ELIMINATION,
    MATCHES_COLLECTION,
    MEMBER_STATUS_ACTIVE,
    MEMBERS_COLLECTION,
    ROLE_MEMBER,
)
from clubleague.errors import AlreadyGeneratedError
from clubleague.league.utils import (
    get_league_or_404,
    member_document_id,
    require_league_manager,
    require_user,
)

from .bracket import plan_single_elimination
from .models import Match, MatchResult, MatchStatus
from .utils import league_matches_query

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

DEMO_PLAYERS = [
    ("demo_user_1", "Alice"),
    ("demo_user_2", "Bob"),
    ("demo_user_3", "Charlie"),
    ("demo_user_4", "Diana"),
    ("demo_user_5", "Eve"),
    ("demo_user_6", "Frank"),
    ("demo_user_7", "Grace"),
    ("demo_user_8", "Henry"),
]

# (round, match number) -> (player1 index, player2 index, winner index, scores)
DEMO_RESULTS = {
    (1, 1): (0, 1, 0, (3, 1)),
    (1, 2): (2, 3, 3, (0, 2)),
    (1, 3): (4, 5, 4, (5, 3)),
    (1, 4): (6, 7, 7, (1, 4)),
    (2, 1): (0, 3, 0, (4, 2)),
    (2, 2): (4, 7, 4, (3, 1)),
    (3, 1): (0, 4, 0, (5, 3)),
}


def build_demo_matches(league_id: str) -> list[Match]:
    """A fully played 8-player bracket."""
    player_ids = [uid for uid, _ in DEMO_PLAYERS]
    matches = plan_single_elimination(league_id, player_ids)
    for match in matches:
        p1, p2, winner, (score1, score2) = DEMO_RESULTS[(match.round, match.match_number)]
        match.player1_id = player_ids[p1]
        match.player2_id = player_ids[p2]
        match.status = MatchStatus.COMPLETED
        match.result = MatchResult(player_ids[winner], score1, score2)
    return matches


def seed_demo_tournament(
    db: Client, league_id: str, user_id: str
) -> list[Match]:
    """Fill a league with eight demo members and a finished bracket."""
    require_user(user_id)
    league_ref, league_data = get_league_or_404(db, league_id)
    require_league_manager(
        league_data, user_id, "Only league owners and admins can add demo data."
    )

    if league_data.get("tournamentFormat") != FORMAT_SINGLE_ELIMINATION:
        league_ref.update(
            {
                "tournamentFormat": FORMAT_SINGLE_ELIMINATION,
                "numberOfRounds": 3,
                "maxParticipants": len(DEMO_PLAYERS),
            }
        )

    existing = league_matches_query(db, league_id).limit(1).stream()
    if league_data.get("bracketGenerated") or any(True for _ in existing):
        raise AlreadyGeneratedError(
            "Matches already exist for this tournament. Delete existing matches first."
        )

    batch = db.batch()
    added = 0
    for uid, name in DEMO_PLAYERS:
        member_id = member_document_id(league_id, uid)
        member_ref = db.collection(MEMBERS_COLLECTION).document(member_id)
        if member_ref.get().exists:
            continue
        batch.set(
            member_ref,
            {
                "id": member_id,
                "leagueId": league_id,
                "userId": uid,
                "role": ROLE_MEMBER,
                "status": MEMBER_STATUS_ACTIVE,
                "displayName": name,
                "username": name.lower(),
                "joinedAt": firestore.SERVER_TIMESTAMP,
                "addedBy": user_id,
            },
        )
        added += 1

    matches = build_demo_matches(league_id)
    for match in matches:
        payload = match.to_firestore()
        payload["createdAt"] = firestore.SERVER_TIMESTAMP
        payload["completedAt"] = firestore.SERVER_TIMESTAMP
        batch.set(db.collection(MATCHES_COLLECTION).document(match.id), payload)

    batch.update(
        league_ref,
        {
            "bracketGenerated": True,
            "memberCount": firestore.Increment(added),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
    )
    batch.commit()
    logger.info(
        f"Demo tournament seeded for league {league_id}: "
        f"{added} members, {len(matches)} matches"
    )
    return matches
