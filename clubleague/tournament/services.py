"""Service layer for tournament business logic."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from clubleague.core.constants import (
    BRACKET_FORMATS,
    FIRESTORE_WRITE_LIMIT,
    FORMAT_SINGLE_ELIMINATION,
    MATCHES_COLLECTION,
    MEMBER_STATUS_ACTIVE,
    MEMBERS_COLLECTION,
    MIN_PARTICIPANTS,
)
from clubleague.errors import (
    AlreadyGeneratedError,
    InsufficientParticipantsError,
    MatchNotFoundError,
    MatchStateError,
    UnsupportedFormatError,
    ValidationError,
)
from clubleague.league.services import delete_by_league
from clubleague.league.utils import (
    get_league_or_404,
    member_document_id,
    require_league_manager,
    require_user,
)

from .bracket import plan_single_elimination, seed_participants
from .models import Bracket, Match, MatchKey, MatchResult, MatchStatus, Standing
from .participants import get_active_participants
from .utils import build_bracket, compute_standings, fetch_league_matches, league_matches_query

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

MANAGER_ONLY_GENERATE = "Only league owners and admins can generate matches."
MANAGER_ONLY_MATCHES = "Only league owners and admins can update matches."


def _match_ref(db: Client, key: MatchKey) -> DocumentReference:
    return db.collection(MATCHES_COLLECTION).document(key.document_id)


def _check_bracket_format(league_data: dict[str, Any]) -> None:
    tournament_format = league_data.get("tournamentFormat")
    if tournament_format not in BRACKET_FORMATS:
        raise UnsupportedFormatError()
    if tournament_format != FORMAT_SINGLE_ELIMINATION:
        raise UnsupportedFormatError(
            "Double elimination brackets are not supported yet."
        )


def _generate_bracket_in_transaction(
    transaction: Transaction,
    db: Client,
    league_id: str,
    requesting_user_id: str,
    rng: Optional[random.Random],
) -> list[Match]:
    """Check every precondition and write the whole bracket in one commit.

    The league's ``bracketGenerated`` marker is read and set inside the same
    transaction, so two concurrent calls cannot both write a bracket.
    """
    league_ref, league_data = get_league_or_404(db, league_id, transaction=transaction)
    require_league_manager(league_data, requesting_user_id, MANAGER_ONLY_GENERATE)
    _check_bracket_format(league_data)

    if league_data.get("bracketGenerated"):
        raise AlreadyGeneratedError()
    existing = transaction.get(league_matches_query(db, league_id).limit(1))
    if any(True for _ in existing):
        raise AlreadyGeneratedError()

    participants = get_active_participants(db, league_id, transaction=transaction)
    if len(participants) < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError()

    seeded = seed_participants([p.user_id for p in participants], rng)
    matches = plan_single_elimination(league_id, seeded)
    # One write per match plus the league marker
    if len(matches) + 1 > FIRESTORE_WRITE_LIMIT:
        raise ValidationError("Too many participants to generate a bracket at once.")

    for match in matches:
        payload = match.to_firestore()
        payload["createdAt"] = firestore.SERVER_TIMESTAMP
        if match.is_completed:
            payload["completedAt"] = firestore.SERVER_TIMESTAMP
        transaction.set(_match_ref(db, match.key), payload)

    transaction.update(
        league_ref,
        {
            "bracketGenerated": True,
            "bracketGeneratedAt": firestore.SERVER_TIMESTAMP,
            "bracketGeneratedBy": requesting_user_id,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
    )
    return matches


def _load_match(
    transaction: Transaction, db: Client, key: MatchKey
) -> tuple[DocumentReference, Match]:
    ref = _match_ref(db, key)
    doc = cast("DocumentSnapshot", ref.get(transaction=transaction))
    if not doc.exists:
        raise MatchNotFoundError()
    return ref, Match.from_firestore(doc.to_dict() or {}, doc.id)


def _start_match_in_transaction(
    transaction: Transaction, db: Client, key: MatchKey, requesting_user_id: str
) -> Match:
    _, league_data = get_league_or_404(db, key.league_id, transaction=transaction)
    require_league_manager(league_data, requesting_user_id, MANAGER_ONLY_MATCHES)
    ref, match = _load_match(transaction, db, key)

    if match.status != MatchStatus.PENDING:
        raise MatchStateError("Only pending matches can be started.")
    if not (match.player1_id and match.player2_id):
        raise MatchStateError("Both players must be assigned before the match starts.")

    match.status = MatchStatus.IN_PROGRESS
    transaction.update(
        ref,
        {"status": match.status.value, "startedAt": firestore.SERVER_TIMESTAMP},
    )
    return match


def _record_result_in_transaction(
    transaction: Transaction,
    db: Client,
    key: MatchKey,
    requesting_user_id: str,
    result: MatchResult,
) -> Match:
    _, league_data = get_league_or_404(db, key.league_id, transaction=transaction)
    require_league_manager(league_data, requesting_user_id, MANAGER_ONLY_MATCHES)
    ref, match = _load_match(transaction, db, key)

    if match.is_completed:
        raise MatchStateError("This match has already been completed.")
    if match.round > 1 and len(match.participant_ids) == 1:
        # Walkover: the round before had an odd number of winners
        if result.winner_id not in match.participant_ids:
            raise ValidationError("The winner must be one of the match's players.")
        result = MatchResult(result.winner_id)
    elif not (match.player1_id and match.player2_id):
        raise MatchStateError(
            "Both players must be assigned before recording a result."
        )
    elif result.winner_id not in (match.player1_id, match.player2_id):
        raise ValidationError("The winner must be one of the match's players.")

    match.status = MatchStatus.COMPLETED
    match.result = result
    transaction.update(
        ref,
        {
            "status": match.status.value,
            "result": result.to_firestore(),
            "completedAt": firestore.SERVER_TIMESTAMP,
        },
    )
    return match


def _assign_players_in_transaction(
    transaction: Transaction,
    db: Client,
    key: MatchKey,
    requesting_user_id: str,
    slots: dict[str, str],
) -> Match:
    _, league_data = get_league_or_404(db, key.league_id, transaction=transaction)
    require_league_manager(league_data, requesting_user_id, MANAGER_ONLY_MATCHES)
    ref, match = _load_match(transaction, db, key)

    if match.round == 1:
        raise MatchStateError("First-round pairings are fixed once the bracket exists.")
    if match.status != MatchStatus.PENDING:
        raise MatchStateError("Players can only be assigned to pending matches.")

    round_query = league_matches_query(db, key.league_id).where(
        filter=firestore.FieldFilter("round", "==", key.round)
    )
    placed: set[str] = set()
    for doc in transaction.get(round_query):
        if doc.id != key.document_id:
            other = Match.from_firestore(doc.to_dict() or {}, doc.id)
            placed.update(other.participant_ids)

    for field_name, user_id in slots.items():
        if getattr(match, field_name):
            raise MatchStateError("That player slot is already filled.")
        if user_id in placed:
            raise ValidationError(
                f"{user_id} already plays in another round {key.round} match."
            )
        member_ref = db.collection(MEMBERS_COLLECTION).document(
            member_document_id(key.league_id, user_id)
        )
        member_doc = cast("DocumentSnapshot", member_ref.get(transaction=transaction))
        member = member_doc.to_dict() if member_doc.exists else None
        if not member or member.get("status") != MEMBER_STATUS_ACTIVE:
            raise ValidationError(f"{user_id} is not an active participant.")
        setattr(match, field_name, user_id)

    if match.player1_id and match.player1_id == match.player2_id:
        raise ValidationError("A player cannot face themselves.")

    transaction.update(
        ref,
        {
            "player1Id": match.player1_id,
            "player2Id": match.player2_id,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
    )
    return match


class TournamentService:
    """Handles business logic and data access for league tournaments."""

    @staticmethod
    def generate_bracket(
        league_id: str,
        requesting_user_id: str,
        db: Client | None = None,
        rng: Optional[random.Random] = None,
    ) -> list[Match]:
        """Seed the active members and write a single-elimination bracket.

        Raises AuthenticationError, LeagueNotFoundError, UnauthorizedError,
        UnsupportedFormatError, AlreadyGeneratedError or
        InsufficientParticipantsError when a precondition fails. Nothing is
        written unless every check passes.
        """
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        if not league_id:
            raise ValidationError("Missing league id.")

        transaction = db.transaction()
        matches = firestore.transactional(_generate_bracket_in_transaction)(
            transaction, db, league_id, requesting_user_id, rng
        )
        byes = sum(1 for m in matches if m.is_bye)
        rounds = max(m.round for m in matches)
        logger.info(
            f"Bracket generated for league {league_id} by {requesting_user_id}: "
            f"{len(matches)} matches, {rounds} rounds, {byes} byes"
        )
        return matches

    @staticmethod
    def get_bracket(league_id: str, db: Client | None = None) -> Optional[Bracket]:
        """Rebuild the bracket from stored matches; None if none were generated."""
        if db is None:
            db = firestore.client()
        if not league_id:
            raise ValidationError("Missing league id.")
        return build_bracket(fetch_league_matches(db, league_id))

    @staticmethod
    def get_standings(league_id: str, db: Client | None = None) -> list[Standing]:
        """Rank the league's active members by completed-match record."""
        if db is None:
            db = firestore.client()
        participants = get_active_participants(db, league_id)
        completed = fetch_league_matches(db, league_id, MatchStatus.COMPLETED)
        return compute_standings(participants, completed)

    @staticmethod
    def start_match(
        league_id: str,
        round_number: int,
        match_number: int,
        requesting_user_id: str,
        db: Client | None = None,
    ) -> Match:
        """Move a pending match with two players to in progress."""
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        key = MatchKey(league_id, round_number, match_number)
        transaction = db.transaction()
        match = firestore.transactional(_start_match_in_transaction)(
            transaction, db, key, requesting_user_id
        )
        logger.info(f"Match {key.document_id} started by {requesting_user_id}")
        return match

    @staticmethod
    def record_match_result(  # noqa: PLR0913
        league_id: str,
        round_number: int,
        match_number: int,
        requesting_user_id: str,
        winner_id: str,
        player1_score: Optional[float] = None,
        player2_score: Optional[float] = None,
        db: Client | None = None,
    ) -> Match:
        """Complete a match with its winner and optional scores.

        The winner is not copied into any later-round match; filling those
        slots is done through ``assign_match_players``. A later-round match
        holding a single player completes as a walkover for that player, and
        any scores are dropped.
        """
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        if not winner_id:
            raise ValidationError("A winner is required.")
        for score in (player1_score, player2_score):
            if score is not None and score < 0:
                raise ValidationError("Scores cannot be negative.")

        key = MatchKey(league_id, round_number, match_number)
        result = MatchResult(winner_id, player1_score, player2_score)
        transaction = db.transaction()
        match = firestore.transactional(_record_result_in_transaction)(
            transaction, db, key, requesting_user_id, result
        )
        logger.info(
            f"Result recorded for match {key.document_id} by {requesting_user_id}: "
            f"winner {winner_id}"
        )
        return match

    @staticmethod
    def assign_match_players(  # noqa: PLR0913
        league_id: str,
        round_number: int,
        match_number: int,
        requesting_user_id: str,
        player1_id: Optional[str] = None,
        player2_id: Optional[str] = None,
        db: Client | None = None,
    ) -> Match:
        """Fill empty player slots of a later-round match by hand."""
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        slots = {
            name: value
            for name, value in (("player1_id", player1_id), ("player2_id", player2_id))
            if value
        }
        if not slots:
            raise ValidationError("Choose at least one player to assign.")
        if player1_id and player1_id == player2_id:
            raise ValidationError("A player cannot face themselves.")

        key = MatchKey(league_id, round_number, match_number)
        transaction = db.transaction()
        match = firestore.transactional(_assign_players_in_transaction)(
            transaction, db, key, requesting_user_id, slots
        )
        logger.info(
            f"Players assigned to match {key.document_id} by {requesting_user_id}"
        )
        return match

    @staticmethod
    def clear_bracket(
        league_id: str, requesting_user_id: str, db: Client | None = None
    ) -> int:
        """Delete every match of the league so the bracket can be regenerated."""
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        league_ref, league_data = get_league_or_404(db, league_id)
        require_league_manager(
            league_data,
            requesting_user_id,
            "Only league owners and admins can delete matches.",
        )

        deleted = delete_by_league(db, MATCHES_COLLECTION, league_id)
        league_ref.update(
            {"bracketGenerated": False, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        logger.info(
            f"Bracket cleared for league {league_id} by {requesting_user_id}: "
            f"{deleted} matches deleted"
        )
        return deleted
