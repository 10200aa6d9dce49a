"""Resolve the pool of players eligible for a league's tournament."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from clubleague.core.constants import MEMBER_STATUS_ACTIVE, MEMBERS_COLLECTION
from clubleague.errors import ValidationError

from .models import Participant

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.query import Query
    from google.cloud.firestore_v1.transaction import Transaction


def active_members_query(db: Client, league_id: str) -> Query:
    """Query for the active member documents of a league."""
    return (
        db.collection(MEMBERS_COLLECTION)
        .where(filter=firestore.FieldFilter("leagueId", "==", league_id))
        .where(filter=firestore.FieldFilter("status", "==", MEMBER_STATUS_ACTIVE))
    )


def get_active_participants(
    db: Client, league_id: str, transaction: Optional[Transaction] = None
) -> list[Participant]:
    """Return the active members of a league, in no particular order.

    Reads inside ``transaction`` when one is given. Storage errors propagate.
    """
    if not league_id:
        raise ValidationError("Missing league id.")

    query = active_members_query(db, league_id)
    docs: Any = transaction.get(query) if transaction is not None else query.stream()

    participants = []
    for doc in docs:
        data = doc.to_dict()
        if not data or not data.get("userId"):
            continue
        participants.append(Participant.from_member({**data, "id": doc.id}))
    return participants
