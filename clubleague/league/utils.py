"""Utility functions for league management."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any, Optional, cast

from clubleague.core.constants import (
    DEFAULT_DISPLAY_NAME,
    INVITE_CODE_ALPHABET,
    INVITE_CODE_LENGTH,
    LEAGUES_COLLECTION,
)
from clubleague.errors import AuthenticationError, LeagueNotFoundError, UnauthorizedError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def member_document_id(league_id: str, user_id: str) -> str:
    """Deterministic member key, one membership per user and league."""
    return f"{league_id}_{user_id}"


def invite_document_id(league_id: str, email_lower: str) -> str:
    return f"{league_id}_{email_lower}"


def generate_invite_code() -> str:
    """Random join code without look-alike characters (no I, O, 0, 1)."""
    return "".join(
        secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH)
    )


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def resolve_display_name(user_data: Optional[dict[str, Any]]) -> str:
    """Pick displayName, then username, then the email prefix, then a default."""
    if not user_data:
        return DEFAULT_DISPLAY_NAME
    email = user_data.get("email") or ""
    return (
        user_data.get("displayName")
        or user_data.get("username")
        or email.split("@")[0]
        or DEFAULT_DISPLAY_NAME
    )


def require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise AuthenticationError()
    return user_id


def get_league_or_404(
    db: Client, league_id: str, transaction: Optional[Transaction] = None
) -> tuple[DocumentReference, dict[str, Any]]:
    """Fetch a league document, raising ``LeagueNotFoundError`` if it is missing."""
    if not league_id:
        raise LeagueNotFoundError()
    ref = db.collection(LEAGUES_COLLECTION).document(league_id)
    doc = cast("DocumentSnapshot", ref.get(transaction=transaction))
    if not doc.exists:
        raise LeagueNotFoundError()
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return ref, data


def is_league_owner(league_data: dict[str, Any], user_id: Optional[str]) -> bool:
    return bool(user_id) and league_data.get("ownerId") == user_id


def is_league_manager(league_data: dict[str, Any], user_id: Optional[str]) -> bool:
    """True if the user owns the league or is listed among its admins."""
    if not user_id:
        return False
    admins = league_data.get("admins")
    return is_league_owner(league_data, user_id) or (
        isinstance(admins, list) and user_id in admins
    )


def require_league_manager(
    league_data: dict[str, Any],
    user_id: Optional[str],
    message: str = "Only league owners and admins can do that.",
) -> None:
    if not is_league_manager(league_data, user_id):
        raise UnauthorizedError(message)
