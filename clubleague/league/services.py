"""Service layer for league business logic."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from clubleague.core.constants import (
    FIRESTORE_BATCH_LIMIT,
    INVITE_STATUS_PENDING,
    INVITES_COLLECTION,
    LEAGUES_COLLECTION,
    MATCHES_COLLECTION,
    MEMBER_STATUS_ACTIVE,
    MEMBERS_COLLECTION,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_OWNER,
    TOURNAMENT_FORMATS,
    USERS_COLLECTION,
)
from clubleague.errors import (
    AlreadyMemberError,
    LeagueFullError,
    LeagueNotFoundError,
    UnauthorizedError,
    ValidationError,
)

from .models import Invite, League, Member
from .utils import (
    generate_invite_code,
    get_league_or_404,
    invite_document_id,
    is_league_manager,
    is_league_owner,
    member_document_id,
    normalize_email,
    require_league_manager,
    require_user,
    resolve_display_name,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

# Fields callers may change through update_league, mapped to Firestore names.
UPDATABLE_FIELDS = {
    "name": "name",
    "sport": "sport",
    "tournament_format": "tournamentFormat",
    "max_participants": "maxParticipants",
    "number_of_rounds": "numberOfRounds",
}


def _validate_format(tournament_format: Optional[str]) -> None:
    if tournament_format and tournament_format not in TOURNAMENT_FORMATS:
        raise ValidationError(f"Unknown tournament format: {tournament_format}.")


class LeagueService:
    """Handles business logic and data access for leagues and their members."""

    @staticmethod
    def create_league(
        data: dict[str, Any], owner_id: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Create a league owned by ``owner_id`` and return its id and invite code."""
        if db is None:
            db = firestore.client()
        require_user(owner_id)
        name = (data.get("name") or "").strip()
        sport = (data.get("sport") or "").strip()
        if not name or not sport:
            raise ValidationError("Missing name or sport.")
        _validate_format(data.get("tournament_format"))

        league_ref = db.collection(LEAGUES_COLLECTION).document()
        invite_code = generate_invite_code()
        owner_doc = db.collection(USERS_COLLECTION).document(owner_id).get()
        owner_data = owner_doc.to_dict() if owner_doc.exists else None

        batch = db.batch()
        batch.set(
            league_ref,
            {
                "name": name,
                "sport": sport,
                "visibility": "private",
                "ownerId": owner_id,
                "admins": [owner_id],
                "tournamentFormat": data.get("tournament_format") or None,
                "maxParticipants": data.get("max_participants"),
                "numberOfRounds": data.get("number_of_rounds"),
                "inviteCode": invite_code,
                "memberCount": 1,
                "bracketGenerated": False,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        member_id = member_document_id(league_ref.id, owner_id)
        batch.set(
            db.collection(MEMBERS_COLLECTION).document(member_id),
            {
                "id": member_id,
                "leagueId": league_ref.id,
                "userId": owner_id,
                "role": ROLE_OWNER,
                "status": MEMBER_STATUS_ACTIVE,
                "displayName": resolve_display_name(owner_data),
                "username": (owner_data or {}).get("username"),
                "joinedAt": firestore.SERVER_TIMESTAMP,
                "addedBy": owner_id,
            },
        )
        batch.commit()
        logger.info(f"League {league_ref.id} created by {owner_id}")
        return {"leagueId": league_ref.id, "inviteCode": invite_code}

    @staticmethod
    def get_league(league_id: str, db: Client | None = None) -> League:
        """Fetch a league document."""
        if db is None:
            db = firestore.client()
        _, data = get_league_or_404(db, league_id)
        return cast(League, data)

    @staticmethod
    def update_league(
        league_id: str,
        user_id: str,
        update_data: dict[str, Any],
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Update league details with an owner/admin check."""
        if db is None:
            db = firestore.client()
        require_user(user_id)
        ref, data = get_league_or_404(db, league_id)
        require_league_manager(
            data, user_id, "Only league owners and admins can edit the league."
        )

        updates = {
            UPDATABLE_FIELDS[key]: value
            for key, value in update_data.items()
            if key in UPDATABLE_FIELDS and value not in (None, "")
        }
        if not updates:
            return data

        new_format = updates.get("tournamentFormat")
        _validate_format(new_format)

        # Integrity check: don't allow a format change once a bracket exists
        if new_format and new_format != data.get("tournamentFormat"):
            existing = (
                db.collection(MATCHES_COLLECTION)
                .where(filter=firestore.FieldFilter("leagueId", "==", league_id))
                .limit(1)
                .stream()
            )
            if data.get("bracketGenerated") or any(True for _ in existing):
                raise ValidationError(
                    "The tournament format cannot change after matches were generated."
                )

        updates["updatedAt"] = firestore.SERVER_TIMESTAMP
        ref.update(updates)
        logger.info(f"League {league_id} updated by {user_id}: {sorted(updates)}")
        _, fresh = get_league_or_404(db, league_id)
        return fresh

    @staticmethod
    def delete_league(league_id: str, user_id: str, db: Client | None = None) -> None:
        """Delete a league along with its invites, members and matches."""
        if db is None:
            db = firestore.client()
        require_user(user_id)
        ref, data = get_league_or_404(db, league_id)
        if not is_league_owner(data, user_id):
            raise UnauthorizedError("Only the league owner can delete the league.")

        deleted = 0
        for collection in (INVITES_COLLECTION, MEMBERS_COLLECTION, MATCHES_COLLECTION):
            deleted += delete_by_league(db, collection, league_id)
        ref.delete()
        logger.info(
            f"League {league_id} deleted by {user_id} ({deleted} related documents)"
        )

    @staticmethod
    def join_league(
        league_id: str, user_id: str, db: Client | None = None
    ) -> Member:
        """Add the user to the league as an active member."""
        if db is None:
            db = firestore.client()
        require_user(user_id)
        league_ref, league_data = get_league_or_404(db, league_id)

        max_participants = league_data.get("maxParticipants")
        if max_participants:
            active = (
                db.collection(MEMBERS_COLLECTION)
                .where(filter=firestore.FieldFilter("leagueId", "==", league_id))
                .where(
                    filter=firestore.FieldFilter("status", "==", MEMBER_STATUS_ACTIVE)
                )
                .stream()
            )
            if sum(1 for _ in active) >= max_participants:
                raise LeagueFullError()

        member_id = member_document_id(league_id, user_id)
        member_ref = db.collection(MEMBERS_COLLECTION).document(member_id)
        if member_ref.get().exists:
            raise AlreadyMemberError()

        user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
        user_data = user_doc.to_dict() if user_doc.exists else None

        member: Member = {
            "id": member_id,
            "leagueId": league_id,
            "userId": user_id,
            "role": ROLE_MEMBER,
            "status": MEMBER_STATUS_ACTIVE,
            "displayName": resolve_display_name(user_data),
            "username": (user_data or {}).get("username"),
            "joinedAt": firestore.SERVER_TIMESTAMP,
            "addedBy": user_id,
        }
        batch = db.batch()
        batch.set(member_ref, member)
        batch.update(
            league_ref,
            {
                "memberCount": firestore.Increment(1),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        batch.commit()
        logger.info(f"User {user_id} joined league {league_id}")
        return member

    @staticmethod
    def join_league_by_code(
        invite_code: str, user_id: str, db: Client | None = None
    ) -> str:
        """Join the league that owns ``invite_code``; return its id."""
        if db is None:
            db = firestore.client()
        require_user(user_id)
        code = (invite_code or "").strip().upper()
        if not code:
            raise ValidationError("Missing invite code.")

        leagues = list(
            db.collection(LEAGUES_COLLECTION)
            .where(filter=firestore.FieldFilter("inviteCode", "==", code))
            .limit(1)
            .stream()
        )
        if not leagues:
            raise LeagueNotFoundError("No league found with that code.")

        league_id = leagues[0].id
        member_ref = db.collection(MEMBERS_COLLECTION).document(
            member_document_id(league_id, user_id)
        )
        if member_ref.get().exists:
            return league_id

        LeagueService.join_league(league_id, user_id, db=db)
        return league_id

    @staticmethod
    def add_member_by_email(
        league_id: str,
        email: str,
        requesting_user_id: str,
        role: str = ROLE_MEMBER,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Add a user by email, or leave a pending invite if they have no profile.

        Returns ``{"kind": "added", ...}`` or ``{"kind": "invited", ...}``.
        """
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        email_lower = normalize_email(email)
        if not email_lower:
            raise ValidationError("Email is empty.")
        if role not in (ROLE_MEMBER, ROLE_ADMIN):
            raise ValidationError(f"Unknown role: {role}.")

        league_ref, league_data = get_league_or_404(db, league_id)
        require_league_manager(
            league_data, requesting_user_id, "Only league owners and admins can add members."
        )

        user = LeagueService.resolve_user_by_email(email_lower, db=db)
        if user is None:
            invite_id = invite_document_id(league_id, email_lower)
            db.collection(INVITES_COLLECTION).document(invite_id).set(
                {
                    "id": invite_id,
                    "leagueId": league_id,
                    "emailLower": email_lower,
                    "status": INVITE_STATUS_PENDING,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                    "invitedBy": requesting_user_id,
                }
            )
            logger.info(f"Pending invite {invite_id} created by {requesting_user_id}")
            return {"kind": "invited", "inviteId": invite_id, "emailLower": email_lower}

        member_id = member_document_id(league_id, user["uid"])
        member_ref = db.collection(MEMBERS_COLLECTION).document(member_id)
        if member_ref.get().exists:
            return {"kind": "added", "memberId": member_id, "user": user}

        batch = db.batch()
        batch.set(
            member_ref,
            {
                "id": member_id,
                "leagueId": league_id,
                "userId": user["uid"],
                "role": role,
                "status": MEMBER_STATUS_ACTIVE,
                "displayName": user.get("displayName"),
                "joinedAt": firestore.SERVER_TIMESTAMP,
                "addedBy": requesting_user_id,
            },
        )
        league_updates: dict[str, Any] = {
            "memberCount": firestore.Increment(1),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        if role == ROLE_ADMIN:
            league_updates["admins"] = firestore.ArrayUnion([user["uid"]])
        batch.update(league_ref, league_updates)
        batch.commit()
        logger.info(f"User {user['uid']} added to league {league_id}")
        return {"kind": "added", "memberId": member_id, "user": user}

    @staticmethod
    def resolve_user_by_email(
        email: str, db: Client | None = None
    ) -> Optional[dict[str, Any]]:
        """Find a user profile by ``emailLower``, falling back to ``email``."""
        if db is None:
            db = firestore.client()
        email_lower = normalize_email(email)
        if not email_lower:
            return None

        users = db.collection(USERS_COLLECTION)
        for field in ("emailLower", "email"):
            docs = list(
                users.where(filter=firestore.FieldFilter(field, "==", email_lower))
                .limit(1)
                .stream()
            )
            if docs:
                data = docs[0].to_dict() or {}
                return {
                    "uid": docs[0].id,
                    "displayName": data.get("displayName") or resolve_display_name(data),
                    "email": data.get("email") or email_lower,
                }
        return None

    @staticmethod
    def list_members(
        league_id: str, requesting_user_id: str, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List every member record of a league, whatever its status.

        Only active members and league managers may see the roster.
        """
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        _, league_data = get_league_or_404(db, league_id)
        if not is_league_manager(league_data, requesting_user_id):
            member_doc = (
                db.collection(MEMBERS_COLLECTION)
                .document(member_document_id(league_id, requesting_user_id))
                .get()
            )
            member = member_doc.to_dict() if member_doc.exists else None
            if not member or member.get("status") != MEMBER_STATUS_ACTIVE:
                raise UnauthorizedError("Only league members can see the roster.")

        docs = (
            db.collection(MEMBERS_COLLECTION)
            .where(filter=firestore.FieldFilter("leagueId", "==", league_id))
            .stream()
        )
        return [{**(doc.to_dict() or {}), "id": doc.id} for doc in docs]

    @staticmethod
    def list_invites(
        league_id: str, requesting_user_id: str, db: Client | None = None
    ) -> list[Invite]:
        """List the invites of a league. Managers only, as invites carry emails."""
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        _, league_data = get_league_or_404(db, league_id)
        require_league_manager(
            league_data,
            requesting_user_id,
            "Only league owners and admins can see invites.",
        )
        docs = (
            db.collection(INVITES_COLLECTION)
            .where(filter=firestore.FieldFilter("leagueId", "==", league_id))
            .stream()
        )
        return [cast(Invite, {**(doc.to_dict() or {}), "id": doc.id}) for doc in docs]

    @staticmethod
    def remove_member(
        league_id: str,
        user_id: str,
        requesting_user_id: str,
        db: Client | None = None,
    ) -> None:
        """Remove a member. Managers may remove anyone but the owner; members may leave."""
        if db is None:
            db = firestore.client()
        require_user(requesting_user_id)
        league_ref, league_data = get_league_or_404(db, league_id)

        if user_id != requesting_user_id:
            require_league_manager(
                league_data,
                requesting_user_id,
                "Only league owners and admins can remove members.",
            )
        if is_league_owner(league_data, user_id):
            raise ValidationError("The league owner cannot be removed.")

        member_ref = db.collection(MEMBERS_COLLECTION).document(
            member_document_id(league_id, user_id)
        )
        if not member_ref.get().exists:
            return

        batch = db.batch()
        batch.delete(member_ref)
        batch.update(
            league_ref,
            {
                "memberCount": firestore.Increment(-1),
                "admins": firestore.ArrayRemove([user_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        batch.commit()
        logger.info(f"User {user_id} removed from league {league_id}")


def delete_by_league(
    db: Client, collection: str, league_id: str, chunk_size: int = FIRESTORE_BATCH_LIMIT
) -> int:
    """Delete every document of ``collection`` that belongs to the league, in chunks."""
    deleted = 0
    while True:
        docs = list(
            db.collection(collection)
            .where(filter=firestore.FieldFilter("leagueId", "==", league_id))
            .limit(chunk_size)
            .stream()
        )
        if not docs:
            break
        batch = db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()
        deleted += len(docs)
        if len(docs) < chunk_size:
            break
    return deleted
