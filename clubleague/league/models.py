"""Data models for the league blueprint."""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from clubleague.core.types import FirestoreDocument


class League(FirestoreDocument, total=False):
    """A league document in Firestore."""

    name: str
    sport: str
    ownerId: str
    admins: list[str]
    tournamentFormat: Optional[str]
    maxParticipants: Optional[int]
    numberOfRounds: Optional[int]
    inviteCode: str
    memberCount: int
    bracketGenerated: bool
    bracketGeneratedAt: Any


class Member(TypedDict, total=False):
    """A league membership, keyed ``{leagueId}_{userId}``."""

    id: str
    leagueId: str
    userId: str
    role: str  # owner/admin/member
    status: str  # active/invited/pending
    displayName: Optional[str]
    username: Optional[str]
    joinedAt: Any
    addedBy: str


class Invite(TypedDict, total=False):
    """A pending invitation for an email without a user profile."""

    id: str
    leagueId: str
    emailLower: str
    status: str  # pending/accepted/declined
    invitedBy: str
    createdAt: Any
