"""Data models for the tournament blueprint."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

from clubleague.core.constants import MEMBER_STATUS_ACTIVE

_MATCH_ID_PATTERN = re.compile(r"^(?P<league>.+)_r(?P<round>\d+)_m(?P<number>\d+)$")


class MatchStatus(str, enum.Enum):
    """Lifecycle of a match. ``completed`` is terminal."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MatchKey(NamedTuple):
    """Natural key of a match inside a league's bracket."""

    league_id: str
    round: int
    match_number: int

    @property
    def document_id(self) -> str:
        """Encode the key as the Firestore document id."""
        return f"{self.league_id}_r{self.round}_m{self.match_number}"

    @classmethod
    def parse(cls, document_id: str) -> MatchKey:
        """Decode a Firestore document id back into a key."""
        found = _MATCH_ID_PATTERN.match(document_id or "")
        if not found:
            raise ValueError(f"Not a match document id: {document_id!r}")
        return cls(
            found.group("league"), int(found.group("round")), int(found.group("number"))
        )


@dataclass
class MatchResult:
    """Outcome of a completed match, matching Firestore structure."""

    winner_id: str
    player1_score: Optional[float] = None
    player2_score: Optional[float] = None

    def to_firestore(self) -> dict[str, Any]:
        data: dict[str, Any] = {"winnerId": self.winner_id}
        if self.player1_score is not None:
            data["player1Score"] = self.player1_score
        if self.player2_score is not None:
            data["player2Score"] = self.player2_score
        return data

    @classmethod
    def from_firestore(cls, data: dict[str, Any] | None) -> Optional[MatchResult]:
        if not data or not data.get("winnerId"):
            return None
        return cls(
            winner_id=data["winnerId"],
            player1_score=data.get("player1Score"),
            player2_score=data.get("player2Score"),
        )


@dataclass
class Match:
    """A single bracket match.

    ``player2_id`` is ``None`` both for a first-round bye and for a later-round
    slot that is waiting on the winner of an earlier match.
    """

    league_id: str
    round: int
    match_number: int
    player1_id: Optional[str] = None
    player2_id: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING
    result: Optional[MatchResult] = None

    @property
    def key(self) -> MatchKey:
        return MatchKey(self.league_id, self.round, self.match_number)

    @property
    def id(self) -> str:
        return self.key.document_id

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def is_bye(self) -> bool:
        """True for a first-round match that never had an opponent."""
        return (
            self.round == 1
            and self.player2_id is None
            and self.player1_id is not None
            and self.is_completed
        )

    @property
    def participant_ids(self) -> list[str]:
        return [pid for pid in (self.player1_id, self.player2_id) if pid]

    def to_firestore(self) -> dict[str, Any]:
        """Serialize to the Firestore document shape (without timestamps)."""
        data: dict[str, Any] = {
            "id": self.id,
            "leagueId": self.league_id,
            "round": self.round,
            "matchNumber": self.match_number,
            "player1Id": self.player1_id,
            "player2Id": self.player2_id,
            "status": self.status.value,
        }
        if self.result is not None:
            data["result"] = self.result.to_firestore()
        return data

    @classmethod
    def from_firestore(cls, data: dict[str, Any], doc_id: str | None = None) -> Match:
        """Build a match from a Firestore document, falling back to its id for the key."""
        key = None
        if doc_id and (
            "leagueId" not in data or "round" not in data or "matchNumber" not in data
        ):
            key = MatchKey.parse(doc_id)
        try:
            status = MatchStatus(data.get("status", MatchStatus.PENDING.value))
        except ValueError:
            status = MatchStatus.PENDING
        return cls(
            league_id=data.get("leagueId") or (key.league_id if key else ""),
            round=int(data.get("round") or (key.round if key else 0)),
            match_number=int(
                data.get("matchNumber") or (key.match_number if key else 0)
            ),
            player1_id=data.get("player1Id"),
            player2_id=data.get("player2Id"),
            status=status,
            result=MatchResult.from_firestore(data.get("result")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        data = self.to_firestore()
        data["isBye"] = self.is_bye
        return data


@dataclass
class Participant:
    """A league member eligible for tournament play."""

    user_id: str
    display_name: Optional[str] = None
    status: str = MEMBER_STATUS_ACTIVE
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.display_name or self.user_id

    @classmethod
    def from_member(cls, data: dict[str, Any]) -> Participant:
        return cls(
            user_id=data["userId"],
            display_name=data.get("displayName"),
            status=data.get("status", MEMBER_STATUS_ACTIVE),
            data=dict(data),
        )


@dataclass
class Bracket:
    """Derived view of every match in a league plus round metadata."""

    matches: list[Match]
    rounds: int
    current_round: int

    def round_matches(self, round_number: int) -> list[Match]:
        return [m for m in self.matches if m.round == round_number]

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "rounds": self.rounds,
            "currentRound": self.current_round,
        }


@dataclass
class Standing:
    """Win/loss record of one participant."""

    participant: Participant
    wins: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        played = self.wins + self.losses
        return (self.wins / played) * 100 if played > 0 else 0

    def to_dict(self) -> dict[str, Any]:
        """The member record augmented with wins, losses and winRate."""
        return {
            **self.participant.data,
            "userId": self.participant.user_id,
            "displayName": self.participant.name,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
        }
