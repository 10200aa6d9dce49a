"""Single-elimination bracket planning.

Everything here is pure: it turns a list of participant ids into the full set of
``Match`` records for a new tournament and never touches Firestore. Persisting
the plan is the job of ``TournamentService.generate_bracket``.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from typing import Optional

from clubleague.core.constants import (
    BYE_LOSER_SCORE,
    BYE_WINNER_SCORE,
    MIN_PARTICIPANTS,
)
from clubleague.errors import InsufficientParticipantsError

from .models import Match, MatchResult, MatchStatus


def seed_participants(
    participant_ids: Iterable[str], rng: Optional[random.Random] = None
) -> list[str]:
    """Return a uniformly random permutation of the participants.

    Seeding is deliberately blind to rankings or past results.
    """
    seeded = list(participant_ids)
    (rng or random.SystemRandom()).shuffle(seeded)
    return seeded


def _first_round(league_id: str, seeded_ids: Sequence[str]) -> list[Match]:
    """Pair seeds 1v2, 3v4, ... and give every leftover seed a bye."""
    pair_count = len(seeded_ids) // 2
    bye_count = len(seeded_ids) - 2 * pair_count

    matches = [
        Match(
            league_id=league_id,
            round=1,
            match_number=i + 1,
            player1_id=seeded_ids[2 * i],
            player2_id=seeded_ids[2 * i + 1],
            status=MatchStatus.PENDING,
        )
        for i in range(pair_count)
    ]

    for i in range(bye_count):
        player_id = seeded_ids[2 * pair_count + i]
        matches.append(
            Match(
                league_id=league_id,
                round=1,
                match_number=pair_count + i + 1,
                player1_id=player_id,
                player2_id=None,
                status=MatchStatus.COMPLETED,
                result=MatchResult(
                    winner_id=player_id,
                    player1_score=BYE_WINNER_SCORE,
                    player2_score=BYE_LOSER_SCORE,
                ),
            )
        )
    return matches


def _placeholder_rounds(league_id: str, advancing: int) -> list[Match]:
    """Create empty matches for every round after the first, down to the final."""
    matches: list[Match] = []
    round_number = 2
    while advancing > 1:
        # ceil(advancing / 2)
        advancing = (advancing + 1) // 2
        matches.extend(
            Match(league_id=league_id, round=round_number, match_number=i + 1)
            for i in range(advancing)
        )
        round_number += 1
    return matches


def plan_single_elimination(league_id: str, seeded_ids: Sequence[str]) -> list[Match]:
    """Lay out a complete single-elimination bracket for already seeded ids.

    Round 1 holds ``n // 2`` real pairings followed by the bye matches. Every
    later round holds ``ceil(previous / 2)`` empty matches until a single final
    remains, so the bracket has ``ceil(log2(n))`` rounds.
    """
    if len(seeded_ids) < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError()
    if len(set(seeded_ids)) != len(seeded_ids):
        raise ValueError("A participant can only be seeded once.")

    first_round = _first_round(league_id, seeded_ids)
    return first_round + _placeholder_rounds(league_id, len(first_round))


def count_rounds(matches: Iterable[Match]) -> int:
    """Highest round number across the matches, 0 for none."""
    return max((m.round for m in matches), default=0)
