"""Tests for TournamentService using mockfirestore."""

import random
import unittest

from clubleague.errors import (
    AlreadyGeneratedError,
    AuthenticationError,
    InsufficientParticipantsError,
    LeagueNotFoundError,
    MatchNotFoundError,
    MatchStateError,
    UnauthorizedError,
    UnsupportedFormatError,
    ValidationError,
)
from clubleague.tournament.models import MatchStatus
from clubleague.tournament.services import TournamentService
from clubleague.tournament.utils import standings_payload
from tests.mock_utils import MockFirestoreBuilder, patch_firestore, seed_league


def _stored_matches(db, league_id="league1"):
    return {
        doc.id: doc.to_dict()
        for doc in db.collection("matches").stream()
        if doc.to_dict().get("leagueId") == league_id
    }


class GenerateBracketTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestoreBuilder.build_db()
        patch_firestore(self, self.db)

    def _generate(self, user_id="owner"):
        return TournamentService.generate_bracket(
            "league1", user_id, db=self.db, rng=random.Random(7)
        )

    def test_eight_members(self) -> None:
        seed_league(self.db, member_ids=tuple(f"m{i}" for i in range(7)))
        matches = self._generate()

        self.assertEqual(len(matches), 7)
        stored = _stored_matches(self.db)
        self.assertEqual(len(stored), 7)
        self.assertEqual(sorted(stored), sorted(m.id for m in matches))
        self.assertEqual(sum(1 for d in stored.values() if d["round"] == 1), 4)
        self.assertEqual(sum(1 for d in stored.values() if d["round"] == 3), 1)
        self.assertTrue(all(d["status"] == "pending" for d in stored.values()))

        league = self.db.collection("leagues").document("league1").get().to_dict()
        self.assertTrue(league["bracketGenerated"])
        self.assertEqual(league["bracketGeneratedBy"], "owner")

    def test_seven_members_bye_is_stored_completed(self) -> None:
        seed_league(self.db, member_ids=tuple(f"m{i}" for i in range(6)))
        self._generate()

        stored = _stored_matches(self.db)
        bye = stored["league1_r1_m4"]
        self.assertIsNone(bye["player2Id"])
        self.assertEqual(bye["status"], "completed")
        self.assertEqual(bye["result"]["winnerId"], bye["player1Id"])
        self.assertIn("completedAt", bye)

    def test_only_active_members_are_seeded(self) -> None:
        seed_league(self.db, member_ids=("m1", "m2"))
        self.db.collection("members").document("league1_ghost").set(
            {"leagueId": "league1", "userId": "ghost", "status": "invited"}
        )
        matches = self._generate()
        seeded = {pid for m in matches for pid in m.participant_ids}
        self.assertEqual(seeded, {"owner", "m1", "m2"})

    def test_second_generation_fails(self) -> None:
        seed_league(self.db, member_ids=("m1", "m2", "m3"))
        self._generate()
        before = _stored_matches(self.db)

        with self.assertRaises(AlreadyGeneratedError):
            self._generate()
        self.assertEqual(_stored_matches(self.db), before)

    def test_generated_marker_blocks_generation(self) -> None:
        seed_league(self.db, member_ids=("m1", "m2"), bracketGenerated=True)
        with self.assertRaises(AlreadyGeneratedError):
            self._generate()
        self.assertEqual(_stored_matches(self.db), {})

    def test_existing_matches_block_generation(self) -> None:
        seed_league(self.db, member_ids=("m1",))
        self.db.collection("matches").document("league1_r1_m1").set(
            {"leagueId": "league1", "round": 1, "matchNumber": 1, "status": "pending"}
        )
        with self.assertRaises(AlreadyGeneratedError):
            self._generate()

    def test_admin_may_generate(self) -> None:
        seed_league(self.db, member_ids=("m1",), admins=["owner", "m1"])
        self.assertEqual(len(self._generate("m1")), 1)

    def test_plain_member_may_not(self) -> None:
        seed_league(self.db, member_ids=("m1", "m2"))
        with self.assertRaises(UnauthorizedError):
            self._generate("m1")
        self.assertEqual(_stored_matches(self.db), {})

    def test_unsupported_formats(self) -> None:
        for fmt in ("round_robin", "normal_league", None):
            with self.subTest(fmt=fmt):
                db = MockFirestoreBuilder.build_db()
                seed_league(db, member_ids=("m1", "m2"), tournamentFormat=fmt)
                with self.assertRaises(UnsupportedFormatError):
                    TournamentService.generate_bracket("league1", "owner", db=db)

    def test_double_elimination_not_supported_yet(self) -> None:
        seed_league(
            self.db, member_ids=("m1", "m2"), tournamentFormat="double_elimination"
        )
        with self.assertRaises(UnsupportedFormatError) as ctx:
            self._generate()
        self.assertIn("Double elimination", ctx.exception.message)

    def test_not_enough_participants(self) -> None:
        seed_league(self.db)
        with self.assertRaises(InsufficientParticipantsError):
            self._generate()
        league = self.db.collection("leagues").document("league1").get().to_dict()
        self.assertFalse(league["bracketGenerated"])

    def test_missing_league_and_user(self) -> None:
        with self.assertRaises(LeagueNotFoundError):
            self._generate()
        with self.assertRaises(AuthenticationError):
            self._generate(user_id="")

    def test_manager_check_runs_before_format_check(self) -> None:
        seed_league(self.db, member_ids=("m1",), tournamentFormat="round_robin")
        with self.assertRaises(UnauthorizedError):
            self._generate("m1")


class BracketLifecycleTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestoreBuilder.build_db()
        patch_firestore(self, self.db)
        seed_league(self.db, member_ids=("m1", "m2", "m3"))

    def test_bracket_is_none_before_generation(self) -> None:
        self.assertIsNone(TournamentService.get_bracket("league1", db=self.db))

    def test_get_bracket_after_generation(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        bracket = TournamentService.get_bracket("league1", db=self.db)
        self.assertEqual(bracket.rounds, 2)
        self.assertEqual(bracket.current_round, 1)
        self.assertEqual(len(bracket.round_matches(1)), 2)
        self.assertEqual(len(bracket.round_matches(2)), 1)

    def test_play_through(self) -> None:
        TournamentService.generate_bracket(
            "league1", "owner", db=self.db, rng=random.Random(1)
        )
        first = self.db.collection("matches").document("league1_r1_m1").get().to_dict()
        p1, p2 = first["player1Id"], first["player2Id"]

        started = TournamentService.start_match("league1", 1, 1, "owner", db=self.db)
        self.assertEqual(started.status, MatchStatus.IN_PROGRESS)

        done = TournamentService.record_match_result(
            "league1", 1, 1, "owner", winner_id=p2, player1_score=5, player2_score=11,
            db=self.db,
        )
        self.assertEqual(done.status, MatchStatus.COMPLETED)
        stored = self.db.collection("matches").document("league1_r1_m1").get().to_dict()
        self.assertEqual(
            stored["result"], {"winnerId": p2, "player1Score": 5, "player2Score": 11}
        )

        # No automatic advancement into round 2
        final = self.db.collection("matches").document("league1_r2_m1").get().to_dict()
        self.assertIsNone(final["player1Id"])

        TournamentService.assign_match_players(
            "league1", 2, 1, "owner", player1_id=p2, db=self.db
        )
        bracket = TournamentService.get_bracket("league1", db=self.db)
        self.assertEqual(bracket.current_round, 1)
        self.assertEqual(bracket.round_matches(2)[0].player1_id, p2)

        standings = TournamentService.get_standings("league1", db=self.db)
        by_user = {s.participant.user_id: s for s in standings}
        self.assertEqual((by_user[p2].wins, by_user[p2].losses), (1, 0))
        self.assertEqual((by_user[p1].wins, by_user[p1].losses), (0, 1))
        self.assertEqual(len(standings), 4)

    def test_result_needs_a_real_winner(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        with self.assertRaises(ValidationError):
            TournamentService.record_match_result(
                "league1", 1, 1, "owner", winner_id="stranger", db=self.db
            )
        with self.assertRaises(ValidationError):
            TournamentService.record_match_result(
                "league1", 1, 1, "owner", winner_id="", db=self.db
            )
        with self.assertRaises(ValidationError):
            TournamentService.record_match_result(
                "league1", 1, 1, "owner", winner_id="m1", player1_score=-1, db=self.db
            )

    def test_completed_matches_are_final(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        match = self.db.collection("matches").document("league1_r1_m1").get().to_dict()
        TournamentService.record_match_result(
            "league1", 1, 1, "owner", winner_id=match["player1Id"], db=self.db
        )
        with self.assertRaises(MatchStateError):
            TournamentService.record_match_result(
                "league1", 1, 1, "owner", winner_id=match["player2Id"], db=self.db
            )
        with self.assertRaises(MatchStateError):
            TournamentService.start_match("league1", 1, 1, "owner", db=self.db)

    def test_placeholder_match_cannot_start(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        with self.assertRaises(MatchStateError):
            TournamentService.start_match("league1", 2, 1, "owner", db=self.db)
        with self.assertRaises(MatchStateError):
            TournamentService.record_match_result(
                "league1", 2, 1, "owner", winner_id="m1", db=self.db
            )

    def test_unknown_match(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        with self.assertRaises(MatchNotFoundError):
            TournamentService.start_match("league1", 5, 1, "owner", db=self.db)

    def test_members_cannot_update_matches(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        with self.assertRaises(UnauthorizedError):
            TournamentService.start_match("league1", 1, 1, "m1", db=self.db)

    def test_assign_rules(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        with self.assertRaises(MatchStateError):
            TournamentService.assign_match_players(
                "league1", 1, 1, "owner", player1_id="m1", db=self.db
            )
        with self.assertRaises(ValidationError):
            TournamentService.assign_match_players("league1", 2, 1, "owner", db=self.db)
        with self.assertRaises(ValidationError):
            TournamentService.assign_match_players(
                "league1", 2, 1, "owner", player1_id="m1", player2_id="m1", db=self.db
            )
        with self.assertRaises(ValidationError):
            TournamentService.assign_match_players(
                "league1", 2, 1, "owner", player1_id="nobody", db=self.db
            )

        TournamentService.assign_match_players(
            "league1", 2, 1, "owner", player1_id="m1", db=self.db
        )
        with self.assertRaises(MatchStateError):
            TournamentService.assign_match_players(
                "league1", 2, 1, "owner", player1_id="m2", db=self.db
            )
        with self.assertRaises(ValidationError):
            TournamentService.assign_match_players(
                "league1", 2, 1, "owner", player2_id="m1", db=self.db
            )
        match = TournamentService.assign_match_players(
            "league1", 2, 1, "owner", player2_id="m2", db=self.db
        )
        self.assertEqual((match.player1_id, match.player2_id), ("m1", "m2"))

    def test_clear_then_regenerate(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        with self.assertRaises(UnauthorizedError):
            TournamentService.clear_bracket("league1", "m1", db=self.db)

        deleted = TournamentService.clear_bracket("league1", "owner", db=self.db)
        self.assertEqual(deleted, 3)
        self.assertIsNone(TournamentService.get_bracket("league1", db=self.db))

        matches = TournamentService.generate_bracket("league1", "owner", db=self.db)
        self.assertEqual(len(matches), 3)

    def test_standings_before_any_match(self) -> None:
        standings = TournamentService.get_standings("league1", db=self.db)
        self.assertEqual(len(standings), 4)
        self.assertTrue(all(s.wins == 0 and s.losses == 0 for s in standings))

    def test_reads_are_repeatable(self) -> None:
        TournamentService.generate_bracket("league1", "owner", db=self.db)
        match = self.db.collection("matches").document("league1_r1_m1").get().to_dict()
        TournamentService.record_match_result(
            "league1", 1, 1, "owner", winner_id=match["player2Id"], db=self.db
        )

        first = TournamentService.get_bracket("league1", db=self.db).to_dict()
        second = TournamentService.get_bracket("league1", db=self.db).to_dict()
        self.assertEqual(first, second)

        first = standings_payload(TournamentService.get_standings("league1", db=self.db))
        second = standings_payload(
            TournamentService.get_standings("league1", db=self.db)
        )
        self.assertEqual(first, second)


class OddLaterRoundTestCase(unittest.TestCase):
    """Five players: round 2 gets three winners, so one match has a lone player."""

    def setUp(self) -> None:
        self.db = MockFirestoreBuilder.build_db()
        patch_firestore(self, self.db)
        seed_league(self.db, member_ids=("m1", "m2", "m3", "m4"))
        TournamentService.generate_bracket(
            "league1", "owner", db=self.db, rng=random.Random(5)
        )
        self.winners = []
        for number in (1, 2):
            match = self._match(1, number)
            TournamentService.record_match_result(
                "league1", 1, number, "owner", winner_id=match["player1Id"], db=self.db
            )
            self.winners.append(match["player1Id"])
        self.bye_player = self._match(1, 3)["player1Id"]

    def _match(self, round_number, number):
        doc_id = f"league1_r{round_number}_m{number}"
        return self.db.collection("matches").document(doc_id).get().to_dict()

    def _assign(self, round_number, number, player1_id=None, player2_id=None):
        return TournamentService.assign_match_players(
            "league1",
            round_number,
            number,
            "owner",
            player1_id=player1_id,
            player2_id=player2_id,
            db=self.db,
        )

    def test_lone_player_walks_over_and_bracket_finishes(self) -> None:
        w1, w2 = self.winners
        self._assign(2, 1, w1, w2)
        self._assign(2, 2, self.bye_player)
        TournamentService.record_match_result(
            "league1", 2, 1, "owner", winner_id=w1, db=self.db
        )

        walkover = TournamentService.record_match_result(
            "league1", 2, 2, "owner", winner_id=self.bye_player,
            player1_score=3, player2_score=0, db=self.db,
        )
        self.assertEqual(walkover.status, MatchStatus.COMPLETED)
        self.assertEqual(self._match(2, 2)["result"], {"winnerId": self.bye_player})

        self._assign(3, 1, w1, self.bye_player)
        TournamentService.record_match_result(
            "league1", 3, 1, "owner", winner_id=self.bye_player, db=self.db
        )

        bracket = TournamentService.get_bracket("league1", db=self.db)
        self.assertEqual(bracket.rounds, 3)
        self.assertEqual(bracket.current_round, 3)
        self.assertTrue(all(m.is_completed for m in bracket.matches))

        champion = TournamentService.get_standings("league1", db=self.db)[0]
        self.assertEqual(champion.participant.user_id, self.bye_player)
        self.assertEqual((champion.wins, champion.losses), (3, 0))

    def test_walkover_winner_must_be_the_lone_player(self) -> None:
        self._assign(2, 2, self.bye_player)
        with self.assertRaises(ValidationError):
            TournamentService.record_match_result(
                "league1", 2, 2, "owner", winner_id=self.winners[0], db=self.db
            )
        with self.assertRaises(MatchStateError):
            TournamentService.start_match("league1", 2, 2, "owner", db=self.db)

    def test_player_holds_one_slot_per_round(self) -> None:
        self._assign(2, 1, self.winners[0])
        with self.assertRaises(ValidationError):
            self._assign(2, 2, self.winners[0])
        with self.assertRaises(ValidationError):
            self._assign(2, 2, None, self.winners[0])
        self.assertIsNone(self._match(2, 2)["player1Id"])

        # The same player may still appear in the next round
        self._assign(3, 1, self.winners[0])


if __name__ == "__main__":
    unittest.main()
