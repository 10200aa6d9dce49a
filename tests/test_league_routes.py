"""Tests for the league blueprint routes."""

import unittest

from clubleague import create_app
from tests.mock_utils import MockFirestoreBuilder, patch_firestore, seed_league


class LeagueRoutesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestoreBuilder.build_db()
        patch_firestore(self, self.db)
        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.client = self.app.test_client()
        self.db.collection("users").document("u1").set(
            {"displayName": "Ann", "email": "ann@club.org"}
        )
        with self.client.session_transaction() as sess:
            sess["user_id"] = "u1"

    def test_create_and_view_league(self) -> None:
        response = self.client.post(
            "/leagues/",
            json={
                "name": "Winter Ladder",
                "sport": "squash",
                "tournament_format": "single_elimination",
                "max_participants": 8,
            },
        )
        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertEqual(len(data["inviteCode"]), 8)

        response = self.client.get(f"/leagues/{data['leagueId']}")
        league = response.get_json()["league"]
        self.assertEqual(league["name"], "Winter Ladder")
        self.assertEqual(league["maxParticipants"], 8)

        members = self.client.get(f"/leagues/{data['leagueId']}/members").get_json()
        self.assertEqual([m["userId"] for m in members["members"]], ["u1"])

    def test_create_league_requires_fields(self) -> None:
        response = self.client.post("/leagues/", json={"sport": "squash"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["code"], "validation_error")

    def test_edit_league(self) -> None:
        seed_league(self.db, owner_id="u1")
        response = self.client.patch("/leagues/league1", json={"name": "New Name"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["league"]["name"], "New Name")

    def test_missing_league(self) -> None:
        response = self.client.get("/leagues/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["code"], "league_not_found")

    def test_join_routes(self) -> None:
        seed_league(self.db)
        response = self.client.post("/leagues/league1/join")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["memberId"], "league1_u1")

        response = self.client.post("/leagues/league1/join")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["code"], "already_member")

        response = self.client.post("/leagues/join", json={"invite_code": "abcd2345"})
        self.assertEqual(response.get_json()["leagueId"], "league1")

    def test_full_league(self) -> None:
        seed_league(self.db, member_ids=("m1",), maxParticipants=2)
        response = self.client.post("/leagues/league1/join")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["code"], "league_full")

    def test_add_and_remove_member(self) -> None:
        seed_league(self.db, owner_id="u1")
        response = self.client.post(
            "/leagues/league1/members", json={"email": "stranger@club.org"}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["kind"], "invited")
        invites = self.client.get("/leagues/league1/invites").get_json()["invites"]
        self.assertEqual(len(invites), 1)

        response = self.client.post(
            "/leagues/league1/members", json={"email": "not-an-email"}
        )
        self.assertEqual(response.status_code, 400)

        self.db.collection("members").document("league1_m9").set(
            {"leagueId": "league1", "userId": "m9", "status": "active"}
        )
        response = self.client.delete("/leagues/league1/members/m9")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(
            self.db.collection("members").document("league1_m9").get().exists
        )

    def test_outsiders_cannot_read_roster_or_invites(self) -> None:
        seed_league(self.db, member_ids=("m1",))
        for path in ("/leagues/league1/members", "/leagues/league1/invites"):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 403)
            self.assertEqual(response.get_json()["code"], "unauthorized")

        self.assertEqual(self.client.get("/leagues/nope/members").status_code, 404)

    def test_delete_league(self) -> None:
        seed_league(self.db, owner_id="u1", member_ids=("m1",))
        response = self.client.delete("/leagues/league1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/leagues/league1").status_code, 404)

    def test_unknown_route_is_json(self) -> None:
        response = self.client.get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["code"], "not_found")


if __name__ == "__main__":
    unittest.main()
