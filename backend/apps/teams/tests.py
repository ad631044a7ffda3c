from __future__ import annotations

import random

from django.conf import settings
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APITestCase

from apps.accounts.models import Participant
from apps.accounts.roles import ADMIN, AUTHOR
from apps.common.exceptions import AlreadyTeamMemberError, NotFoundError, ValidationError
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.common.utils.validators import POSITIVE_INT_MAX
from apps.teams.models import Team
from apps.teams.ranking import compute_ranks
from apps.teams.repo import MembershipRepo
from apps.teams.schemas import TeamCreateSchema, TeamUpdateSchema
from apps.teams.services import (
    AddParticipantToTeamService,
    ReassignParticipantTeamService,
    RemoveParticipantFromTeamService,
    TeamDeleteService,
    TeamDetailService,
    TeamListService,
    TeamUpdateService,
)


class ComputeRanksTests(SimpleTestCase):
    """标准竞赛排名（1224）"""

    def test_examples(self):
        self.assertEqual(compute_ranks([("a", 50), ("b", 50), ("c", 30)]), {"a": 1, "b": 1, "c": 3})
        self.assertEqual(compute_ranks([]), {})
        self.assertEqual(compute_ranks([(7, 10)]), {7: 1})
        self.assertEqual(compute_ranks([(i, 10) for i in range(4)]), {0: 1, 1: 1, 2: 1, 3: 1})

    def test_input_order_does_not_matter(self):
        self.assertEqual(
            compute_ranks([("low", 1), ("high", 9), ("mid", 5), ("mid2", 5)]),
            {"high": 1, "mid": 2, "mid2": 2, "low": 4},
        )

    def test_random_score_lists(self):
        rng = random.Random(20240101)
        for _ in range(200):
            rows = [(i, rng.randint(0, 5)) for i in range(rng.randint(1, 12))]
            ranks = compute_ranks(rows)
            self.assertEqual(set(ranks), {i for i, _ in rows})
            self.assertIn(1, ranks.values())

            ordered = sorted(rows, key=lambda r: r[1], reverse=True)
            previous = 0
            for position, (team_id, score) in enumerate(ordered, start=1):
                rank = ranks[team_id]
                self.assertGreaterEqual(rank, previous)
                self.assertLessEqual(rank, position)
                previous = rank
            for a_id, a_score in rows:
                for b_id, b_score in rows:
                    if a_score == b_score:
                        self.assertEqual(ranks[a_id], ranks[b_id])
                    elif a_score > b_score:
                        self.assertLess(ranks[a_id], ranks[b_id])


class TeamUpdateSchemaTests(SimpleTestCase):
    def test_rank_is_ignored(self):
        schema = TeamUpdateSchema.from_dict({"score": "15", "rank": 1})
        self.assertEqual(schema.changes(), {"score": 15})

    def test_negative_score_rejected(self):
        with self.assertRaises(ValidationError):
            TeamUpdateSchema.from_dict({"score": -1})

    def test_score_above_column_range_rejected(self):
        with self.assertRaises(ValidationError):
            TeamUpdateSchema.from_dict({"score": POSITIVE_INT_MAX + 1})
        self.assertEqual(TeamUpdateSchema.from_dict({"score": POSITIVE_INT_MAX}).score, POSITIVE_INT_MAX)

    def test_image_length_limited(self):
        long_url = "https://example.com/" + "a" * 500
        for schema_cls in (TeamUpdateSchema, TeamCreateSchema):
            with self.subTest(schema=schema_cls.__name__), self.assertRaises(ValidationError):
                schema_cls.from_dict({"name": "Alpha", "image": long_url})


class MembershipServiceTests(AuthenticatedAPIMixin, TestCase):
    """成员关系：加入、移出、改派、删除队伍"""

    @classmethod
    def setUpTestData(cls):
        cls.team_a = Team.objects.create(name="Alpha")
        cls.team_b = Team.objects.create(name="Bravo")
        cls.p = cls.make_participant("pat")

    def _members(self, team: Team) -> set[int]:
        return set(MembershipRepo.members_of(team).values_list("id", flat=True))

    def test_add_sets_current_team(self):
        data = AddParticipantToTeamService().execute(self.team_a.pk, self.p.pk)
        self.p.refresh_from_db()
        self.assertEqual(self.p.team_id, self.team_a.pk)
        self.assertIsNotNone(self.p.team_joined_at)
        self.assertEqual(data["member_count"], 1)
        self.assertEqual([m["id"] for m in data["members"]], [self.p.pk])
        self.assertNotIn("password", data["members"][0])

    def test_add_twice_conflicts(self):
        service = AddParticipantToTeamService()
        service.execute(self.team_a.pk, self.p.pk)
        with self.assertRaises(AlreadyTeamMemberError):
            service.execute(self.team_a.pk, self.p.pk)
        self.assertEqual(self._members(self.team_a), {self.p.pk})

    def test_add_moves_from_previous_team(self):
        AddParticipantToTeamService().execute(self.team_a.pk, self.p.pk)
        AddParticipantToTeamService().execute(self.team_b.pk, self.p.pk)
        self.assertEqual(self._members(self.team_a), set())
        self.assertEqual(self._members(self.team_b), {self.p.pk})

    def test_repo_add_member_returns_previous_team(self):
        repo = MembershipRepo()
        self.assertIsNone(repo.add_member(self.team_a, self.p))
        self.assertEqual(repo.add_member(self.team_b, self.p), self.team_a.pk)
        self.p.refresh_from_db()
        self.assertEqual(self.p.team_id, self.team_b.pk)

    def test_add_unknown_ids(self):
        with self.assertRaises(NotFoundError):
            AddParticipantToTeamService().execute(999999, self.p.pk)
        with self.assertRaises(NotFoundError):
            AddParticipantToTeamService().execute(self.team_a.pk, 999999)

    def test_remove_is_idempotent(self):
        AddParticipantToTeamService().execute(self.team_a.pk, self.p.pk)
        first = RemoveParticipantFromTeamService().execute(self.team_a.pk, self.p.pk)
        self.assertTrue(first["removed"])
        self.p.refresh_from_db()
        snapshot = (self.p.team_id, self.p.team_joined_at)

        second = RemoveParticipantFromTeamService().execute(self.team_a.pk, self.p.pk)
        self.assertFalse(second["removed"])
        self.p.refresh_from_db()
        self.assertEqual((self.p.team_id, self.p.team_joined_at), snapshot)
        self.assertEqual(second["team"]["member_count"], 0)

    def test_remove_from_other_team_keeps_current(self):
        AddParticipantToTeamService().execute(self.team_a.pk, self.p.pk)
        result = RemoveParticipantFromTeamService().execute(self.team_b.pk, self.p.pk)
        self.assertFalse(result["removed"])
        self.p.refresh_from_db()
        self.assertEqual(self.p.team_id, self.team_a.pk)

    def test_remove_unknown_ids(self):
        with self.assertRaises(NotFoundError):
            RemoveParticipantFromTeamService().execute(999999, self.p.pk)
        with self.assertRaises(NotFoundError):
            RemoveParticipantFromTeamService().execute(self.team_a.pk, 999999)

    def test_add_then_reassign(self):
        AddParticipantToTeamService().execute(self.team_a.pk, self.p.pk)
        participant = ReassignParticipantTeamService().execute(self.p.pk, self.team_b.pk)
        self.assertEqual(participant.team_id, self.team_b.pk)
        self.assertNotIn(self.p.pk, self._members(self.team_a))
        self.assertIn(self.p.pk, self._members(self.team_b))

    def test_reassign_to_none_or_zero_leaves(self):
        for empty in (None, 0, "0", ""):
            with self.subTest(value=empty):
                ReassignParticipantTeamService().execute(self.p.pk, self.team_a.pk)
                participant = ReassignParticipantTeamService().execute(self.p.pk, empty)
                self.assertIsNone(participant.team_id)
                self.assertEqual(self._members(self.team_a), set())

    def test_reassign_to_missing_team_changes_nothing(self):
        ReassignParticipantTeamService().execute(self.p.pk, self.team_a.pk)
        with self.assertRaises(NotFoundError):
            ReassignParticipantTeamService().execute(self.p.pk, 999999)
        self.p.refresh_from_db()
        self.assertEqual(self.p.team_id, self.team_a.pk)

    def test_reassign_same_team_is_noop(self):
        ReassignParticipantTeamService().execute(self.p.pk, self.team_a.pk)
        self.p.refresh_from_db()
        joined_at = self.p.team_joined_at
        ReassignParticipantTeamService().execute(self.p.pk, self.team_a.pk)
        self.p.refresh_from_db()
        self.assertEqual(self.p.team_joined_at, joined_at)

    def test_delete_team_clears_current_team(self):
        AddParticipantToTeamService().execute(self.team_a.pk, self.p.pk)
        TeamDeleteService().execute(self.team_a.pk)
        self.p.refresh_from_db()
        self.assertIsNone(self.p.team_id)
        self.assertIsNone(self.p.team_joined_at)
        self.assertFalse(Team.objects.filter(pk=self.team_a.pk).exists())

    def test_delete_missing_team(self):
        with self.assertRaises(NotFoundError):
            TeamDeleteService().execute(999999)

    def test_random_operations_keep_membership_consistent(self):
        teams = [self.team_a, self.team_b, Team.objects.create(name="Charlie")]
        people = [self.p] + [self.make_participant(f"user{i}") for i in range(4)]
        add, remove, reassign = (
            AddParticipantToTeamService(),
            RemoveParticipantFromTeamService(),
            ReassignParticipantTeamService(),
        )
        rng = random.Random(7)
        for _ in range(60):
            team = rng.choice(teams)
            person = rng.choice(people)
            op = rng.choice(("add", "remove", "reassign", "leave"))
            try:
                if op == "add":
                    add.execute(team.pk, person.pk)
                elif op == "remove":
                    remove.execute(team.pk, person.pk)
                elif op == "reassign":
                    reassign.execute(person.pk, team.pk)
                else:
                    reassign.execute(person.pk, None)
            except AlreadyTeamMemberError:
                pass

            for participant in Participant.objects.filter(pk__in=[p.pk for p in people]):
                if participant.team_id is not None:
                    detail = TeamDetailService().execute(participant.team_id)
                    self.assertIn(participant.pk, [m["id"] for m in detail["members"]])
            for t in teams:
                detail = TeamDetailService().execute(t.pk)
                for member in detail["members"]:
                    self.assertEqual(Participant.objects.get(pk=member["id"]).team_id, t.pk)
                self.assertEqual(detail["member_count"], len(detail["members"]))


class TeamRankingServiceTests(TestCase):
    def test_score_change_updates_rank(self):
        a = Team.objects.create(name="Team A")
        b = Team.objects.create(name="Team B")
        detail = TeamDetailService()
        self.assertEqual(detail.execute(a.pk)["rank"], 1)
        self.assertEqual(detail.execute(b.pk)["rank"], 1)

        TeamUpdateService().execute(a.pk, TeamUpdateSchema.from_dict({"score": 100}))
        self.assertEqual(detail.execute(a.pk)["rank"], 1)
        self.assertEqual(detail.execute(b.pk)["rank"], 2)

    def test_list_ordered_with_shared_ranks(self):
        Team.objects.create(name="Low", score=30)
        Team.objects.create(name="High1", score=50)
        Team.objects.create(name="High2", score=50)
        data = TeamListService().execute()
        self.assertEqual([t["name"] for t in data], ["High1", "High2", "Low"])
        self.assertEqual([t["rank"] for t in data], [1, 1, 3])

    def test_empty_list(self):
        self.assertEqual(TeamListService().execute(), [])


@override_settings(
    REST_FRAMEWORK={
        **settings.REST_FRAMEWORK,
        "DEFAULT_THROTTLE_RATES": {
            **settings.REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
            "login": "1000/min",
        },
    },
)
class TeamsAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """队伍接口：权限、冲突与统一响应"""

    @classmethod
    def setUpTestData(cls):
        cls.make_participant("captain", role=ADMIN)
        cls.make_participant("writer", role=AUTHOR)
        cls.player = cls.make_participant("player")
        cls.team = Team.objects.create(name="Existing", score=10)

    def setUp(self):
        super().setUp()
        self.admin_client = self.auth_client("captain")

    def test_create_team_defaults(self):
        resp = self.admin_client.post("/api/teams/", {"name": "Fresh"}, format="json")
        self.assertEqual(resp.status_code, 201)
        data = resp.data["data"]
        self.assertEqual(data["score"], 0)
        self.assertEqual(data["rank"], 2)
        self.assertEqual(data["member_count"], 0)

    def test_create_duplicate_name(self):
        resp = self.admin_client.post("/api/teams/", {"name": "Existing"}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["extra"]["field"], "name")

    def test_oversized_score_is_400(self):
        resp = self.admin_client.post("/api/teams/", {"name": "Big", "score": 10 ** 20}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], 40002)
        self.assertFalse(Team.objects.filter(name="Big").exists())

    def test_rename_to_existing_name(self):
        other = Team.objects.create(name="Other")
        resp = self.admin_client.patch(f"/api/teams/{other.pk}/", {"name": "Existing"}, format="json")
        self.assertEqual(resp.status_code, 409)

    def test_negative_score_rejected(self):
        resp = self.admin_client.post("/api/teams/", {"name": "Neg", "score": -5}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(Team.objects.filter(name="Neg").exists())

    def test_rank_in_payload_is_ignored(self):
        resp = self.admin_client.patch(f"/api/teams/{self.team.pk}/", {"rank": 99, "score": 11}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["rank"], 1)
        self.assertEqual(resp.data["data"]["score"], 11)

    def test_list_and_detail_for_any_role(self):
        client = self.auth_client("player")
        resp = client.get("/api/teams/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"][0]["name"], "Existing")
        resp = client.get(f"/api/teams/{self.team.pk}/")
        self.assertEqual(resp.status_code, 200)

    def test_detail_not_found(self):
        resp = self.admin_client.get("/api/teams/999999/")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["code"], 40400)

    def test_unauthenticated(self):
        self.assertEqual(self.client.get("/api/teams/").status_code, 401)

    def test_writes_require_admin(self):
        client = self.auth_client("writer")
        self.assertEqual(client.post("/api/teams/", {"name": "Nope"}, format="json").status_code, 403)
        self.assertEqual(client.delete(f"/api/teams/{self.team.pk}/").status_code, 403)
        resp = client.post(f"/api/teams/{self.team.pk}/participants/", {"participant_id": self.player.pk},
                           format="json")
        self.assertEqual(resp.status_code, 403)

    def test_add_and_remove_participant(self):
        url = f"/api/teams/{self.team.pk}/participants/"
        resp = self.admin_client.post(url, {"participantId": self.player.pk}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["member_count"], 1)

        again = self.admin_client.post(url, {"participant_id": self.player.pk}, format="json")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.data["code"], 40902)

        resp = self.admin_client.delete(f"{url}{self.player.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["data"]["removed"])
        resp = self.admin_client.delete(f"{url}{self.player.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["data"]["removed"])

    def test_delete_team_keeps_members(self):
        self.admin_client.post(
            f"/api/teams/{self.team.pk}/participants/", {"participant_id": self.player.pk}, format="json"
        )
        resp = self.admin_client.delete(f"/api/teams/{self.team.pk}/")
        self.assertEqual(resp.status_code, 204)
        detail = self.admin_client.get(f"/api/participants/{self.player.pk}/")
        self.assertEqual(detail.status_code, 200)
        self.assertIsNone(detail.data["data"]["team_id"])
