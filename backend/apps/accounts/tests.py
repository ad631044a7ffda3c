from __future__ import annotations

from django.conf import settings
from django.test import TestCase, override_settings
from rest_framework.test import APITestCase

from apps.accounts.models import Participant
from apps.accounts.roles import ADMIN, AUTHOR, PARTICIPANT
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.teams.models import Team

_RELAXED_THROTTLE = {
    **settings.REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        **settings.REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
        "login": "1000/min",
    },
}


class ParticipantModelTests(AuthenticatedAPIMixin, TestCase):
    """角色与后台权限、超级管理员默认值"""

    def test_is_staff_follows_role(self):
        p = self.make_participant("modeluser")
        self.assertFalse(p.is_staff)
        p.role = ADMIN
        p.save(update_fields=["role"])
        p.refresh_from_db()
        self.assertTrue(p.is_staff)
        self.assertTrue(p.is_admin)

    def test_create_superuser_defaults_to_admin(self):
        su = Participant.objects.create_superuser("root", email="root@example.com", password="Passw0rd!")
        self.assertEqual(su.role, ADMIN)
        self.assertEqual(su.registration_number, "ADMIN-root")
        self.assertTrue(su.is_staff)

    def test_password_is_hashed(self):
        p = self.make_participant("hashme")
        self.assertNotEqual(p.password, self.default_password)
        self.assertTrue(p.check_password(self.default_password))


@override_settings(REST_FRAMEWORK=_RELAXED_THROTTLE)
class AuthAPITests(AuthenticatedAPIMixin, APITestCase):
    """登录 / 刷新 / 注销 / 当前用户"""

    @classmethod
    def setUpTestData(cls):
        cls.alice = cls.make_participant("alice")

    def test_login_returns_tokens_and_cookie(self):
        resp = self.client.post(self.login_url, {"username": "alice", "password": self.default_password},
                                format="json")
        self.assertEqual(resp.status_code, 200)
        data = resp.data["data"]
        self.assertTrue(data["access"])
        self.assertTrue(data["refresh"])
        self.assertEqual(data["participant"]["username"], "alice")
        self.assertNotIn("password", data["participant"])
        self.assertIn(settings.JWT_REFRESH_COOKIE_NAME, resp.cookies)

    def test_login_wrong_password(self):
        resp = self.client.post(self.login_url, {"username": "alice", "password": "wrong-pass"}, format="json")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data["code"], 40101)

    def test_login_unknown_user_same_error(self):
        resp = self.client.post(self.login_url, {"username": "nobody", "password": "whatever"}, format="json")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data["code"], 40101)

    def test_login_throttle_counts_per_username(self):
        strict = {**_RELAXED_THROTTLE, "DEFAULT_THROTTLE_RATES": {"login": "2/min"}}
        self.make_participant("bob")
        with override_settings(REST_FRAMEWORK=strict):
            for _ in range(2):
                resp = self.client.post(self.login_url, {"username": "alice", "password": "bad"}, format="json")
                self.assertEqual(resp.status_code, 401)
            resp = self.client.post(self.login_url, {"username": "Alice", "password": "bad"}, format="json")
            self.assertEqual(resp.status_code, 429)
            self.assertEqual(resp.data["code"], 42900)

            resp = self.client.post(self.login_url, {"username": "bob", "password": self.default_password},
                                    format="json")
            self.assertEqual(resp.status_code, 200)

    def test_login_inactive_account(self):
        self.make_participant("sleepy", is_active=False)
        resp = self.client.post(self.login_url, {"username": "sleepy", "password": self.default_password},
                                format="json")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data["code"], 40103)

    def test_login_missing_fields(self):
        resp = self.client.post(self.login_url, {"username": "alice"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_refresh_with_body_token(self):
        login = self.client.post(self.login_url, {"username": "alice", "password": self.default_password},
                                 format="json")
        refresh = login.data["data"]["refresh"]
        resp = self.client.post("/api/auth/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["data"]["access"])

    def test_refresh_with_cookie(self):
        self.client.post(self.login_url, {"username": "alice", "password": self.default_password}, format="json")
        resp = self.client.post("/api/auth/refresh/", {}, format="json")
        self.assertEqual(resp.status_code, 200)

    def test_refresh_invalid_token(self):
        resp = self.client.post("/api/auth/refresh/", {"refresh": "not-a-token"}, format="json")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data["code"], 40102)

    def test_logout_blacklists_refresh(self):
        login = self.client.post(self.login_url, {"username": "alice", "password": self.default_password},
                                 format="json")
        access = login.data["data"]["access"]
        refresh = login.data["data"]["refresh"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        resp = self.client.post("/api/auth/logout/", {"refresh": refresh}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.client.credentials()
        again = self.client.post("/api/auth/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(again.status_code, 401)

    def test_logout_requires_authentication(self):
        resp = self.client.post("/api/auth/logout/", {"refresh": "x"}, format="json")
        self.assertEqual(resp.status_code, 401)

    def test_profile(self):
        client = self.auth_client("alice")
        resp = client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["id"], self.alice.pk)

    def test_bad_bearer_token(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer garbage")
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 401)


@override_settings(REST_FRAMEWORK=_RELAXED_THROTTLE)
class ParticipantAPITests(AuthenticatedAPIMixin, APITestCase):
    """参与者增删改查、唯一性与队伍改派"""

    base_url = "/api/participants/"

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_participant("boss", role=ADMIN)
        cls.author = cls.make_participant("writer", role=AUTHOR)
        cls.player = cls.make_participant("player")
        cls.red = Team.objects.create(name="Red", score=10)
        cls.blue = Team.objects.create(name="Blue", score=5)

    def setUp(self):
        super().setUp()
        self.admin_client = self.auth_client("boss")

    def _payload(self, username: str, **overrides) -> dict:
        body = {
            "fullname": username.title(),
            "email": f"{username}@example.com",
            "username": username,
            "password": "Secret123",
            "registrationNumber": f"R-{username}",
        }
        body.update(overrides)
        return body

    def test_create_participant(self):
        resp = self.admin_client.post(self.base_url, self._payload("newbie"), format="json")
        self.assertEqual(resp.status_code, 201)
        data = resp.data["data"]
        self.assertEqual(data["role"], PARTICIPANT)
        self.assertIsNone(data["team_id"])
        self.assertTrue(Participant.objects.get(username="newbie").check_password("Secret123"))

    def test_create_with_team(self):
        resp = self.admin_client.post(self.base_url, self._payload("teamed", teamId=self.red.pk), format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["data"]["team_id"], self.red.pk)
        self.assertEqual(self.red.members.count(), 1)

    def test_create_with_missing_team_rolls_back(self):
        resp = self.admin_client.post(self.base_url, self._payload("ghost", team_id=999999), format="json")
        self.assertEqual(resp.status_code, 404)
        self.assertFalse(Participant.objects.filter(username="ghost").exists())

    def test_create_duplicate_fields(self):
        cases = {
            "username": self._payload("player", email="other@example.com", registrationNumber="R-other"),
            "email": self._payload("fresh1", email="player@example.com"),
            "registration_number": self._payload("fresh2", registrationNumber="REG-player"),
        }
        for field, body in cases.items():
            with self.subTest(field=field):
                resp = self.admin_client.post(self.base_url, body, format="json")
                self.assertEqual(resp.status_code, 409)
                self.assertEqual(resp.data["extra"]["field"], field)

    def test_duplicate_fullname_is_allowed(self):
        resp = self.admin_client.post(self.base_url, self._payload("twin", fullname="Player"), format="json")
        self.assertEqual(resp.status_code, 201)

    def test_create_validation(self):
        resp = self.admin_client.post(self.base_url, self._payload("ab", email="bad-email"), format="json")
        self.assertEqual(resp.status_code, 400)

    def test_create_requires_admin(self):
        client = self.auth_client("writer")
        resp = client.post(self.base_url, self._payload("sneaky"), format="json")
        self.assertEqual(resp.status_code, 403)

    def test_list_requires_admin(self):
        self.assertEqual(self.client.get(self.base_url).status_code, 401)
        self.assertEqual(self.auth_client("player").get(self.base_url).status_code, 403)

    def test_list_paginated(self):
        resp = self.admin_client.get(self.base_url, {"page_size": 2})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data["data"]), 2)
        self.assertEqual(resp.data["extra"]["total"], 3)
        self.assertTrue(resp.data["extra"]["has_next"])

    def test_detail_visible_to_any_role(self):
        client = self.auth_client("player")
        resp = client.get(f"{self.base_url}{self.admin.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["username"], "boss")

    def test_detail_not_found(self):
        resp = self.admin_client.get(f"{self.base_url}999999/")
        self.assertEqual(resp.status_code, 404)

    def test_update_profile_and_password(self):
        resp = self.admin_client.patch(
            f"{self.base_url}{self.player.pk}/",
            {"phoneNumber": "123456", "password": "NewPass99"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["phone_number"], "123456")
        self.api_login("player", "NewPass99")

    def test_update_duplicate_excludes_self(self):
        resp = self.admin_client.patch(
            f"{self.base_url}{self.player.pk}/", {"email": "player@example.com"}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        resp = self.admin_client.patch(
            f"{self.base_url}{self.player.pk}/", {"email": "boss@example.com"}, format="json"
        )
        self.assertEqual(resp.status_code, 409)

    def test_update_reassigns_team(self):
        url = f"{self.base_url}{self.player.pk}/"
        self.admin_client.patch(url, {"teamId": self.red.pk}, format="json")
        resp = self.admin_client.patch(url, {"teamId": self.blue.pk}, format="json")
        self.assertEqual(resp.data["data"]["team_id"], self.blue.pk)
        self.assertEqual(self.red.members.count(), 0)
        self.assertEqual(self.blue.members.count(), 1)

        resp = self.admin_client.patch(url, {"teamId": None}, format="json")
        self.assertIsNone(resp.data["data"]["team_id"])
        self.assertEqual(self.blue.members.count(), 0)

    def test_update_to_missing_team(self):
        resp = self.admin_client.patch(f"{self.base_url}{self.player.pk}/", {"team_id": 999999}, format="json")
        self.assertEqual(resp.status_code, 404)

    def test_update_requires_admin(self):
        client = self.auth_client("player")
        resp = client.patch(f"{self.base_url}{self.player.pk}/", {"fullname": "Me"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_delete_participant(self):
        victim = self.make_participant("victim", team=self.red)
        resp = self.admin_client.delete(f"{self.base_url}{victim.pk}/")
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Participant.objects.filter(pk=victim.pk).exists())
        self.assertEqual(self.red.members.count(), 0)
        self.assertTrue(Team.objects.filter(pk=self.red.pk).exists())
