from __future__ import annotations

from django.conf import settings
from django.test import override_settings
from rest_framework.test import APITestCase

from apps.accounts.roles import ADMIN, AUTHOR
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.stories.models import Challenge, Chapter, Story


@override_settings(
    REST_FRAMEWORK={
        **settings.REST_FRAMEWORK,
        "DEFAULT_THROTTLE_RATES": {
            **settings.REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
            "login": "1000/min",
        },
    },
)
class StoriesAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """
    剧情模块接口测试：
    - 章节编码 / 序号唯一
    - 题目增删改后 challenge_count 同步
    - Flag 仅 admin / author 可见
    """

    @classmethod
    def setUpTestData(cls):
        cls.make_participant("gm", role=ADMIN)
        cls.make_participant("writer", role=AUTHOR)
        cls.make_participant("player")
        cls.chapter = Chapter.objects.create(chapter_number=1, chapter_code="CH-1", script="序章")
        cls.story = Story.objects.create(chapter=cls.chapter, story_number=1, script="开端")
        cls.other_story = Story.objects.create(chapter=cls.chapter, story_number=2, script="转折")

    def setUp(self):
        super().setUp()
        self.admin_client = self.auth_client("gm")

    def _create_challenge(self, story: Story, score: int = 10, **extra) -> dict:
        resp = self.admin_client.post(
            "/api/challenges/",
            {"storyId": story.pk, "flag": "FLAG{x}", "challengeScore": score, **extra},
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.data["data"]

    # ---------- 章节 ----------

    def test_create_chapter(self):
        resp = self.admin_client.post(
            "/api/chapters/",
            {"chapterNumber": 2, "chapterCode": "CH-2", "chapterScript": "第二章", "chapterImage": ""},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["data"]["story_count"], 0)

    def test_chapter_duplicates(self):
        resp = self.admin_client.post(
            "/api/chapters/", {"chapter_number": 1, "chapter_code": "NEW", "script": "x"}, format="json"
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["extra"]["field"], "chapter_number")
        resp = self.admin_client.post(
            "/api/chapters/", {"chapter_number": 9, "chapter_code": "CH-1", "script": "x"}, format="json"
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["extra"]["field"], "chapter_code")

    def test_chapter_number_must_be_positive(self):
        resp = self.admin_client.post(
            "/api/chapters/", {"chapter_number": 0, "chapter_code": "Z", "script": "x"}, format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_chapter_list_ordered_and_nested(self):
        Chapter.objects.create(chapter_number=3, chapter_code="CH-3", script="")
        Chapter.objects.create(chapter_number=2, chapter_code="CH-2", script="")
        self._create_challenge(self.story, score=5)
        client = self.auth_client("player")
        resp = client.get("/api/chapters/")
        self.assertEqual(resp.status_code, 200)
        numbers = [c["chapter_number"] for c in resp.data["data"]]
        self.assertEqual(numbers, [1, 2, 3])
        first = resp.data["data"][0]
        self.assertEqual([s["story_number"] for s in first["stories"]], [1, 2])
        self.assertEqual(first["challenge_count"], 1)
        self.assertNotIn("flag", first["stories"][0]["challenges"][0])

    def test_update_chapter_excludes_self(self):
        resp = self.admin_client.patch(
            f"/api/chapters/{self.chapter.pk}/", {"chapter_code": "CH-1", "script": "新序章"}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["script"], "新序章")

    def test_delete_chapter_cascades(self):
        self._create_challenge(self.story)
        resp = self.admin_client.delete(f"/api/chapters/{self.chapter.pk}/")
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Story.objects.exists())
        self.assertFalse(Challenge.objects.exists())

    # ---------- 故事 ----------

    def test_create_story_requires_existing_chapter(self):
        resp = self.admin_client.post(
            "/api/stories/", {"chapterId": 999999, "storyNumber": 1, "storyScript": "x"}, format="json"
        )
        self.assertEqual(resp.status_code, 404)

    def test_create_story(self):
        resp = self.admin_client.post(
            "/api/stories/", {"chapterId": self.chapter.pk, "storyNumber": 3, "storyScript": "终章"}, format="json"
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["data"]["challenge_count"], 0)

    def test_renumber_story_moves_challenge_numbers(self):
        created = self._create_challenge(self.story)
        resp = self.admin_client.patch(f"/api/stories/{self.story.pk}/", {"story_number": 7}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Challenge.objects.get(pk=created["id"]).story_number, 7)

    # ---------- 题目 ----------

    def test_challenge_defaults_story_number_and_counts(self):
        data = self._create_challenge(self.other_story)
        self.assertEqual(data["story_number"], 2)
        self.assertEqual(data["flag"], "FLAG{x}")
        self.other_story.refresh_from_db()
        self.assertEqual(self.other_story.challenge_count, 1)

    def test_challenge_reassign_updates_both_counts(self):
        data = self._create_challenge(self.story)
        resp = self.admin_client.patch(
            f"/api/challenges/{data['id']}/", {"storyId": self.other_story.pk}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["story_number"], self.other_story.story_number)
        self.story.refresh_from_db()
        self.other_story.refresh_from_db()
        self.assertEqual(self.story.challenge_count, 0)
        self.assertEqual(self.other_story.challenge_count, 1)

    def test_delete_challenge_recounts(self):
        data = self._create_challenge(self.story)
        self._create_challenge(self.story, score=20)
        resp = self.admin_client.delete(f"/api/challenges/{data['id']}/")
        self.assertEqual(resp.status_code, 204)
        self.story.refresh_from_db()
        self.assertEqual(self.story.challenge_count, 1)

    def test_challenge_list_by_score_desc(self):
        self._create_challenge(self.story, score=5)
        self._create_challenge(self.story, score=50)
        self._create_challenge(self.other_story, score=20)
        resp = self.auth_client("writer").get("/api/challenges/")
        self.assertEqual([c["score"] for c in resp.data["data"]], [50, 20, 5])
        self.assertIn("flag", resp.data["data"][0])

    def test_flag_hidden_from_participant(self):
        data = self._create_challenge(self.story)
        resp = self.auth_client("player").get(f"/api/challenges/{data['id']}/")
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn("flag", resp.data["data"])

    def test_negative_score_rejected(self):
        resp = self.admin_client.post(
            "/api/challenges/", {"story_id": self.story.pk, "flag": "F", "score": -1}, format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_out_of_range_values_rejected(self):
        resp = self.admin_client.post(
            "/api/challenges/", {"story_id": self.story.pk, "flag": "F", "score": 10 ** 20}, format="json"
        )
        self.assertEqual(resp.status_code, 400)
        resp = self.admin_client.post(
            "/api/chapters/",
            {"chapter_number": 2, "chapter_code": "CH-2", "script": "", "image": "https://example.com/" + "a" * 500},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(Challenge.objects.exists())
        self.assertFalse(Chapter.objects.filter(chapter_code="CH-2").exists())

    # ---------- 权限 ----------

    def test_reads_require_authentication(self):
        for url in ("/api/chapters/", "/api/stories/", "/api/challenges/"):
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, 401)

    def test_writes_require_admin(self):
        client = self.auth_client("writer")
        resp = client.post("/api/chapters/", {"chapter_number": 5, "chapter_code": "A", "script": ""}, format="json")
        self.assertEqual(resp.status_code, 403)
        resp = client.delete(f"/api/stories/{self.story.pk}/")
        self.assertEqual(resp.status_code, 403)
