"""
剧情业务服务

- 章节 / 故事 / 题目的增删改查
- 题目变动后重算所属故事的 challenge_count（改派时新旧故事都重算）
- Flag 只对 admin / author 输出，序列化时由调用方传入 show_flag
"""

from __future__ import annotations

from typing import Any

from django.db import IntegrityError

from apps.common.base.base_service import BaseService
from apps.common.exceptions import DuplicateFieldError
from apps.common.infra.logger import get_logger, logger_extra

from .models import Challenge, Chapter, Story
from .repo import ChallengeRepo, ChapterRepo, StoryRepo
from .schemas import (
    ChallengeCreateSchema,
    ChallengeUpdateSchema,
    ChapterCreateSchema,
    ChapterUpdateSchema,
    StoryCreateSchema,
    StoryUpdateSchema,
)

logger = get_logger(__name__)


def serialize_challenge(challenge: Challenge, *, show_flag: bool) -> dict:
    data = {
        "id": challenge.pk,
        "story_id": challenge.story_id,
        "story_number": challenge.story_number,
        "score": challenge.score,
    }
    if show_flag:
        data["flag"] = challenge.flag
    return data


def serialize_story(story: Story, *, show_flag: bool) -> dict:
    challenges = list(story.challenges.all())  # type: ignore[attr-defined]
    return {
        "id": story.pk,
        "chapter_id": story.chapter_id,
        "story_number": story.story_number,
        "script": story.script,
        "challenge_count": story.challenge_count,
        "challenges": [serialize_challenge(c, show_flag=show_flag) for c in challenges],
    }


def serialize_chapter(chapter: Chapter, *, show_flag: bool) -> dict:
    stories = [serialize_story(s, show_flag=show_flag) for s in chapter.stories.all()]  # type: ignore[attr-defined]
    return {
        "id": chapter.pk,
        "chapter_number": chapter.chapter_number,
        "chapter_code": chapter.chapter_code,
        "image": chapter.image,
        "script": chapter.script,
        "story_count": len(stories),
        "challenge_count": sum(s["challenge_count"] for s in stories),
        "stories": stories,
    }


# ======================
# 章节
# ======================

class ChapterListService(BaseService[list]):
    """章节列表：按章节序号升序，附带故事与题目"""

    atomic_enabled = False

    def __init__(self, chapter_repo: ChapterRepo | None = None):
        self.chapter_repo = chapter_repo or ChapterRepo()

    def perform(self, *, show_flag: bool = False) -> list:
        return [serialize_chapter(c, show_flag=show_flag) for c in self.chapter_repo.list_ordered()]


class ChapterDetailService(BaseService[dict]):
    atomic_enabled = False

    def __init__(self, chapter_repo: ChapterRepo | None = None):
        self.chapter_repo = chapter_repo or ChapterRepo()

    def perform(self, chapter_id: Any, *, show_flag: bool = False) -> dict:
        return serialize_chapter(self.chapter_repo.get_detail(chapter_id), show_flag=show_flag)


class ChapterCreateService(BaseService[dict]):
    """创建章节：章节编码与序号均不可重复"""

    def __init__(self, chapter_repo: ChapterRepo | None = None):
        self.chapter_repo = chapter_repo or ChapterRepo()

    def _check_unique(self, values: dict, exclude_pk: Any = None) -> None:
        if "chapter_code" in values and self.chapter_repo.code_exists(values["chapter_code"], exclude_pk=exclude_pk):
            raise DuplicateFieldError("chapter_code", message="章节编码已存在")
        if "chapter_number" in values and self.chapter_repo.number_exists(
                values["chapter_number"], exclude_pk=exclude_pk
        ):
            raise DuplicateFieldError("chapter_number", message="章节序号已存在")

    def perform(self, schema: ChapterCreateSchema) -> dict:
        values = schema.to_model_kwargs()
        self._check_unique(values)
        try:
            with self.atomic():
                chapter = self.chapter_repo.create(values)
        except IntegrityError as exc:
            raise DuplicateFieldError("chapter_code", message="章节编码或序号已存在") from exc
        logger.info(
            "创建章节",
            extra=logger_extra({"chapter_id": chapter.pk, "chapter_number": chapter.chapter_number}),
        )
        return ChapterDetailService(self.chapter_repo).perform(chapter.pk, show_flag=True)


class ChapterUpdateService(ChapterCreateService):
    """更新章节：唯一性校验排除自身"""

    def perform(self, chapter_id: Any, schema: ChapterUpdateSchema) -> dict:  # type: ignore[override]
        chapter = self.chapter_repo.get_for_update(chapter_id)
        changes = schema.changes()
        self._check_unique(changes, exclude_pk=chapter.pk)
        try:
            with self.atomic():
                self.chapter_repo.update(chapter, changes)
        except IntegrityError as exc:
            raise DuplicateFieldError("chapter_code", message="章节编码或序号已存在") from exc
        logger.info("更新章节", extra=logger_extra({"chapter_id": chapter.pk, "fields": sorted(changes)}))
        return ChapterDetailService(self.chapter_repo).perform(chapter.pk, show_flag=True)


class ChapterDeleteService(BaseService[None]):
    """删除章节：其下故事与题目一并删除"""

    def __init__(self, chapter_repo: ChapterRepo | None = None):
        self.chapter_repo = chapter_repo or ChapterRepo()

    def perform(self, chapter_id: Any) -> None:
        chapter = self.chapter_repo.get_for_update(chapter_id)
        pk = chapter.pk
        self.chapter_repo.delete(chapter)
        logger.info("删除章节", extra=logger_extra({"chapter_id": pk}))


# ======================
# 故事
# ======================

class StoryListService(BaseService[list]):
    atomic_enabled = False

    def __init__(self, story_repo: StoryRepo | None = None):
        self.story_repo = story_repo or StoryRepo()

    def perform(self, *, show_flag: bool = False) -> list:
        return [serialize_story(s, show_flag=show_flag) for s in self.story_repo.list_ordered()]


class StoryDetailService(BaseService[dict]):
    atomic_enabled = False

    def __init__(self, story_repo: StoryRepo | None = None):
        self.story_repo = story_repo or StoryRepo()

    def perform(self, story_id: Any, *, show_flag: bool = False) -> dict:
        return serialize_story(self.story_repo.get_detail(story_id), show_flag=show_flag)


class StoryCreateService(BaseService[dict]):
    """创建故事：章节必须存在，challenge_count 从 0 开始"""

    def __init__(self, story_repo: StoryRepo | None = None, chapter_repo: ChapterRepo | None = None):
        self.story_repo = story_repo or StoryRepo()
        self.chapter_repo = chapter_repo or ChapterRepo()

    def perform(self, schema: StoryCreateSchema) -> dict:
        chapter = self.chapter_repo.get_by_id(schema.chapter_id)
        story = self.story_repo.create(
            {"chapter": chapter, "story_number": schema.story_number, "script": schema.script, "challenge_count": 0}
        )
        logger.info("创建故事", extra=logger_extra({"story_id": story.pk, "chapter_id": chapter.pk}))
        return StoryDetailService(self.story_repo).perform(story.pk, show_flag=True)


class StoryUpdateService(BaseService[dict]):
    """
    更新故事
    - 改派章节时目标章节必须存在
    - 重新编号时其下题目的 story_number 跟随
    """

    def __init__(self, story_repo: StoryRepo | None = None, chapter_repo: ChapterRepo | None = None):
        self.story_repo = story_repo or StoryRepo()
        self.chapter_repo = chapter_repo or ChapterRepo()

    def perform(self, story_id: Any, schema: StoryUpdateSchema) -> dict:
        story = self.story_repo.get_for_update(story_id)
        changes = schema.changes()
        if "chapter_id" in changes:
            self.chapter_repo.get_by_id(changes["chapter_id"])
        renumbered = "story_number" in changes and changes["story_number"] != story.story_number
        self.story_repo.update(story, changes)
        if renumbered:
            self.story_repo.sync_challenge_numbers(story)
        logger.info("更新故事", extra=logger_extra({"story_id": story.pk, "fields": sorted(changes)}))
        return StoryDetailService(self.story_repo).perform(story.pk, show_flag=True)


class StoryDeleteService(BaseService[None]):
    """删除故事：其下题目一并删除"""

    def __init__(self, story_repo: StoryRepo | None = None):
        self.story_repo = story_repo or StoryRepo()

    def perform(self, story_id: Any) -> None:
        story = self.story_repo.get_for_update(story_id)
        pk = story.pk
        self.story_repo.delete(story)
        logger.info("删除故事", extra=logger_extra({"story_id": pk}))


# ======================
# 题目
# ======================

class ChallengeListService(BaseService[list]):
    """题目列表：按分值降序"""

    atomic_enabled = False

    def __init__(self, challenge_repo: ChallengeRepo | None = None):
        self.challenge_repo = challenge_repo or ChallengeRepo()

    def perform(self, *, show_flag: bool = False) -> list:
        return [serialize_challenge(c, show_flag=show_flag) for c in self.challenge_repo.list_ordered()]


class ChallengeDetailService(BaseService[dict]):
    atomic_enabled = False

    def __init__(self, challenge_repo: ChallengeRepo | None = None):
        self.challenge_repo = challenge_repo or ChallengeRepo()

    def perform(self, challenge_id: Any, *, show_flag: bool = False) -> dict:
        return serialize_challenge(self.challenge_repo.get_by_id(challenge_id), show_flag=show_flag)


class ChallengeCreateService(BaseService[dict]):
    """创建题目：故事必须存在，创建后重算该故事的题目数量"""

    def __init__(self, challenge_repo: ChallengeRepo | None = None, story_repo: StoryRepo | None = None):
        self.challenge_repo = challenge_repo or ChallengeRepo()
        self.story_repo = story_repo or StoryRepo()

    def perform(self, schema: ChallengeCreateSchema) -> dict:
        story = self.story_repo.get_for_update(schema.story_id)
        challenge = self.challenge_repo.create(
            {
                "story": story,
                "flag": schema.flag,
                "story_number": schema.story_number or story.story_number,
                "score": schema.score,
            }
        )
        count = self.story_repo.recount_challenges(story.pk)
        logger.info(
            "创建题目",
            extra=logger_extra({"challenge_id": challenge.pk, "story_id": story.pk, "challenge_count": count}),
        )
        return serialize_challenge(challenge, show_flag=True)


class ChallengeUpdateService(BaseService[dict]):
    """
    更新题目
    - 改派故事时 story_number 取新故事的序号
    - 新旧故事的 challenge_count 都重算
    """

    def __init__(self, challenge_repo: ChallengeRepo | None = None, story_repo: StoryRepo | None = None):
        self.challenge_repo = challenge_repo or ChallengeRepo()
        self.story_repo = story_repo or StoryRepo()

    def perform(self, challenge_id: Any, schema: ChallengeUpdateSchema) -> dict:
        challenge = self.challenge_repo.get_for_update(challenge_id)
        original_story_id = challenge.story_id
        changes = schema.changes()
        if "story_id" in changes:
            story = self.story_repo.get_by_id(changes["story_id"])
            changes["story_number"] = story.story_number
        self.challenge_repo.update(challenge, changes)

        if challenge.story_id != original_story_id:
            self.story_repo.recount_challenges(original_story_id)
        self.story_repo.recount_challenges(challenge.story_id)
        logger.info(
            "更新题目",
            extra=logger_extra({
                "challenge_id": challenge.pk,
                "fields": sorted(changes),
                "previous_story_id": original_story_id,
            }),
        )
        return serialize_challenge(challenge, show_flag=True)


class ChallengeDeleteService(BaseService[None]):
    """删除题目后重算所属故事的题目数量"""

    def __init__(self, challenge_repo: ChallengeRepo | None = None, story_repo: StoryRepo | None = None):
        self.challenge_repo = challenge_repo or ChallengeRepo()
        self.story_repo = story_repo or StoryRepo()

    def perform(self, challenge_id: Any) -> None:
        challenge = self.challenge_repo.get_for_update(challenge_id)
        pk, story_id = challenge.pk, challenge.story_id
        self.challenge_repo.delete(challenge)
        self.story_repo.recount_challenges(story_id)
        logger.info("删除题目", extra=logger_extra({"challenge_id": pk, "story_id": story_id}))
