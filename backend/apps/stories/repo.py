from __future__ import annotations

from typing import Any, List, Optional

from django.db.models import Prefetch, QuerySet

from apps.common.base.base_repo import BaseRepo

from .models import Challenge, Chapter, Story


def _challenges_prefetch() -> Prefetch:
    # 故事内的题目按分值升序展示
    return Prefetch("challenges", queryset=Challenge.objects.order_by("score", "id"))


class ChapterRepo(BaseRepo[Chapter]):
    """章节仓储：附带故事与题目的整棵树"""

    model = Chapter
    not_found_message = "章节不存在"

    def with_tree(self, queryset: Optional[QuerySet[Chapter]] = None) -> QuerySet[Chapter]:
        qs = queryset if queryset is not None else self.get_queryset()
        return qs.prefetch_related(
            Prefetch(
                "stories",
                queryset=Story.objects.order_by("story_number", "id").prefetch_related(_challenges_prefetch()),
            )
        )

    def list_ordered(self) -> List[Chapter]:
        return list(self.with_tree().order_by("chapter_number"))

    def get_detail(self, pk: Any) -> Chapter:
        return self.get_by_id(pk, queryset=self.with_tree())

    def number_exists(self, chapter_number: int, *, exclude_pk: Any = None) -> bool:
        return self.exists(chapter_number=chapter_number, exclude_pk=exclude_pk)

    def code_exists(self, chapter_code: str, *, exclude_pk: Any = None) -> bool:
        return self.exists(chapter_code=chapter_code, exclude_pk=exclude_pk)


class StoryRepo(BaseRepo[Story]):
    """故事仓储"""

    model = Story
    not_found_message = "故事不存在"

    def with_challenges(self, queryset: Optional[QuerySet[Story]] = None) -> QuerySet[Story]:
        qs = queryset if queryset is not None else self.get_queryset()
        return qs.prefetch_related(_challenges_prefetch())

    def list_ordered(self) -> List[Story]:
        return list(self.with_challenges().order_by("story_number", "id"))

    def get_detail(self, pk: Any) -> Story:
        return self.get_by_id(pk, queryset=self.with_challenges())

    def recount_challenges(self, story_id: Any) -> int:
        """按题目表实际行数重写 challenge_count"""
        count = Challenge.objects.filter(story_id=story_id).count()
        self.model._default_manager.filter(pk=story_id).update(challenge_count=count)
        return count

    @staticmethod
    def sync_challenge_numbers(story: Story) -> int:
        """故事重新编号后，其下题目的 story_number 跟随"""
        return Challenge.objects.filter(story_id=story.pk).update(story_number=story.story_number)


class ChallengeRepo(BaseRepo[Challenge]):
    """题目仓储"""

    model = Challenge
    not_found_message = "题目不存在"

    def list_ordered(self) -> List[Challenge]:
        return list(self.get_queryset().order_by("-score", "id"))
