"""
剧情模型：章节 → 故事 → 题目，逐级级联删除

- Story.challenge_count 为冗余计数，由题目增删改的 Service 维护
- Challenge.story_number 默认取所属故事的编号，随故事改派或重新编号同步
"""

from __future__ import annotations

from django.db import models


class Chapter(models.Model):
    """章节"""

    # 章节序号，从 1 开始，全局唯一
    chapter_number = models.PositiveIntegerField("章节序号", unique=True)
    # 章节编码（前端展示用的字符串标识），全局唯一
    chapter_code = models.CharField("章节编码", max_length=100, unique=True)
    image = models.URLField("章节图片", max_length=500, blank=True, default="")
    script = models.TextField("章节剧本")
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["chapter_number"]
        verbose_name = "章节"
        verbose_name_plural = "章节"

    def __str__(self) -> str:
        return f"第{self.chapter_number}章 {self.chapter_code}"


class Story(models.Model):
    """故事"""

    chapter = models.ForeignKey(
        Chapter,
        verbose_name="所属章节",
        related_name="stories",
        on_delete=models.CASCADE,
    )
    story_number = models.PositiveIntegerField("故事序号")
    script = models.TextField("故事剧本")
    # 题目数量
    challenge_count = models.PositiveIntegerField("题目数量", default=0)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["story_number", "id"]
        verbose_name = "故事"
        verbose_name_plural = "故事"

    def __str__(self) -> str:
        return f"Story#{self.story_number} (chapter={self.chapter_id})"


class Challenge(models.Model):
    """题目"""

    story = models.ForeignKey(
        Story,
        verbose_name="所属故事",
        related_name="challenges",
        on_delete=models.CASCADE,
    )
    # 提交答案，仅 admin / author 可见
    flag = models.CharField("Flag", max_length=255)
    story_number = models.PositiveIntegerField("故事序号")
    score = models.PositiveIntegerField("分值", default=0)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["-score", "id"]
        verbose_name = "题目"
        verbose_name_plural = "题目"

    def __str__(self) -> str:
        return f"Challenge#{self.pk} ({self.score})"
