"""
队伍模型

- 分数非负，排名不落库：每次读取时按全体队伍分数实时计算（见 ranking.compute_ranks）
- 成员关系的唯一事实来源是 Participant.team 外键，Team.members 为反向查询
"""

from __future__ import annotations

from django.db import models


class Team(models.Model):
    """队伍"""

    # 队伍名称，全局唯一
    name = models.CharField("队伍名称", max_length=255, unique=True)
    # 当前分数，非负
    score = models.PositiveIntegerField("分数", default=0)
    # 队伍图片链接，可为空
    image = models.URLField("队伍图片", max_length=500, blank=True, default="")
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["-score", "id"]
        indexes = [models.Index(fields=["-score", "id"], name="team_score_idx")]
        verbose_name = "队伍"
        verbose_name_plural = "队伍"

    def __str__(self) -> str:
        return self.name

    @property
    def member_count(self) -> int:
        """当前成员数量；列表查询时优先使用预取结果，避免 N+1"""
        cache = getattr(self, "_prefetched_objects_cache", {})
        if "members" in cache:
            return len(cache["members"])
        return self.members.count()  # type: ignore[attr-defined]
