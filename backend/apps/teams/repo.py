from __future__ import annotations

from typing import Any, List, Optional, Tuple

from django.contrib.auth import get_user_model
from django.db.models import Prefetch, QuerySet
from django.utils import timezone

from apps.common.base.base_repo import BaseRepo

from .models import Team

Participant = get_user_model()


class TeamRepo(BaseRepo[Team]):
    """队伍仓储：队伍读写、全量分数快照"""

    model = Team
    not_found_message = "队伍不存在"

    def with_members(self, queryset: Optional[QuerySet[Team]] = None) -> QuerySet[Team]:
        """预取成员（按 id 排序），序列化成员列表与 member_count 不再逐队查询"""
        qs = queryset if queryset is not None else self.get_queryset()
        return qs.prefetch_related(
            Prefetch("members", queryset=Participant.objects.order_by("id"))
        )

    def list_ordered(self) -> List[Team]:
        """按分数降序、id 升序返回全部队伍"""
        return list(self.with_members().order_by("-score", "id"))

    def get_detail(self, pk: Any) -> Team:
        return self.get_by_id(pk, queryset=self.with_members())

    def score_snapshot(self) -> List[Tuple[int, int]]:
        """
        全体队伍 (id, score) 快照
        - 单条 SELECT，读到的是某一时刻已提交的一致数据
        """
        return list(self.model._default_manager.values_list("id", "score"))

    def name_exists(self, name: str, *, exclude_pk: Any = None) -> bool:
        return self.exists(name=name, exclude_pk=exclude_pk)


class MembershipRepo:
    """
    成员关系仓储

    成员集合由 Participant.team 外键派生：
    - 参与者在队伍 T 的成员集合中 ⇔ participant.team_id == T.id
    - 因此“当前队伍”与“成员集合”不可能出现不一致
    """

    @staticmethod
    def is_member(team: Team, participant) -> bool:
        return participant.team_id == team.pk

    @staticmethod
    def members_of(team: Team) -> QuerySet:
        return Participant.objects.filter(team=team).order_by("id")

    def add_member(self, team: Team, participant) -> Optional[int]:
        """
        加入队伍并设置当前队伍，返回原队伍 id
        - 是否已是该队成员由调用方判断
        - 原先在其他队伍时自动离开原队
        """
        previous_team_id = participant.team_id
        self.set_team(participant, team)
        return previous_team_id

    def remove_member(self, team: Team, participant) -> bool:
        """移出队伍；不在该队时不做任何修改，返回是否发生了移除"""
        if not self.is_member(team, participant):
            return False
        self.set_team(participant, None)
        return True

    @staticmethod
    def set_team(participant, team: Optional[Team]) -> None:
        participant.team = team
        participant.team_joined_at = timezone.now() if team is not None else None
        participant.save(update_fields=["team", "team_joined_at", "updated_at"])

    @staticmethod
    def detach_all(team: Team) -> int:
        """清空队伍的全部成员，返回受影响人数"""
        return Participant.objects.filter(team=team).update(
            team=None, team_joined_at=None, updated_at=timezone.now()
        )
