"""
队伍业务服务

- 读：队伍详情 / 列表，附带成员数与实时排名
- 写：创建、更新、删除队伍；成员加入、移出、改派
- 所有写操作在事务中执行；涉及成员关系时先锁队伍行、再锁参与者行，顺序固定
"""

from __future__ import annotations

from typing import Any, Optional

from django.db import IntegrityError

from apps.accounts.repo import ParticipantRepo
from apps.common.base.base_service import BaseService
from apps.common.exceptions import AlreadyTeamMemberError, DuplicateFieldError
from apps.common.infra.logger import get_logger, logger_extra

from .models import Team
from .ranking import compute_ranks
from .repo import MembershipRepo, TeamRepo
from .schemas import TeamCreateSchema, TeamUpdateSchema, normalize_team_ref

logger = get_logger(__name__)


def serialize_member(participant) -> dict:
    """成员公开字段，不含密码等敏感信息"""
    return {
        "id": participant.pk,
        "fullname": participant.fullname,
        "username": participant.username,
        "email": participant.email,
        "registration_number": participant.registration_number,
        "role": participant.role,
    }


def serialize_team(team: Team, rank: int) -> dict:
    members = list(team.members.all())  # type: ignore[attr-defined]
    return {
        "id": team.pk,
        "name": team.name,
        "score": team.score,
        "image": team.image,
        "rank": rank,
        "member_count": len(members),
        "members": [serialize_member(m) for m in members],
        "created_at": team.created_at.isoformat() if team.created_at else None,
        "updated_at": team.updated_at.isoformat() if team.updated_at else None,
    }


def _rank_for(team: Team, snapshot: list[tuple[int, int]]) -> int:
    """
    在全量快照中取目标队伍名次
    - 队伍行与快照是两次查询，快照缺失该队伍时以其当前分数补入后再算
    """
    ranks = compute_ranks(snapshot)
    if team.pk in ranks:
        return ranks[team.pk]
    return compute_ranks([*snapshot, (team.pk, team.score)])[team.pk]


class TeamDetailService(BaseService[dict]):
    """队伍详情：成员列表 + member_count + 基于全体队伍的实时名次"""

    atomic_enabled = False

    def __init__(self, team_repo: TeamRepo | None = None):
        self.team_repo = team_repo or TeamRepo()

    def perform(self, team_id: Any) -> dict:
        team = self.team_repo.get_detail(team_id)
        return serialize_team(team, _rank_for(team, self.team_repo.score_snapshot()))


class TeamListService(BaseService[list]):
    """
    队伍列表：按分数降序
    - 名次由同一次查询得到的全部队伍分数计算，不依赖列表位置
    """

    atomic_enabled = False

    def __init__(self, team_repo: TeamRepo | None = None):
        self.team_repo = team_repo or TeamRepo()

    def perform(self) -> list:
        teams = self.team_repo.list_ordered()
        ranks = compute_ranks((team.pk, team.score) for team in teams)
        return [serialize_team(team, ranks[team.pk]) for team in teams]


class TeamCreateService(BaseService[dict]):
    """创建队伍：名称唯一，分数默认 0"""

    def __init__(self, team_repo: TeamRepo | None = None):
        self.team_repo = team_repo or TeamRepo()

    def perform(self, schema: TeamCreateSchema) -> dict:
        # 1) 名称唯一
        if self.team_repo.name_exists(schema.name):
            logger.warning("创建队伍失败：名称重复", extra=logger_extra({"team_name": schema.name}))
            raise DuplicateFieldError("name", message="队伍名称已存在")
        # 2) 落库；并发创建同名队伍时由唯一索引兜底
        try:
            with self.atomic():
                team = self.team_repo.create(schema.to_model_kwargs())
        except IntegrityError as exc:
            raise DuplicateFieldError("name", message="队伍名称已存在") from exc
        logger.info("创建队伍", extra=logger_extra({"team_id": team.pk, "team_name": team.name}))
        return TeamDetailService(self.team_repo).perform(team.pk)


class TeamUpdateService(BaseService[dict]):
    """更新队伍名称 / 分数 / 图片；名次不可写，随分数变化在读取时重新计算"""

    def __init__(self, team_repo: TeamRepo | None = None):
        self.team_repo = team_repo or TeamRepo()

    def perform(self, team_id: Any, schema: TeamUpdateSchema) -> dict:
        team = self.team_repo.get_for_update(team_id)
        changes = schema.changes()
        if "name" in changes and self.team_repo.name_exists(changes["name"], exclude_pk=team.pk):
            logger.warning(
                "更新队伍失败：名称重复",
                extra=logger_extra({"team_id": team.pk, "team_name": changes["name"]}),
            )
            raise DuplicateFieldError("name", message="队伍名称已存在")
        try:
            with self.atomic():
                self.team_repo.update(team, changes)
        except IntegrityError as exc:
            raise DuplicateFieldError("name", message="队伍名称已存在") from exc
        logger.info(
            "更新队伍",
            extra=logger_extra({"team_id": team.pk, "fields": sorted(changes)}),
        )
        return TeamDetailService(self.team_repo).perform(team.pk)


class TeamDeleteService(BaseService[None]):
    """
    删除队伍：
    - 成员不删除，只清空其当前队伍引用
    - 清空与删除在同一事务内完成，外部不会看到悬空引用
    """

    def __init__(self, team_repo: TeamRepo | None = None, membership_repo: MembershipRepo | None = None):
        self.team_repo = team_repo or TeamRepo()
        self.membership_repo = membership_repo or MembershipRepo()

    def perform(self, team_id: Any) -> None:
        team = self.team_repo.get_for_update(team_id)
        detached = self.membership_repo.detach_all(team)
        pk = team.pk
        self.team_repo.delete(team)
        logger.info("删除队伍", extra=logger_extra({"team_id": pk, "detached_members": detached}))


class AddParticipantToTeamService(BaseService[dict]):
    """
    将参与者加入队伍
    - 任一 id 不存在 → NotFoundError
    - 已是该队成员 → AlreadyTeamMemberError
    - 原属其他队伍时一并离开原队（单队伍约束）
    """

    def __init__(
            self,
            team_repo: TeamRepo | None = None,
            participant_repo: ParticipantRepo | None = None,
            membership_repo: MembershipRepo | None = None,
    ):
        self.team_repo = team_repo or TeamRepo()
        self.participant_repo = participant_repo or ParticipantRepo()
        self.membership_repo = membership_repo or MembershipRepo()

    def perform(self, team_id: Any, participant_id: Any) -> dict:
        team = self.team_repo.get_for_update(team_id)
        participant = self.participant_repo.get_for_update(participant_id)
        if self.membership_repo.is_member(team, participant):
            logger.warning(
                "加入队伍失败：已是该队成员",
                extra=logger_extra({"team_id": team.pk, "participant_id": participant.pk}),
            )
            raise AlreadyTeamMemberError()
        previous_team_id = self.membership_repo.add_member(team, participant)
        logger.info(
            "参与者加入队伍",
            extra=logger_extra({
                "team_id": team.pk,
                "participant_id": participant.pk,
                "previous_team_id": previous_team_id,
            }),
        )
        return TeamDetailService(self.team_repo).perform(team.pk)


class RemoveParticipantFromTeamService(BaseService[dict]):
    """
    将参与者移出队伍
    - 任一 id 不存在 → NotFoundError
    - 不在该队时不报错也不做修改（幂等）
    """

    def __init__(
            self,
            team_repo: TeamRepo | None = None,
            participant_repo: ParticipantRepo | None = None,
            membership_repo: MembershipRepo | None = None,
    ):
        self.team_repo = team_repo or TeamRepo()
        self.participant_repo = participant_repo or ParticipantRepo()
        self.membership_repo = membership_repo or MembershipRepo()

    def perform(self, team_id: Any, participant_id: Any) -> dict:
        team = self.team_repo.get_for_update(team_id)
        participant = self.participant_repo.get_for_update(participant_id)
        removed = self.membership_repo.remove_member(team, participant)
        if removed:
            logger.info(
                "参与者移出队伍",
                extra=logger_extra({"team_id": team.pk, "participant_id": participant.pk}),
            )
        return {"removed": removed, "team": TeamDetailService(self.team_repo).perform(team.pk)}


class ReassignParticipantTeamService(BaseService[Any]):
    """
    改派参与者的当前队伍
    - new_team_id 为 None / 0：离开当前队伍
    - 否则目标队伍必须存在；离开原队与加入新队在同一事务内完成
    - 已在目标队伍时保持不变
    """

    def __init__(
            self,
            team_repo: TeamRepo | None = None,
            participant_repo: ParticipantRepo | None = None,
            membership_repo: MembershipRepo | None = None,
    ):
        self.team_repo = team_repo or TeamRepo()
        self.participant_repo = participant_repo or ParticipantRepo()
        self.membership_repo = membership_repo or MembershipRepo()

    def perform(self, participant_id: Any, new_team_id: Optional[Any]):
        team_id = normalize_team_ref(new_team_id)
        team = self.team_repo.get_for_update(team_id) if team_id is not None else None
        participant = self.participant_repo.get_for_update(participant_id)
        previous_team_id = participant.team_id

        if team is None:
            if previous_team_id is not None:
                self.membership_repo.set_team(participant, None)
        elif previous_team_id != team.pk:
            self.membership_repo.set_team(participant, team)

        if previous_team_id != participant.team_id:
            logger.info(
                "改派参与者队伍",
                extra=logger_extra({
                    "participant_id": participant.pk,
                    "previous_team_id": previous_team_id,
                    "team_id": participant.team_id,
                }),
            )
        return participant
