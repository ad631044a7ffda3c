"""
账户业务服务

- 认证：登录、刷新、注销
- 参与者：列表、详情、创建、更新、删除
- 涉及队伍的变更统一交给 teams 模块的 ReassignParticipantTeamService，
  保证“离开原队 + 加入新队”在同一事务中完成
"""

from __future__ import annotations

from typing import Any

from django.db import IntegrityError

from apps.common.base.base_service import BaseService
from apps.common.exceptions import (
    AccountInactiveError,
    ConflictError,
    DuplicateFieldError,
    InvalidCredentialsError,
)
from apps.common.infra.jwt_provider import issue_tokens, refresh_access, revoke_refresh
from apps.common.infra.logger import get_logger, logger_extra
from apps.teams.services import ReassignParticipantTeamService

from .models import Participant
from .repo import UNIQUE_FIELDS, ParticipantRepo
from .schemas import LoginSchema, ParticipantCreateSchema, ParticipantUpdateSchema, RefreshTokenSchema

logger = get_logger(__name__)


def serialize_participant(participant: Participant) -> dict[str, object]:
    """参与者输出字段，永不包含密码"""
    return {
        "id": participant.pk,
        "fullname": participant.fullname,
        "username": participant.username,
        "email": participant.email,
        "phone_number": participant.phone_number,
        "registration_number": participant.registration_number,
        "role": participant.role,
        "team_id": participant.team_id,
        "team_joined_at": participant.team_joined_at.isoformat() if participant.team_joined_at else None,
        "date_joined": participant.date_joined.isoformat() if participant.date_joined else None,
        "updated_at": participant.updated_at.isoformat() if participant.updated_at else None,
    }


def _raise_duplicate(field: str, extra_log: dict) -> None:
    logger.warning("参与者唯一字段冲突", extra=logger_extra({**extra_log, "field": field}))
    raise DuplicateFieldError(field, message=UNIQUE_FIELDS[field])


# ======================
# 认证
# ======================

class LoginService(BaseService[dict[str, object]]):
    """校验用户名与密码，颁发 access / refresh 令牌"""

    atomic_enabled = False

    def __init__(self, participant_repo: ParticipantRepo | None = None):
        self.participant_repo = participant_repo or ParticipantRepo()

    def perform(self, schema: LoginSchema) -> dict[str, object]:
        participant = self.participant_repo.get_by_username(schema.username)
        if participant is None or not participant.check_password(schema.password):
            logger.warning("登录失败：用户名或密码错误", extra=logger_extra({"username": schema.username}))
            raise InvalidCredentialsError()
        if not participant.is_active:
            logger.warning("登录失败：账户已停用", extra=logger_extra({"participant_id": participant.pk}))
            raise AccountInactiveError()

        tokens = issue_tokens(participant)
        logger.info("登录成功", extra=logger_extra({"participant_id": participant.pk, "role": participant.role}))
        return {**tokens, "participant": serialize_participant(participant)}


class TokenRefreshService(BaseService[dict[str, str]]):
    """用 refresh 换取新的 access"""

    atomic_enabled = False

    def perform(self, schema: RefreshTokenSchema) -> dict[str, str]:
        return refresh_access(schema.refresh)


class LogoutService(BaseService[None]):
    """注销：拉黑 refresh 令牌，之后无法再刷新"""

    def perform(self, participant: Participant, schema: RefreshTokenSchema) -> None:
        revoke_refresh(schema.refresh)
        logger.info("注销登录", extra=logger_extra({"participant_id": participant.pk}))


# ======================
# 参与者管理
# ======================

class ParticipantListService(BaseService[list]):
    atomic_enabled = False

    def __init__(self, participant_repo: ParticipantRepo | None = None):
        self.participant_repo = participant_repo or ParticipantRepo()

    def perform(self) -> list:
        return [serialize_participant(p) for p in self.participant_repo.list()]


class ParticipantDetailService(BaseService[dict]):
    atomic_enabled = False

    def __init__(self, participant_repo: ParticipantRepo | None = None):
        self.participant_repo = participant_repo or ParticipantRepo()

    def perform(self, participant_id: Any) -> dict:
        return serialize_participant(self.participant_repo.get_by_id(participant_id))


class ParticipantCreateService(BaseService[dict]):
    """
    创建参与者
    - 用户名 / 邮箱 / 注册号任一重复 → DuplicateFieldError
    - 指定 team_id 时加入该队伍，队伍不存在 → NotFoundError（参与者不会被创建）
    """

    def __init__(
            self,
            participant_repo: ParticipantRepo | None = None,
            reassign_service: ReassignParticipantTeamService | None = None,
    ):
        self.participant_repo = participant_repo or ParticipantRepo()
        self.reassign_service = reassign_service or ReassignParticipantTeamService()

    def perform(self, schema: ParticipantCreateSchema) -> dict:
        fields = schema.profile_fields()
        # 1) 唯一字段
        conflict = self.participant_repo.first_conflict(fields)
        if conflict:
            _raise_duplicate(conflict, {"username": schema.username})
        # 2) 落库
        try:
            with self.atomic():
                participant = self.participant_repo.create_participant(password=schema.password, **fields)
        except IntegrityError as exc:
            raise ConflictError(message="参与者信息与已有记录冲突") from exc
        # 3) 初始队伍
        if schema.team_id is not None:
            participant = self.reassign_service.execute(participant.pk, schema.team_id)
        logger.info(
            "创建参与者",
            extra=logger_extra({"participant_id": participant.pk, "role": participant.role,
                                "team_id": participant.team_id}),
        )
        return serialize_participant(participant)


class ParticipantUpdateService(BaseService[dict]):
    """
    更新参与者
    - 唯一性校验排除自身
    - 密码经哈希后保存
    - 请求中带 team_id 时改派队伍（null / 0 清空）
    """

    def __init__(
            self,
            participant_repo: ParticipantRepo | None = None,
            reassign_service: ReassignParticipantTeamService | None = None,
    ):
        self.participant_repo = participant_repo or ParticipantRepo()
        self.reassign_service = reassign_service or ReassignParticipantTeamService()

    def perform(self, participant_id: Any, schema: ParticipantUpdateSchema) -> dict:
        # 改派队伍内部按“队伍行 → 参与者行”顺序加锁，因此先于资料更新执行
        if schema.has("team_id"):
            self.reassign_service.execute(participant_id, schema.team_id)
        participant = self.participant_repo.get_for_update(participant_id)

        changes = schema.profile_changes()
        conflict = self.participant_repo.first_conflict(changes, exclude_pk=participant.pk)
        if conflict:
            _raise_duplicate(conflict, {"participant_id": participant.pk})
        try:
            with self.atomic():
                self.participant_repo.update(participant, changes)
                if schema.has("password"):
                    self.participant_repo.set_password(participant, schema.password)
        except IntegrityError as exc:
            raise ConflictError(message="参与者信息与已有记录冲突") from exc

        logger.info(
            "更新参与者",
            extra=logger_extra({"participant_id": participant.pk, "fields": sorted(schema.provided)}),
        )
        return serialize_participant(participant)


class ParticipantDeleteService(BaseService[None]):
    """删除参与者：先离开所在队伍，再删除记录"""

    def __init__(
            self,
            participant_repo: ParticipantRepo | None = None,
            reassign_service: ReassignParticipantTeamService | None = None,
    ):
        self.participant_repo = participant_repo or ParticipantRepo()
        self.reassign_service = reassign_service or ReassignParticipantTeamService()

    def perform(self, participant_id: Any) -> None:
        participant = self.participant_repo.get_by_id(participant_id)
        previous_team_id = participant.team_id
        if previous_team_id is not None:
            participant = self.reassign_service.execute(participant.pk, None)
        pk = participant.pk
        self.participant_repo.delete(participant)
        logger.info(
            "删除参与者",
            extra=logger_extra({"participant_id": pk, "previous_team_id": previous_team_id}),
        )
