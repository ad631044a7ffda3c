"""参与者数据访问层：唯一性校验、登录查询与创建"""

from __future__ import annotations

from typing import Any, Optional

from django.db.models import QuerySet

from apps.common.base.base_repo import BaseRepo

from .models import Participant

#: 需全局唯一的身份字段 → 冲突提示
UNIQUE_FIELDS: dict[str, str] = {
    "username": "用户名已存在",
    "email": "邮箱已存在",
    "registration_number": "注册号已存在",
}


class ParticipantRepo(BaseRepo[Participant]):
    """参与者仓储"""

    model = Participant
    not_found_message = "参与者不存在"

    def get_queryset(self) -> QuerySet[Participant]:
        return super().get_queryset().order_by("id")

    def get_by_username(self, username: str) -> Optional[Participant]:
        return self.get_or_none(username=username)

    def first_conflict(self, values: dict[str, Any], *, exclude_pk: Any = None) -> Optional[str]:
        """
        按 username → email → registration_number 顺序检查唯一字段
        返回第一个冲突的字段名，没有冲突返回 None
        """
        for field in UNIQUE_FIELDS:
            value = values.get(field)
            if value in (None, ""):
                continue
            if self.exists(exclude_pk=exclude_pk, **{field: value}):
                return field
        return None

    def create_participant(self, *, password: str, **fields) -> Participant:
        """创建参与者，密码经 Django 密码哈希器处理后保存"""
        return self.model._default_manager.create_user(password=password, **fields)

    def set_password(self, participant: Participant, raw_password: str) -> None:
        participant.set_password(raw_password)
        participant.save(update_fields=["password", "updated_at"])
