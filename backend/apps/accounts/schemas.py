"""账户模块 Schema：登录、令牌、参与者增改入参"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError
from apps.common.utils.validators import validate_email, validate_text_length
from apps.teams.schemas import normalize_team_ref

from .roles import ALL_ROLES, PARTICIPANT

USERNAME_MIN = 3
USERNAME_MAX = 100
PASSWORD_MIN = 6

# 前端沿用 camelCase 字段名
PARTICIPANT_ALIASES: dict[str, str] = {
    "phoneNumber": "phone_number",
    "registrationNumber": "registration_number",
    "teamId": "team_id",
}


def _clean_username(value: Any) -> str:
    return validate_text_length(value, field_name="用户名", min_length=USERNAME_MIN, max_length=USERNAME_MAX)


def _clean_password(value: Any) -> str:
    if not isinstance(value, str) or len(value) < PASSWORD_MIN:
        raise ValidationError(message=f"密码长度不能少于 {PASSWORD_MIN} 位")
    return value


def _clean_role(value: Any) -> str:
    if value not in ALL_ROLES:
        raise ValidationError(message="角色不合法", extra={"allowed": sorted(ALL_ROLES)})
    return value


@dataclass
class LoginSchema(BaseSchema[None]):
    """登录入参：用户名 + 密码"""

    auto_validate: ClassVar[bool] = True

    username: Any
    password: Any

    def validate(self) -> None:
        if not isinstance(self.username, str) or not self.username.strip():
            raise ValidationError(message="请输入用户名")
        if not isinstance(self.password, str) or not self.password:
            raise ValidationError(message="请输入密码")
        self.username = self.username.strip()


@dataclass
class RefreshTokenSchema(BaseSchema[None]):
    """
    刷新 / 注销入参
    - refresh 可放在请求体，也可由 View 从 HttpOnly Cookie 中补齐
    """

    ALIASES: ClassVar[dict[str, str]] = {"refreshToken": "refresh"}

    refresh: Optional[str] = None

    def validate(self) -> None:
        if not isinstance(self.refresh, str) or not self.refresh:
            raise ValidationError(message="缺少刷新令牌")


@dataclass
class ParticipantCreateSchema(BaseSchema[None]):
    """创建参与者入参；team_id 可选"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = PARTICIPANT_ALIASES

    fullname: Any
    email: Any
    username: Any
    password: Any
    registration_number: Any
    phone_number: Any = ""
    role: Any = PARTICIPANT
    team_id: Any = None

    def validate(self) -> None:
        self.fullname = validate_text_length(self.fullname, field_name="姓名", max_length=255)
        validate_email(self.email)
        self.email = self.email.strip()
        self.username = _clean_username(self.username)
        self.password = _clean_password(self.password)
        self.registration_number = validate_text_length(
            self.registration_number, field_name="注册号", max_length=64
        )
        self.phone_number = "" if self.phone_number is None else str(self.phone_number).strip()
        if len(self.phone_number) > 32:
            raise ValidationError(message="手机号长度不能超过 32 个字符")
        self.role = _clean_role(self.role)
        self.team_id = normalize_team_ref(self.team_id)

    def profile_fields(self) -> dict[str, Any]:
        """写入模型的字段（不含密码与队伍）"""
        return self.to_dict(exclude=("password", "team_id"))


@dataclass
class ParticipantUpdateSchema(BaseSchema[None]):
    """
    更新参与者入参：只处理请求中出现的字段
    - team_id 出现时改派队伍，null / 0 表示离开当前队伍
    """

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = PARTICIPANT_ALIASES

    fullname: Any = None
    email: Any = None
    username: Any = None
    password: Any = None
    registration_number: Any = None
    phone_number: Any = None
    role: Any = None
    team_id: Any = None

    def validate(self) -> None:
        if self.has("fullname"):
            self.fullname = validate_text_length(self.fullname, field_name="姓名", max_length=255)
        if self.has("email"):
            validate_email(self.email)
            self.email = self.email.strip()
        if self.has("username"):
            self.username = _clean_username(self.username)
        if self.has("password"):
            self.password = _clean_password(self.password)
        if self.has("registration_number"):
            self.registration_number = validate_text_length(
                self.registration_number, field_name="注册号", max_length=64
            )
        if self.has("phone_number"):
            self.phone_number = "" if self.phone_number is None else str(self.phone_number).strip()
            if len(self.phone_number) > 32:
                raise ValidationError(message="手机号长度不能超过 32 个字符")
        if self.has("role"):
            self.role = _clean_role(self.role)
        if self.has("team_id"):
            self.team_id = normalize_team_ref(self.team_id)

    def profile_changes(self) -> dict[str, Any]:
        """请求中出现的资料字段（不含密码与队伍）"""
        return self.to_dict(only_provided=True, exclude=("password", "team_id"))
