"""
角色定义（apps.accounts.roles）

- 参与者只持有一个角色字符串，授权即“角色是否在允许集合内”
- 视图通过 allowed_roles / role_map 引用这里的集合，避免散落字符串
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Tuple

ADMIN = "admin"
AUTHOR = "author"
PARTICIPANT = "participant"


@dataclass(frozen=True)
class RoleDef:
    """角色定义"""

    code: str
    label: str
    can_manage: bool = False  # 是否可执行增删改
    can_view_flags: bool = False  # 是否可查看题目 Flag


ROLES: Tuple[RoleDef, ...] = (
    RoleDef(ADMIN, "管理员", can_manage=True, can_view_flags=True),
    RoleDef(AUTHOR, "出题人", can_view_flags=True),
    RoleDef(PARTICIPANT, "参赛者"),
)

ROLE_CHOICES = tuple((role.code, role.label) for role in ROLES)
ALL_ROLES: FrozenSet[str] = frozenset(role.code for role in ROLES)
MANAGER_ROLES: FrozenSet[str] = frozenset(role.code for role in ROLES if role.can_manage)
FLAG_VIEWER_ROLES: FrozenSet[str] = frozenset(role.code for role in ROLES if role.can_view_flags)


def user_role(user: Any) -> str | None:
    """取当前用户角色，匿名用户返回 None"""
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "role", None)


def can_view_flags(user: Any) -> bool:
    return user_role(user) in FLAG_VIEWER_ROLES
