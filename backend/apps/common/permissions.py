"""
通用权限封装（apps.common.permissions）

职责：
- 基于参与者角色（admin / author / participant）的权限校验
- 出错时统一抛出 BizError 子类：未登录 → AuthError，角色不满足 → PermissionDeniedError
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

from apps.accounts.roles import user_role

from .exceptions import AuthError, PermissionDeniedError


def _ensure_authenticated(request: Request):
    """确保已登录并返回当前参与者，否则抛 AuthError"""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise AuthError(message="请先登录后再执行此操作")
    return user


def ensure_role(user: Any, roles: Iterable[str]) -> None:
    """角色不在允许集合内时抛出 PermissionDeniedError"""
    allowed = set(roles)
    if user_role(user) not in allowed:
        raise PermissionDeniedError(
            message="当前角色无权执行该操作",
            extra={"required_roles": sorted(allowed)},
        )


class AllowAny(BasePermission):
    """公开接口"""

    def has_permission(self, request: Request, view: Any) -> bool:
        return True


class IsAuthenticated(BasePermission):
    """需要已登录参与者，任何角色均可"""

    def has_permission(self, request: Request, view: Any) -> bool:
        _ensure_authenticated(request)
        return True


class HasRole(BasePermission):
    """
    基于视图声明的角色集合做校验

    用法：
    - 视图声明 allowed_roles（所有方法共用）
    - 或声明 role_map = {"get": READ_ROLES, "post": {ADMIN}}，按 HTTP 方法区分；
      role_map 未列出的方法视为公开
    """

    @staticmethod
    def _get_roles(request: Request, view: Any) -> Optional[Iterable[str]]:
        if hasattr(view, "role_map"):
            method = request.method.lower()
            # HEAD 与 GET 同权限
            return view.role_map.get("get" if method == "head" else method)
        return getattr(view, "allowed_roles", None)

    def has_permission(self, request: Request, view: Any) -> bool:
        roles = self._get_roles(request, view)
        if roles is None:
            return True
        user = _ensure_authenticated(request)
        ensure_role(user, roles)
        return True

