"""
JWT 工具封装：颁发、刷新、注销令牌

- 依赖 SimpleJWT；access 默认 15 分钟，refresh 默认 7 天（见 settings.SIMPLE_JWT）
- 注销依赖 token_blacklist 应用，被拉黑的 refresh 无法再换取 access
"""

from __future__ import annotations

from typing import Any, Dict

from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken, TokenError as SimpleJWTError

from apps.common.exceptions import TokenError


def issue_tokens(user: Any) -> Dict[str, str]:
    """为参与者颁发 refresh / access 令牌，令牌内附带角色"""
    refresh = RefreshToken.for_user(user)
    refresh["role"] = getattr(user, "role", "")
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }


def refresh_access(refresh_token: str) -> Dict[str, str]:
    """
    用 refresh 换取新的 access
    - ROTATE_REFRESH_TOKENS 开启时同时返回新的 refresh，并拉黑旧 refresh
    """
    try:
        refresh = RefreshToken(refresh_token)
        access = refresh.access_token
        refresh.check_blacklist()
    except SimpleJWTError as exc:
        raise TokenError(message="刷新令牌无效或已过期") from exc

    if api_settings.ROTATE_REFRESH_TOKENS:
        if api_settings.BLACKLIST_AFTER_ROTATION:
            refresh.blacklist()
        refresh.set_jti()
        refresh.set_exp()
        refresh.set_iat()
    return {"refresh": str(refresh), "access": str(access)}


def revoke_refresh(refresh_token: str) -> None:
    """注销：拉黑 refresh 令牌"""
    try:
        RefreshToken(refresh_token).blacklist()
    except SimpleJWTError as exc:
        raise TokenError(message="刷新令牌无效或已过期") from exc

