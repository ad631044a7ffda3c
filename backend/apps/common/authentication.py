"""
统一 JWT 认证封装（apps.common.authentication）

- 从 Authorization: Bearer <access> 读取令牌（SimpleJWT 负责前缀解析与验签）
- 未提供凭证 → 返回 None，交由权限类决定是否放行
- 令牌无效 / 过期 → TokenError(40102)；用户不存在或停用 → AuthError(40100)
- 认证成功后写入请求上下文，后续日志带上参与者信息
"""

from __future__ import annotations

from typing import Any, Optional

from rest_framework.request import Request
from rest_framework_simplejwt.authentication import (
    JWTAuthentication as SimpleJWTAuthentication,
)
from rest_framework_simplejwt.exceptions import (
    AuthenticationFailed as SimpleJWTAuthFailed,
    InvalidToken,
)

from .exceptions import AuthError, TokenError
from .infra.logger import get_logger, logger_extra
from .utils.request_context import update_request_user

logger = get_logger(__name__)


class JWTAuthentication(SimpleJWTAuthentication):
    """全局 JWT 认证入口"""

    def authenticate(self, request: Request) -> Optional[tuple[Any, Any]]:
        header = self.get_header(request)
        if header is None:
            return None
        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
            user = self.get_user(validated_token)
        except InvalidToken as exc:
            # 具体失败原因不返回给前端
            logger.warning("认证失败：无效或过期的 JWT", extra=logger_extra({"reason": "invalid_token"}))
            raise TokenError(message="令牌无效或已过期，请重新登录") from exc
        except SimpleJWTAuthFailed as exc:
            detail = getattr(exc, "detail", None)
            message = str(detail) if detail is not None else "认证失败，请重新登录"
            logger.warning("认证失败：参与者校验失败", extra=logger_extra({"reason": message}))
            raise AuthError(message=message) from exc

        update_request_user(user)
        return user, validated_token
