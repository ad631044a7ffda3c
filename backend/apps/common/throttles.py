"""
统一限速封装（apps.common.throttles）

- 覆盖 DRF 默认限速行为，统一抛 RateLimitError，保证响应格式
- 登录接口按 IP + 用户名限速，防止密码爆破
"""

from __future__ import annotations

from typing import Optional

from rest_framework.exceptions import Throttled
from rest_framework.settings import api_settings
from rest_framework.throttling import SimpleRateThrottle

from apps.common.infra.logger import get_logger, logger_extra

from .exceptions import RateLimitError

logger = get_logger(__name__)


def raise_rate_limit(exc: Throttled) -> None:
    """Throttled → RateLimitError，保留 wait 秒数，便于前端展示倒计时"""
    wait = getattr(exc, "wait", None)
    detail = getattr(exc, "detail", None)
    message = str(detail) if detail else "请求过于频繁，请稍后再试"
    logger.warning("限流触发", extra=logger_extra({"detail": message, "wait": wait}))
    raise RateLimitError(message=message, extra={"wait": wait}) from exc


class LoginRateThrottle(SimpleRateThrottle):
    """
    登录接口限速
    scope = login，对应 settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]["login"]
    计数键为 IP + 用户名（忽略大小写），同一 IP 换用户名单独计数
    """

    scope = "login"

    def get_rate(self) -> Optional[str]:
        # 每次从当前 settings 读取，便于按环境覆盖
        return api_settings.DEFAULT_THROTTLE_RATES.get(self.scope)

    def get_cache_key(self, request, view) -> Optional[str]:
        username = request.data.get("username") if hasattr(request.data, "get") else None
        if not isinstance(username, str):
            username = ""
        ident = f"{self.get_ident(request)}:{username.strip().lower()}"
        return self.cache_format % {"scope": self.scope, "ident": ident}

    def throttle_failure(self):
        raise_rate_limit(Throttled(wait=self.wait(), detail="登录请求过于频繁，请稍后再试"))
