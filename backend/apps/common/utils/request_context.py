"""
请求上下文（contextvars）

中间件在请求开始时写入，JWT 认证成功后补充用户信息，日志格式化器读取
"""

from __future__ import annotations

import contextvars
import uuid
from typing import Optional

request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
user_id_ctx: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar("user_id", default=None)
username_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("username", default="")
role_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("role", default="")
path_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("path", default="")
method_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("method", default="")
ip_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("ip", default="")

_ALL_VARS = (request_id_ctx, user_id_ctx, username_ctx, role_ctx, path_ctx, method_ctx, ip_ctx)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


def set_request_context(
    *,
    request_id: Optional[str] = None,
    user_id: Optional[int] = None,
    username: str = "",
    role: str = "",
    path: str = "",
    method: str = "",
    ip: str = "",
) -> None:
    request_id_ctx.set(request_id or generate_request_id())
    user_id_ctx.set(user_id)
    username_ctx.set(username or "")
    role_ctx.set(role or "")
    path_ctx.set(path or "")
    method_ctx.set(method or "")
    ip_ctx.set(ip or "")


def clear_request_context() -> None:
    for var in _ALL_VARS:
        var.set(None if var is user_id_ctx else "")


def get_request_context() -> dict:
    return {
        "request_id": request_id_ctx.get(),
        "user_id": user_id_ctx.get(),
        "username": username_ctx.get(),
        "role": role_ctx.get(),
        "path": path_ctx.get(),
        "method": method_ctx.get(),
        "ip": ip_ctx.get(),
    }


def update_request_user(user) -> None:
    """
    认证完成后更新上下文中的用户信息

    DRF 的 JWT 认证发生在视图内部，中间件执行时 request.user 还是匿名用户
    """
    user_id_ctx.set(getattr(user, "id", None))
    username_ctx.set(getattr(user, "username", "") or "")
    role_ctx.set(getattr(user, "role", "") or "")
    if not request_id_ctx.get():
        request_id_ctx.set(generate_request_id())
