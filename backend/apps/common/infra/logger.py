"""
日志封装：统一的 logger 获取与配置

- 日志写入 {LOG_PATH}/system.log，按日期自动轮转，保留 30 天
- 支持 PLAIN（默认，便于 grep）与 JSON 两种格式，由 settings.LOG_FORMAT 决定
- 自动注入请求上下文（request_id、user_id、username、ip、path）
- 通过 logger_extra 过滤敏感字段，避免密码 / 令牌 / Flag 落盘
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from django.conf import settings as django_settings

_configured = False


def _context_fields() -> dict:
    # 延迟导入，避免 settings 加载阶段的循环依赖
    from apps.common.utils.request_context import get_request_context

    return get_request_context()


class StoryJSONFormatter(logging.Formatter):
    """
    JSON 格式化器

    输出示例：
    {"timestamp": "2026-03-01 10:00:00", "level": "INFO", "logger": "apps.teams.services",
     "message": "创建队伍", "username": "admin", "user_id": 1, "ip_address": "127.0.0.1"}
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context_fields()
        log_dict = {
            "timestamp": datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if ctx.get("username"):
            log_dict["username"] = ctx["username"]
        if ctx.get("user_id") is not None:
            log_dict["user_id"] = ctx["user_id"]
        if ctx.get("ip"):
            log_dict["ip_address"] = ctx["ip"]
        if ctx.get("path"):
            log_dict["request_path"] = ctx["path"]
        if ctx.get("request_id"):
            log_dict["request_id"] = ctx["request_id"]
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_dict, ensure_ascii=False, default=str)


class StoryPlainFormatter(logging.Formatter):
    """
    纯文本格式化器

    格式：{timestamp} {level} {logger} {message} [{username}|{user_id}|{ip}|{path}|{request_id}]
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context_fields()
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        context_info = "[{}|{}|{}|{}|{}]".format(
            ctx.get("username") or "-",
            ctx.get("user_id") if ctx.get("user_id") is not None else "-",
            ctx.get("ip") or "-",
            ctx.get("path") or "-",
            ctx.get("request_id") or "-",
        )
        log_line = f"{timestamp} {record.levelname} {record.name} {record.getMessage()} {context_info}"
        if record.exc_info:
            log_line += "\n" + self.formatException(record.exc_info)
        return log_line


class SafeTimedRotatingFileHandler(logging.handlers.TimedRotatingFileHandler):
    """轮转时文件被占用（Windows 常见）则跳过本次轮转，下次写入再尝试"""

    def doRollover(self):
        try:
            super().doRollover()
        except PermissionError:
            pass


def get_log_file_path() -> str:
    """基于 settings.LOG_PATH 生成日志文件路径，目录不存在时自动创建"""
    log_dir = Path(getattr(django_settings, "LOG_PATH", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return str(log_dir / "system.log")


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    name = str(getattr(django_settings, "LOG_LEVEL", "INFO")).upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(force: bool = False, *, level: Optional[int] = None, log_file_path: Optional[str] = None) -> None:
    """
    配置日志系统（只配置一次，force=True 时重新配置）

    - 文件 handler：每天午夜轮转，保留 30 天，utf-8
    - DEBUG 模式额外输出到控制台
    """
    global _configured
    if _configured and not force:
        return

    log_level = _resolve_level(level)
    log_file_path = log_file_path if log_file_path is not None else get_log_file_path()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    if str(getattr(django_settings, "LOG_FORMAT", "plain")).lower() == "json":
        formatter: logging.Formatter = StoryJSONFormatter()
    else:
        formatter = StoryPlainFormatter()

    file_handler = SafeTimedRotatingFileHandler(
        filename=log_file_path,
        when="midnight",
        interval=1,
        backupCount=30,
        encoding="utf-8",
        delay=True,  # 首次写入时才打开文件
    )
    file_handler.suffix = "%Y-%m-%d"  # system.log.2026-03-01
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if getattr(django_settings, "DEBUG", False) or os.getenv("LOG_TO_CONSOLE", "").lower() == "true":
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    获取 logger 实例

        logger = get_logger(__name__)
        logger.info("创建队伍", extra=logger_extra({"team_id": team.id}))
    """
    if not _configured:
        configure_logging()
    return logging.getLogger(name)


SENSITIVE_KEYS = {"password", "token", "access", "refresh", "flag"}


def sanitize_extra(extra: Optional[dict] = None) -> dict:
    """把敏感字段替换为 ***"""
    if not extra:
        return {}
    return {k: ("***" if k.lower() in SENSITIVE_KEYS else v) for k, v in extra.items()}


def logger_extra(extra: Optional[dict] = None) -> dict:
    """封装 extra，自动过滤敏感字段"""
    return sanitize_extra(extra)
