# apps/common/base/base_service.py

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from django.db import transaction

from apps.common.exceptions import BizError
from apps.common.infra.logger import get_logger

logger = get_logger(__name__)

ServiceReturn = TypeVar("ServiceReturn")


class BaseService(ABC, Generic[ServiceReturn]):
    """
    Service 层业务逻辑基类

    约束：
        - 只编排业务逻辑，不接触 request / response
        - 通过 Repo 访问持久化层
        - 默认在事务中执行 perform，任一步失败整体回滚，不留下部分写入
        - 预期内的失败抛 BizError；其他异常记录日志后继续上抛，由全局处理器返回 500

    标准流程：validate(...) -> perform(...) -> handle_error(...)
    """

    atomic_enabled: bool = True
    atomic_savepoint: bool = True

    @staticmethod
    def atomic(*args, **kwargs):
        """返回 transaction.atomic 上下文管理器，供子类在 perform 内部开启子事务"""
        return transaction.atomic(*args, **kwargs)

    def validate(self, *args, **kwargs) -> None:
        """可选的预检查钩子，默认不做任何事"""
        return None

    @abstractmethod
    def perform(self, *args, **kwargs) -> ServiceReturn:
        """子类实现的业务核心逻辑"""

    def execute(self, *args, **kwargs) -> ServiceReturn:
        try:
            self.validate(*args, **kwargs)
            if self.atomic_enabled:
                with self.atomic(savepoint=self.atomic_savepoint):
                    return self.perform(*args, **kwargs)
            return self.perform(*args, **kwargs)
        except Exception as exc:
            return self.handle_error(exc)

    __call__ = execute

    def handle_error(self, exc: Exception) -> ServiceReturn:
        if isinstance(exc, BizError):
            raise exc
        logger.exception("Service 执行出现未预期异常，交由全局处理器按 500 返回", exc_info=exc)
        raise exc
