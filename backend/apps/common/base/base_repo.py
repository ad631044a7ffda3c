# apps/common/base/base_repo.py

from __future__ import annotations

from abc import ABC
from typing import Any, Generic, Iterable, Optional, TypeVar

from django.db.models import Model, QuerySet

from apps.common.exceptions import NotFoundError

T = TypeVar("T", bound=Model)


class BaseRepo(ABC, Generic[T]):
    """
    Repository（数据访问层）基类：
    - 统一封装 Django ORM 读写细节，Service 只依赖这里暴露的方法
    - 子类声明 model 与 not_found_message，即可获得“查不到抛 NotFoundError”的一致行为
    - 用法示例：class TeamRepo(BaseRepo[Team]): model = Team
    """

    #: 子类必须指定对应的模型
    model: type[T]
    #: 记录不存在时返回给前端的提示
    not_found_message: str = "记录不存在"

    # ------------------------
    # QuerySet 构建
    # ------------------------

    def get_queryset(self) -> QuerySet[T]:
        """默认 QuerySet，子类可覆盖以附加 select_related / prefetch_related"""
        if not getattr(self, "model", None):
            raise NotImplementedError("BaseRepo 子类必须声明 model 属性")
        return self.model._default_manager.all()

    def filter(self, *, queryset: Optional[QuerySet[T]] = None, **filters) -> QuerySet[T]:
        qs = queryset if queryset is not None else self.get_queryset()
        return qs.filter(**filters)

    def list(self, **filters) -> Iterable[T]:
        return self.filter(**filters)

    def get_by_id(self, pk: Any, *, queryset: Optional[QuerySet[T]] = None) -> T:
        """
        按主键获取对象，不存在时抛 NotFoundError
        - pk 为非法值（非整数字符串等）同样视为不存在
        """
        qs = queryset if queryset is not None else self.get_queryset()
        try:
            return qs.get(pk=pk)
        except (self.model.DoesNotExist, ValueError, TypeError) as exc:
            raise NotFoundError(message=self.not_found_message) from exc

    def get_for_update(self, pk: Any) -> T:
        """
        在当前事务中对目标行加锁（SELECT ... FOR UPDATE）后返回
        - 必须在 transaction.atomic 内调用；SQLite 下 select_for_update 为空操作
        """
        return self.get_by_id(pk, queryset=self.model._default_manager.select_for_update())

    def get_or_none(self, *, queryset: Optional[QuerySet[T]] = None, **filters) -> Optional[T]:
        qs = queryset if queryset is not None else self.get_queryset()
        return qs.filter(**filters).first()

    def exists(self, *, exclude_pk: Any = None, **filters) -> bool:
        """
        判断是否存在满足条件的记录
        - exclude_pk：更新场景下排除自身，用于唯一性校验
        """
        qs = self.filter(**filters)
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        return qs.exists()

    def count(self, **filters) -> int:
        return self.filter(**filters).count()

    # ------------------------
    # 写操作
    # ------------------------

    def create(self, data: dict) -> T:
        return self.model._default_manager.create(**data)

    def update(self, instance: T, data: dict) -> T:
        """
        按字段更新并保存，仅写入变更字段（update_fields）
        """
        for field, value in data.items():
            setattr(instance, field, value)
        if data:
            update_fields = list(data.keys())
            # auto_now 字段只有出现在 update_fields 中才会刷新
            for model_field in instance._meta.concrete_fields:
                if getattr(model_field, "auto_now", False) and model_field.name not in update_fields:
                    update_fields.append(model_field.name)
            instance.save(update_fields=update_fields)
        return instance

    def delete(self, instance: T) -> None:
        instance.delete()
