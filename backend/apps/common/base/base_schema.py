# apps/common/base/base_schema.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import MISSING, asdict, dataclass, field, fields
from typing import Any, ClassVar, Dict, Generic, Iterable, Mapping, Optional, TypeVar

from apps.common.exceptions import ValidationError

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound="BaseSchema[Any]")


@dataclass
class BaseSchema(ABC, Generic[T]):
    """
    业务 Schema / DTO 基类

    目的：
        - 在 View 与 Service 之间传递结构化数据，集中字段校验
        - 记录请求里实际出现过的字段（provided），区分“未传”与“显式传 null”，
          PATCH 语义与 team_id=null 清空队伍都依赖这一点
        - 外部 payload 中未声明的字段（如 rank）直接忽略，不会写入模型

    子类示例：
        @dataclass
        class TeamCreateSchema(BaseSchema):
            name: str
            score: int = 0

            def validate(self):
                if self.score < 0:
                    raise ValidationError(message="分数不能为负数")
    """

    #: 是否在 __post_init__ 中自动执行 validate
    auto_validate: ClassVar[bool] = False
    #: 字段别名映射：兼容前端 camelCase 命名到内部字段
    ALIASES: ClassVar[dict[str, str]] = {}

    provided: frozenset = field(default=frozenset(), repr=False, compare=False, kw_only=True)

    def __post_init__(self):
        if self.auto_validate:
            self.validate()

    @abstractmethod
    def validate(self) -> None:
        """子类实现字段约束校验，出错时抛 BizError"""

    def has(self, name: str) -> bool:
        """请求中是否显式携带了该字段"""
        return name in self.provided

    def to_dict(
            self,
            *,
            exclude_none: bool = False,
            exclude: Iterable[str] | None = None,
            only_provided: bool = False,
    ) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("provided", None)
        if only_provided:
            data = {key: value for key, value in data.items() if key in self.provided}
        if exclude_none:
            data = {key: value for key, value in data.items() if value is not None}
        if exclude:
            for key in exclude:
                data.pop(key, None)
        return data

    def to_model_kwargs(
            self,
            *,
            exclude_none: bool = True,
            mapping: Mapping[str, str] | None = None,
            only_provided: bool = False,
            exclude: Iterable[str] | None = None,
    ) -> Dict[str, Any]:
        """按 mapping 将 Schema 字段名映射到 Model 字段，便于 create/update"""
        data = self.to_dict(exclude_none=exclude_none, only_provided=only_provided, exclude=exclude)
        if not mapping:
            return data
        return {mapping.get(key, key): value for key, value in data.items()}

    @classmethod
    def from_dict(
            cls: type[SchemaType],
            data: Optional[Mapping[str, Any]],
            *,
            auto_validate: Optional[bool] = None,
    ) -> SchemaType:
        """
        将外部 payload 转为 Schema；auto_validate 控制是否立即校验
        """
        if data is None:
            data = {}
        # QueryDict 需要 dict() 取单值，其他 Mapping 直接转为普通 dict
        if not isinstance(data, Mapping):
            raise ValidationError(message="请求体必须是 JSON 对象")
        if hasattr(data, "dict"):
            data = data.dict()

        normalized = dict(data)
        for alias, target in cls.ALIASES.items():
            if alias in normalized:
                value = normalized.pop(alias)
                normalized.setdefault(target, value)

        declared = [f for f in fields(cls) if f.init and f.name != "provided"]
        kwargs = {f.name: normalized[f.name] for f in declared if f.name in normalized}
        missing = [
            f.name
            for f in declared
            if f.name not in kwargs and f.default is MISSING and f.default_factory is MISSING
        ]
        if missing:
            raise ValidationError(message=f"缺少必填字段：{', '.join(missing)}", extra={"fields": missing})

        # 子类 auto_validate=True 时 __post_init__ 已校验，这里避免重复执行
        instance = cls(**kwargs, provided=frozenset(kwargs))  # type: ignore[arg-type]
        if auto_validate and not cls.auto_validate:
            instance.validate()
        return instance
