from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError, require
from apps.common.utils.validators import POSITIVE_INT_MAX, coerce_int, validate_http_url, validate_text_length

# Schema 层：View 入参校验与规范化

TEAM_NAME_MIN = 2
TEAM_NAME_MAX = 255
TEAM_IMAGE_MAX = 500


@dataclass
class TeamCreateSchema(BaseSchema[None]):
    """创建队伍入参"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"teamName": "name"}

    name: Any
    score: Any = 0
    image: Any = ""

    def validate(self) -> None:
        self.name = validate_text_length(self.name, field_name="队伍名称", min_length=TEAM_NAME_MIN,
                                         max_length=TEAM_NAME_MAX)
        self.score = coerce_int(0 if self.score is None else self.score, field_name="分数", min_value=0,
                                max_value=POSITIVE_INT_MAX)
        if self.image is None:
            self.image = ""
        validate_http_url(self.image, field_name="队伍图片", max_length=TEAM_IMAGE_MAX)


@dataclass
class TeamUpdateSchema(BaseSchema[None]):
    """
    更新队伍入参：只写入请求中出现的字段
    - rank 不在可写字段内，传了也会被忽略
    """

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"teamName": "name"}

    name: Any = None
    score: Any = None
    image: Any = None

    def validate(self) -> None:
        if self.has("name"):
            self.name = validate_text_length(self.name, field_name="队伍名称", min_length=TEAM_NAME_MIN,
                                             max_length=TEAM_NAME_MAX)
        if self.has("score"):
            require(self.score is not None, ValidationError(message="分数不能为空"))
            self.score = coerce_int(self.score, field_name="分数", min_value=0, max_value=POSITIVE_INT_MAX)
        if self.has("image"):
            if self.image is None:
                self.image = ""
            validate_http_url(self.image, field_name="队伍图片", max_length=TEAM_IMAGE_MAX)

    def changes(self) -> dict[str, Any]:
        return self.to_dict(only_provided=True)


@dataclass
class TeamMemberAddSchema(BaseSchema[None]):
    """向队伍添加成员入参"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"participantId": "participant_id"}

    participant_id: Any

    def validate(self) -> None:
        self.participant_id = coerce_int(self.participant_id, field_name="参与者 ID", min_value=1)


def normalize_team_ref(value: Optional[Any]) -> Optional[int]:
    """
    统一队伍引用：None / 0 / "0" / "" 表示“不属于任何队伍”
    - 其他值必须是整数，具体是否存在由 Service 查询后决定
    """
    if value in (None, "", 0, "0"):
        return None
    team_id = coerce_int(value, field_name="队伍 ID")
    return team_id if team_id != 0 else None
