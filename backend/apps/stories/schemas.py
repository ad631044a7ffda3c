from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError, require
from apps.common.utils.validators import POSITIVE_INT_MAX, coerce_int, validate_http_url, validate_text_length

# Schema 层：章节 / 故事 / 题目的入参校验与规范化

CHAPTER_IMAGE_MAX = 500


def _clean_script(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(message=f"{field_name}必须是字符串")
    return value


def _clean_image(value: Any) -> str:
    if value is None:
        return ""
    validate_http_url(value, field_name="章节图片", max_length=CHAPTER_IMAGE_MAX)
    return value


# ======================
# 章节
# ======================

CHAPTER_ALIASES: dict[str, str] = {
    "chapterNumber": "chapter_number",
    "chapterCode": "chapter_code",
    "chapterImage": "image",
    "chapterScript": "script",
}


@dataclass
class ChapterCreateSchema(BaseSchema[None]):
    """创建章节入参"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = CHAPTER_ALIASES

    chapter_number: Any
    chapter_code: Any
    script: Any
    image: Any = ""

    def validate(self) -> None:
        self.chapter_number = coerce_int(self.chapter_number, field_name="章节序号", min_value=1,
                                         max_value=POSITIVE_INT_MAX)
        self.chapter_code = validate_text_length(self.chapter_code, field_name="章节编码", max_length=100)
        self.script = _clean_script(self.script, "章节剧本")
        self.image = _clean_image(self.image)


@dataclass
class ChapterUpdateSchema(BaseSchema[None]):
    """更新章节入参：只写入请求中出现的字段"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = CHAPTER_ALIASES

    chapter_number: Any = None
    chapter_code: Any = None
    script: Any = None
    image: Any = None

    def validate(self) -> None:
        if self.has("chapter_number"):
            self.chapter_number = coerce_int(self.chapter_number, field_name="章节序号", min_value=1,
                                             max_value=POSITIVE_INT_MAX)
        if self.has("chapter_code"):
            self.chapter_code = validate_text_length(self.chapter_code, field_name="章节编码", max_length=100)
        if self.has("script"):
            self.script = _clean_script(self.script, "章节剧本")
        if self.has("image"):
            self.image = _clean_image(self.image)

    def changes(self) -> dict[str, Any]:
        return self.to_dict(only_provided=True)


# ======================
# 故事
# ======================

STORY_ALIASES: dict[str, str] = {
    "chapterId": "chapter_id",
    "storyNumber": "story_number",
    "storyScript": "script",
}


@dataclass
class StoryCreateSchema(BaseSchema[None]):
    """创建故事入参"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = STORY_ALIASES

    chapter_id: Any
    story_number: Any
    script: Any

    def validate(self) -> None:
        self.chapter_id = coerce_int(self.chapter_id, field_name="章节 ID", min_value=1)
        self.story_number = coerce_int(self.story_number, field_name="故事序号", min_value=1,
                                       max_value=POSITIVE_INT_MAX)
        self.script = _clean_script(self.script, "故事剧本")


@dataclass
class StoryUpdateSchema(BaseSchema[None]):
    """更新故事入参；challenge_count 为派生值，不可写"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = STORY_ALIASES

    chapter_id: Any = None
    story_number: Any = None
    script: Any = None

    def validate(self) -> None:
        if self.has("chapter_id"):
            self.chapter_id = coerce_int(self.chapter_id, field_name="章节 ID", min_value=1)
        if self.has("story_number"):
            self.story_number = coerce_int(self.story_number, field_name="故事序号", min_value=1,
                                           max_value=POSITIVE_INT_MAX)
        if self.has("script"):
            self.script = _clean_script(self.script, "故事剧本")

    def changes(self) -> dict[str, Any]:
        return self.to_dict(only_provided=True)


# ======================
# 题目
# ======================

CHALLENGE_ALIASES: dict[str, str] = {
    "storyId": "story_id",
    "storyNumber": "story_number",
    "challengeScore": "score",
}


@dataclass
class ChallengeCreateSchema(BaseSchema[None]):
    """创建题目入参；story_number 缺省时取所属故事的序号"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = CHALLENGE_ALIASES

    story_id: Any
    flag: Any
    story_number: Any = None
    score: Any = 0

    def validate(self) -> None:
        self.story_id = coerce_int(self.story_id, field_name="故事 ID", min_value=1)
        self.flag = validate_text_length(self.flag, field_name="Flag", max_length=255)
        if self.story_number is not None:
            self.story_number = coerce_int(self.story_number, field_name="故事序号", min_value=1,
                                           max_value=POSITIVE_INT_MAX)
        self.score = coerce_int(0 if self.score is None else self.score, field_name="分值", min_value=0,
                                max_value=POSITIVE_INT_MAX)


@dataclass
class ChallengeUpdateSchema(BaseSchema[None]):
    """更新题目入参：改派故事时 story_number 以新故事为准"""

    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = CHALLENGE_ALIASES

    story_id: Any = None
    flag: Any = None
    story_number: Any = None
    score: Any = None

    def validate(self) -> None:
        if self.has("story_id"):
            self.story_id = coerce_int(self.story_id, field_name="故事 ID", min_value=1)
        if self.has("flag"):
            self.flag = validate_text_length(self.flag, field_name="Flag", max_length=255)
        if self.has("story_number"):
            self.story_number = coerce_int(self.story_number, field_name="故事序号", min_value=1,
                                           max_value=POSITIVE_INT_MAX)
        if self.has("score"):
            require(self.score is not None, ValidationError(message="分值不能为空"))
            self.score = coerce_int(self.score, field_name="分值", min_value=0, max_value=POSITIVE_INT_MAX)

    def changes(self) -> dict[str, Any]:
        return self.to_dict(only_provided=True)
