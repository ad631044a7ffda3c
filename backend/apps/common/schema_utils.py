# apps/common/schema_utils.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, inline_serializer
from rest_framework import serializers

# 每次调用都生成新的 serializer 实例：ListField(child=...) 会绑定子字段，实例不能复用


def api_response_schema(
    name: str,
    data_fields: dict | serializers.Field,
    *,
    many: bool = False,
    paginated: bool = False,
) -> serializers.Serializer:
    """
    构造统一响应 Schema：code / message / data / extra
    - data_fields 为 dict 时生成 {name}Data；也可直接传入已有 serializer
    - many=True 时 data 为列表；paginated=True 时 extra 为分页元信息
    """
    if isinstance(data_fields, dict):
        data_serializer = inline_serializer(name=f"{name}Data", fields=dict(data_fields), many=many)
    elif many:
        data_serializer = serializers.ListField(child=data_fields)
    else:
        data_serializer = data_fields
    extra = (
        pagination_meta_serializer()
        if paginated
        else serializers.DictField(required=False, allow_null=True, help_text="附加信息")
    )
    return inline_serializer(
        name=f"{name}Response",
        fields={
            "code": serializers.IntegerField(help_text="业务状态码，0 表示成功"),
            "message": serializers.CharField(help_text="提示信息"),
            "data": data_serializer,
            "extra": extra,
        },
    )


def pagination_meta_serializer():
    return inline_serializer(
        name="PaginationMeta",
        fields={
            "page": serializers.IntegerField(help_text="当前页码（从 1 开始）"),
            "page_size": serializers.IntegerField(help_text="每页条数"),
            "total": serializers.IntegerField(help_text="总条数"),
            "total_pages": serializers.IntegerField(help_text="总页数"),
            "has_next": serializers.BooleanField(help_text="是否有下一页"),
            "has_previous": serializers.BooleanField(help_text="是否有上一页"),
        },
    )


def pagination_parameters() -> list[OpenApiParameter]:
    return [
        OpenApiParameter(name="page", location=OpenApiParameter.QUERY, description="页码（从 1 开始）",
                         required=False, type=int),
        OpenApiParameter(name="page_size", location=OpenApiParameter.QUERY, description="每页条数",
                         required=False, type=int),
    ]


def participant_summary_serializer():
    return inline_serializer(
        name="ParticipantSummary",
        fields={
            "id": serializers.IntegerField(),
            "fullname": serializers.CharField(),
            "username": serializers.CharField(),
            "email": serializers.EmailField(),
            "phone_number": serializers.CharField(allow_blank=True),
            "registration_number": serializers.CharField(),
            "role": serializers.ChoiceField(choices=["admin", "author", "participant"]),
            "team_id": serializers.IntegerField(allow_null=True),
        },
    )


def team_serializer():
    return inline_serializer(
        name="Team",
        fields={
            "id": serializers.IntegerField(),
            "name": serializers.CharField(),
            "score": serializers.IntegerField(min_value=0),
            "image": serializers.URLField(allow_blank=True),
            "rank": serializers.IntegerField(help_text="标准竞赛排名（1224），每次读取实时计算"),
            "member_count": serializers.IntegerField(),
            "members": serializers.ListField(child=participant_summary_serializer()),
            "created_at": serializers.DateTimeField(),
            "updated_at": serializers.DateTimeField(),
        },
    )


def challenge_serializer():
    return inline_serializer(
        name="Challenge",
        fields={
            "id": serializers.IntegerField(),
            "story_id": serializers.IntegerField(),
            "story_number": serializers.IntegerField(),
            "score": serializers.IntegerField(min_value=0),
            "flag": serializers.CharField(required=False, help_text="仅 admin / author 可见"),
        },
    )


def story_serializer():
    return inline_serializer(
        name="Story",
        fields={
            "id": serializers.IntegerField(),
            "chapter_id": serializers.IntegerField(),
            "story_number": serializers.IntegerField(),
            "script": serializers.CharField(allow_blank=True),
            "challenge_count": serializers.IntegerField(),
            "challenges": serializers.ListField(child=challenge_serializer()),
        },
    )


def chapter_serializer():
    return inline_serializer(
        name="Chapter",
        fields={
            "id": serializers.IntegerField(),
            "chapter_number": serializers.IntegerField(),
            "chapter_code": serializers.CharField(),
            "image": serializers.URLField(allow_blank=True),
            "script": serializers.CharField(allow_blank=True),
            "story_count": serializers.IntegerField(),
            "challenge_count": serializers.IntegerField(),
            "stories": serializers.ListField(child=story_serializer()),
        },
    )
