"""账户模块的 API 视图层

每个接口仅负责：
- 接收并校验参数（Schema）
- 调用对应业务 Service
- 使用统一响应封装成功结果
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common import response
from apps.common.pagination import StandardPagination
from apps.common.permissions import AllowAny, HasRole, IsAuthenticated
from apps.common.schema_utils import api_response_schema, pagination_parameters, participant_summary_serializer
from apps.common.throttles import LoginRateThrottle

from .roles import ADMIN, ALL_ROLES
from .schemas import LoginSchema, ParticipantCreateSchema, ParticipantUpdateSchema, RefreshTokenSchema
from .services import (
    LoginService,
    LogoutService,
    ParticipantCreateService,
    ParticipantDeleteService,
    ParticipantDetailService,
    ParticipantListService,
    ParticipantUpdateService,
    TokenRefreshService,
    serialize_participant,
)

_token_pair = {
    "access": serializers.CharField(help_text="访问令牌"),
    "refresh": serializers.CharField(help_text="刷新令牌"),
}

_participant_write_fields = {
    "fullname": serializers.CharField(max_length=255),
    "email": serializers.EmailField(),
    "username": serializers.CharField(min_length=3, max_length=100),
    "password": serializers.CharField(min_length=6, write_only=True),
    "registration_number": serializers.CharField(max_length=64),
    "phone_number": serializers.CharField(required=False, allow_blank=True),
    "role": serializers.ChoiceField(choices=sorted(ALL_ROLES), required=False),
    "team_id": serializers.IntegerField(required=False, allow_null=True, help_text="null / 0 表示不属于任何队伍"),
}

_participant_update_fields = {
    "fullname": serializers.CharField(max_length=255, required=False),
    "email": serializers.EmailField(required=False),
    "username": serializers.CharField(min_length=3, max_length=100, required=False),
    "password": serializers.CharField(min_length=6, write_only=True, required=False),
    "registration_number": serializers.CharField(max_length=64, required=False),
    "phone_number": serializers.CharField(required=False, allow_blank=True),
    "role": serializers.ChoiceField(choices=sorted(ALL_ROLES), required=False),
    "team_id": serializers.IntegerField(required=False, allow_null=True),
}


def _refresh_cookie_name() -> str:
    return getattr(settings, "JWT_REFRESH_COOKIE_NAME", "refresh_token")


def _set_refresh_cookie(resp: Response, refresh_token: str) -> None:
    """
    写入 HttpOnly refresh Cookie，前端可不在 JS 中持有 refresh
    - 生产环境启用 secure
    """
    lifetime = settings.SIMPLE_JWT.get("REFRESH_TOKEN_LIFETIME")
    resp.set_cookie(
        _refresh_cookie_name(),
        refresh_token,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
        max_age=int(lifetime.total_seconds()) if lifetime else None,
    )


def _refresh_schema(request: Request) -> RefreshTokenSchema:
    """refresh 优先取请求体，缺失时回退到 Cookie"""
    schema = RefreshTokenSchema.from_dict(request.data or {})
    if not schema.refresh:
        schema.refresh = request.COOKIES.get(_refresh_cookie_name())
    schema.validate()
    return schema


# ======================
# 认证
# ======================

class LoginView(APIView):
    """用户登录接口：返回 JWT（刷新/访问）"""

    # 公开接口，无需登录
    permission_classes = [AllowAny]
    authentication_classes: list = []
    # 登录限流：按 IP
    throttle_classes = [LoginRateThrottle]

    service = LoginService()

    @extend_schema(
        tags=["auth"],
        summary="登录",
        request=inline_serializer(
            name="LoginRequest",
            fields={"username": serializers.CharField(), "password": serializers.CharField()},
        ),
        responses=api_response_schema("Login", {**_token_pair, "participant": participant_summary_serializer()}),
        examples=[
            OpenApiExample("登录请求示例", value={"username": "alice", "password": "Passw0rd!"}),
        ],
    )
    def post(self, request: Request) -> Response:
        schema = LoginSchema.from_dict(request.data)
        data = self.service.execute(schema)
        resp = response.success(data, message="登录成功")
        _set_refresh_cookie(resp, data["refresh"])
        return resp


class TokenRefreshView(APIView):
    """刷新访问令牌：refresh 来自请求体或 Cookie"""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    service = TokenRefreshService()

    @extend_schema(
        tags=["auth"],
        summary="刷新访问令牌",
        request=inline_serializer(
            name="TokenRefreshRequest",
            fields={"refresh": serializers.CharField(required=False, help_text="不传时读取 Cookie")},
        ),
        responses=api_response_schema("TokenRefresh", _token_pair),
    )
    def post(self, request: Request) -> Response:
        data = self.service.execute(_refresh_schema(request))
        resp = response.success(data, message="刷新成功")
        _set_refresh_cookie(resp, data["refresh"])
        return resp


class LogoutView(APIView):
    """注销：拉黑 refresh 并清除 Cookie"""

    permission_classes = [IsAuthenticated]

    service = LogoutService()

    @extend_schema(
        tags=["auth"],
        summary="注销",
        request=inline_serializer(
            name="LogoutRequest",
            fields={"refresh": serializers.CharField(required=False, help_text="不传时读取 Cookie")},
        ),
        responses=api_response_schema("Logout", serializers.JSONField(allow_null=True, default=None)),
    )
    def post(self, request: Request) -> Response:
        self.service.execute(request.user, _refresh_schema(request))
        resp = response.success(None, message="已退出登录")
        resp.delete_cookie(_refresh_cookie_name())
        return resp


class ProfileView(APIView):
    """当前登录参与者信息"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["auth"],
        summary="当前用户信息",
        responses=api_response_schema("Profile", participant_summary_serializer()),
    )
    def get(self, request: Request) -> Response:
        return response.success(serialize_participant(request.user))


# ======================
# 参与者管理
# ======================

class ParticipantListCreateView(APIView):
    """参与者列表 / 创建（admin）"""

    permission_classes = [HasRole]
    allowed_roles = {ADMIN}

    list_service = ParticipantListService()
    create_service = ParticipantCreateService()
    pagination_class = StandardPagination

    @extend_schema(
        summary="参与者列表",
        parameters=pagination_parameters(),
        responses=api_response_schema("ParticipantList", participant_summary_serializer(), paginated=True),
    )
    def get(self, request: Request) -> Response:
        items = self.list_service.execute()
        return self.pagination_class().paginate_sequence(items, request)

    @extend_schema(
        summary="创建参与者",
        request=inline_serializer(name="ParticipantCreateRequest", fields=_participant_write_fields),
        responses=api_response_schema("ParticipantCreate", participant_summary_serializer()),
    )
    def post(self, request: Request) -> Response:
        schema = ParticipantCreateSchema.from_dict(request.data)
        data = self.create_service.execute(schema)
        return response.created(data, message="参与者已创建")


class ParticipantDetailView(APIView):
    """参与者详情（任意已登录角色）/ 更新、删除（admin）"""

    permission_classes = [HasRole]
    role_map = {"get": ALL_ROLES, "put": {ADMIN}, "patch": {ADMIN}, "delete": {ADMIN}}

    detail_service = ParticipantDetailService()
    update_service = ParticipantUpdateService()
    delete_service = ParticipantDeleteService()

    @extend_schema(
        summary="参与者详情",
        responses=api_response_schema("ParticipantDetail", participant_summary_serializer()),
    )
    def get(self, request: Request, participant_id: int) -> Response:
        _ = request
        return response.success(self.detail_service.execute(participant_id))

    @extend_schema(
        summary="更新参与者",
        description="只更新请求中出现的字段；team_id 出现时改派队伍，null / 0 表示离开当前队伍",
        request=inline_serializer(
            name="ParticipantUpdateRequest",
            fields=_participant_update_fields,
        ),
        responses=api_response_schema("ParticipantUpdate", participant_summary_serializer()),
    )
    def put(self, request: Request, participant_id: int) -> Response:
        schema = ParticipantUpdateSchema.from_dict(request.data)
        data = self.update_service.execute(participant_id, schema)
        return response.success(data, message="参与者已更新")

    @extend_schema(
        summary="部分更新参与者",
        responses=api_response_schema("ParticipantPatch", participant_summary_serializer()),
    )
    def patch(self, request: Request, participant_id: int) -> Response:
        return self.put(request, participant_id)

    @extend_schema(summary="删除参与者", responses={204: None})
    def delete(self, request: Request, participant_id: int) -> Response:
        _ = request
        self.delete_service.execute(participant_id)
        return response.no_content(message="参与者已删除")
