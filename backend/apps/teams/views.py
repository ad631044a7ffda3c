"""队伍模块 API 视图：只负责入参 Schema、调用 Service、统一响应"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.roles import ADMIN, ALL_ROLES
from apps.common import response
from apps.common.permissions import HasRole
from apps.common.schema_utils import api_response_schema, team_serializer

from .schemas import TeamCreateSchema, TeamMemberAddSchema, TeamUpdateSchema
from .services import (
    AddParticipantToTeamService,
    RemoveParticipantFromTeamService,
    TeamCreateService,
    TeamDeleteService,
    TeamDetailService,
    TeamListService,
    TeamUpdateService,
)

_team_write_request = inline_serializer(
    name="TeamWriteRequest",
    fields={
        "name": serializers.CharField(min_length=2, max_length=255),
        "score": serializers.IntegerField(min_value=0, required=False),
        "image": serializers.URLField(required=False, allow_blank=True),
    },
)


class TeamListCreateView(APIView):
    """队伍列表（任意已登录角色）/ 创建队伍（admin）"""

    permission_classes = [HasRole]
    role_map = {"get": ALL_ROLES, "post": {ADMIN}}

    list_service = TeamListService()
    create_service = TeamCreateService()

    @extend_schema(
        summary="队伍列表",
        description="按分数降序返回全部队伍；rank 为标准竞赛排名，每次请求实时计算",
        responses=api_response_schema("TeamList", team_serializer(), many=True),
    )
    def get(self, request: Request) -> Response:
        _ = request
        return response.success(self.list_service.execute())

    @extend_schema(
        summary="创建队伍",
        request=_team_write_request,
        responses=api_response_schema("TeamCreate", team_serializer()),
    )
    def post(self, request: Request) -> Response:
        schema = TeamCreateSchema.from_dict(request.data, auto_validate=True)
        data = self.create_service.execute(schema)
        return response.created(data, message="队伍已创建")


class TeamDetailView(APIView):
    """队伍详情（任意已登录角色）/ 更新、删除（admin）"""

    permission_classes = [HasRole]
    role_map = {"get": ALL_ROLES, "put": {ADMIN}, "patch": {ADMIN}, "delete": {ADMIN}}

    detail_service = TeamDetailService()
    update_service = TeamUpdateService()
    delete_service = TeamDeleteService()

    @extend_schema(
        summary="队伍详情",
        responses=api_response_schema("TeamDetail", team_serializer()),
    )
    def get(self, request: Request, team_id: int) -> Response:
        _ = request
        return response.success(self.detail_service.execute(team_id))

    @extend_schema(
        summary="更新队伍",
        description="可更新 name / score / image；rank 只读，传入会被忽略",
        request=_team_write_request,
        responses=api_response_schema("TeamUpdate", team_serializer()),
    )
    def put(self, request: Request, team_id: int) -> Response:
        schema = TeamUpdateSchema.from_dict(request.data, auto_validate=True)
        data = self.update_service.execute(team_id, schema)
        return response.success(data, message="队伍已更新")

    @extend_schema(
        summary="部分更新队伍",
        request=_team_write_request,
        responses=api_response_schema("TeamPatch", team_serializer()),
    )
    def patch(self, request: Request, team_id: int) -> Response:
        return self.put(request, team_id)

    @extend_schema(summary="删除队伍", responses={204: None})
    def delete(self, request: Request, team_id: int) -> Response:
        _ = request
        self.delete_service.execute(team_id)
        return response.no_content(message="队伍已删除")


class TeamParticipantAddView(APIView):
    """向队伍添加参与者（admin）"""

    permission_classes = [HasRole]
    allowed_roles = {ADMIN}

    service = AddParticipantToTeamService()

    @extend_schema(
        summary="队伍添加成员",
        description="参与者已在该队 → 409；原属其他队伍时自动离开原队",
        request=inline_serializer(
            name="TeamParticipantAddRequest",
            fields={"participant_id": serializers.IntegerField(min_value=1)},
        ),
        responses=api_response_schema("TeamParticipantAdd", team_serializer()),
    )
    def post(self, request: Request, team_id: int) -> Response:
        schema = TeamMemberAddSchema.from_dict(request.data, auto_validate=True)
        data = self.service.execute(team_id, schema.participant_id)
        return response.success(data, message="成员已加入队伍")


class TeamParticipantRemoveView(APIView):
    """从队伍移除参与者（admin），重复移除不报错"""

    permission_classes = [HasRole]
    allowed_roles = {ADMIN}

    service = RemoveParticipantFromTeamService()

    @extend_schema(
        summary="队伍移除成员",
        request=None,
        responses=api_response_schema(
            "TeamParticipantRemove",
            {"removed": serializers.BooleanField(), "team": team_serializer()},
        ),
    )
    def delete(self, request: Request, team_id: int, participant_id: int) -> Response:
        _ = request
        data = self.service.execute(team_id, participant_id)
        message = "成员已移出队伍" if data["removed"] else "该参与者不在队伍中"
        return response.success(data, message=message)
