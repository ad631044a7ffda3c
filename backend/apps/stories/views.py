"""剧情模块 API 视图：章节 / 故事 / 题目，读对三种角色开放，写仅 admin"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.roles import ADMIN, ALL_ROLES, can_view_flags
from apps.common import response
from apps.common.permissions import HasRole
from apps.common.schema_utils import (
    api_response_schema,
    challenge_serializer,
    chapter_serializer,
    story_serializer,
)

from .schemas import (
    ChallengeCreateSchema,
    ChallengeUpdateSchema,
    ChapterCreateSchema,
    ChapterUpdateSchema,
    StoryCreateSchema,
    StoryUpdateSchema,
)
from .services import (
    ChallengeCreateService,
    ChallengeDeleteService,
    ChallengeDetailService,
    ChallengeListService,
    ChallengeUpdateService,
    ChapterCreateService,
    ChapterDeleteService,
    ChapterDetailService,
    ChapterListService,
    ChapterUpdateService,
    StoryCreateService,
    StoryDeleteService,
    StoryDetailService,
    StoryListService,
    StoryUpdateService,
)

_LIST_CREATE_ROLES = {"get": ALL_ROLES, "post": {ADMIN}}
_DETAIL_ROLES = {"get": ALL_ROLES, "put": {ADMIN}, "patch": {ADMIN}, "delete": {ADMIN}}

_chapter_request = inline_serializer(
    name="ChapterWriteRequest",
    fields={
        "chapter_number": serializers.IntegerField(min_value=1),
        "chapter_code": serializers.CharField(max_length=100),
        "script": serializers.CharField(allow_blank=True),
        "image": serializers.URLField(required=False, allow_blank=True),
    },
)
_story_request = inline_serializer(
    name="StoryWriteRequest",
    fields={
        "chapter_id": serializers.IntegerField(min_value=1),
        "story_number": serializers.IntegerField(min_value=1),
        "script": serializers.CharField(allow_blank=True),
    },
)
_challenge_request = inline_serializer(
    name="ChallengeWriteRequest",
    fields={
        "story_id": serializers.IntegerField(min_value=1),
        "flag": serializers.CharField(max_length=255),
        "story_number": serializers.IntegerField(min_value=1, required=False, help_text="缺省取所属故事序号"),
        "score": serializers.IntegerField(min_value=0, required=False),
    },
)


# ======================
# 章节
# ======================

class ChapterListCreateView(APIView):
    permission_classes = [HasRole]
    role_map = _LIST_CREATE_ROLES

    list_service = ChapterListService()
    create_service = ChapterCreateService()

    @extend_schema(
        summary="章节列表",
        description="按章节序号升序，嵌套故事与题目；Flag 仅 admin / author 可见",
        responses=api_response_schema("ChapterList", chapter_serializer(), many=True),
    )
    def get(self, request: Request) -> Response:
        return response.success(self.list_service.execute(show_flag=can_view_flags(request.user)))

    @extend_schema(
        summary="创建章节",
        request=_chapter_request,
        responses=api_response_schema("ChapterCreate", chapter_serializer()),
    )
    def post(self, request: Request) -> Response:
        schema = ChapterCreateSchema.from_dict(request.data)
        return response.created(self.create_service.execute(schema), message="章节已创建")


class ChapterDetailView(APIView):
    permission_classes = [HasRole]
    role_map = _DETAIL_ROLES

    detail_service = ChapterDetailService()
    update_service = ChapterUpdateService()
    delete_service = ChapterDeleteService()

    @extend_schema(summary="章节详情", responses=api_response_schema("ChapterDetail", chapter_serializer()))
    def get(self, request: Request, chapter_id: int) -> Response:
        return response.success(self.detail_service.execute(chapter_id, show_flag=can_view_flags(request.user)))

    @extend_schema(
        summary="更新章节",
        request=_chapter_request,
        responses=api_response_schema("ChapterUpdate", chapter_serializer()),
    )
    def put(self, request: Request, chapter_id: int) -> Response:
        schema = ChapterUpdateSchema.from_dict(request.data)
        return response.success(self.update_service.execute(chapter_id, schema), message="章节已更新")

    @extend_schema(summary="部分更新章节", responses=api_response_schema("ChapterPatch", chapter_serializer()))
    def patch(self, request: Request, chapter_id: int) -> Response:
        return self.put(request, chapter_id)

    @extend_schema(summary="删除章节", description="其下故事与题目一并删除", responses={204: None})
    def delete(self, request: Request, chapter_id: int) -> Response:
        _ = request
        self.delete_service.execute(chapter_id)
        return response.no_content(message="章节已删除")


# ======================
# 故事
# ======================

class StoryListCreateView(APIView):
    permission_classes = [HasRole]
    role_map = _LIST_CREATE_ROLES

    list_service = StoryListService()
    create_service = StoryCreateService()

    @extend_schema(summary="故事列表", responses=api_response_schema("StoryList", story_serializer(), many=True))
    def get(self, request: Request) -> Response:
        return response.success(self.list_service.execute(show_flag=can_view_flags(request.user)))

    @extend_schema(
        summary="创建故事",
        request=_story_request,
        responses=api_response_schema("StoryCreate", story_serializer()),
    )
    def post(self, request: Request) -> Response:
        schema = StoryCreateSchema.from_dict(request.data)
        return response.created(self.create_service.execute(schema), message="故事已创建")


class StoryDetailView(APIView):
    permission_classes = [HasRole]
    role_map = _DETAIL_ROLES

    detail_service = StoryDetailService()
    update_service = StoryUpdateService()
    delete_service = StoryDeleteService()

    @extend_schema(summary="故事详情", responses=api_response_schema("StoryDetail", story_serializer()))
    def get(self, request: Request, story_id: int) -> Response:
        return response.success(self.detail_service.execute(story_id, show_flag=can_view_flags(request.user)))

    @extend_schema(
        summary="更新故事",
        description="challenge_count 由系统维护，传入会被忽略",
        request=_story_request,
        responses=api_response_schema("StoryUpdate", story_serializer()),
    )
    def put(self, request: Request, story_id: int) -> Response:
        schema = StoryUpdateSchema.from_dict(request.data)
        return response.success(self.update_service.execute(story_id, schema), message="故事已更新")

    @extend_schema(summary="部分更新故事", responses=api_response_schema("StoryPatch", story_serializer()))
    def patch(self, request: Request, story_id: int) -> Response:
        return self.put(request, story_id)

    @extend_schema(summary="删除故事", responses={204: None})
    def delete(self, request: Request, story_id: int) -> Response:
        _ = request
        self.delete_service.execute(story_id)
        return response.no_content(message="故事已删除")


# ======================
# 题目
# ======================

class ChallengeListCreateView(APIView):
    permission_classes = [HasRole]
    role_map = _LIST_CREATE_ROLES

    list_service = ChallengeListService()
    create_service = ChallengeCreateService()

    @extend_schema(
        summary="题目列表",
        description="按分值降序；Flag 仅 admin / author 可见",
        responses=api_response_schema("ChallengeList", challenge_serializer(), many=True),
    )
    def get(self, request: Request) -> Response:
        return response.success(self.list_service.execute(show_flag=can_view_flags(request.user)))

    @extend_schema(
        summary="创建题目",
        request=_challenge_request,
        responses=api_response_schema("ChallengeCreate", challenge_serializer()),
    )
    def post(self, request: Request) -> Response:
        schema = ChallengeCreateSchema.from_dict(request.data)
        return response.created(self.create_service.execute(schema), message="题目已创建")


class ChallengeDetailView(APIView):
    permission_classes = [HasRole]
    role_map = _DETAIL_ROLES

    detail_service = ChallengeDetailService()
    update_service = ChallengeUpdateService()
    delete_service = ChallengeDeleteService()

    @extend_schema(summary="题目详情", responses=api_response_schema("ChallengeDetail", challenge_serializer()))
    def get(self, request: Request, challenge_id: int) -> Response:
        return response.success(
            self.detail_service.execute(challenge_id, show_flag=can_view_flags(request.user))
        )

    @extend_schema(
        summary="更新题目",
        description="改派故事时 story_number 以新故事为准",
        request=_challenge_request,
        responses=api_response_schema("ChallengeUpdate", challenge_serializer()),
    )
    def put(self, request: Request, challenge_id: int) -> Response:
        schema = ChallengeUpdateSchema.from_dict(request.data)
        return response.success(self.update_service.execute(challenge_id, schema), message="题目已更新")

    @extend_schema(summary="部分更新题目", responses=api_response_schema("ChallengePatch", challenge_serializer()))
    def patch(self, request: Request, challenge_id: int) -> Response:
        return self.put(request, challenge_id)

    @extend_schema(summary="删除题目", responses={204: None})
    def delete(self, request: Request, challenge_id: int) -> Response:
        _ = request
        self.delete_service.execute(challenge_id)
        return response.no_content(message="题目已删除")
