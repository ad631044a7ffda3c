from __future__ import annotations

from django.urls import path

from .views import (
    TeamDetailView,
    TeamListCreateView,
    TeamParticipantAddView,
    TeamParticipantRemoveView,
)

# 路由配置：队伍与队伍成员

app_name = "teams"

urlpatterns = [
    # 队伍列表 / 创建
    path("", TeamListCreateView.as_view(), name="list"),
    # 队伍详情 / 更新 / 删除
    path("<int:team_id>/", TeamDetailView.as_view(), name="detail"),
    # 添加成员
    path("<int:team_id>/participants/", TeamParticipantAddView.as_view(), name="participants"),
    # 移除成员
    path(
        "<int:team_id>/participants/<int:participant_id>/",
        TeamParticipantRemoveView.as_view(),
        name="participant-remove",
    ),
]
