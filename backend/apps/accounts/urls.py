from __future__ import annotations

from django.urls import path

from .views import (
    LoginView,
    LogoutView,
    ParticipantDetailView,
    ParticipantListCreateView,
    ProfileView,
    TokenRefreshView,
)

app_name = "accounts"

urlpatterns = [
    # 登录：返回 access / refresh，并写入 refresh Cookie
    path("auth/login/", LoginView.as_view(), name="login"),
    # 刷新访问令牌：refresh 来自请求体或 Cookie
    path("auth/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    # 注销：拉黑 refresh
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    # 当前登录用户
    path("auth/me/", ProfileView.as_view(), name="profile"),
    # 参与者列表 / 创建（admin）
    path("participants/", ParticipantListCreateView.as_view(), name="participant-list"),
    # 参与者详情 / 更新 / 删除
    path("participants/<int:participant_id>/", ParticipantDetailView.as_view(), name="participant-detail"),
]
# 账户相关路由：挂载于 /api/ 之下，auth/ 为认证，participants/ 为参与者管理
