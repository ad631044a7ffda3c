from __future__ import annotations

from django.urls import path

from .views import (
    ChallengeDetailView,
    ChallengeListCreateView,
    ChapterDetailView,
    ChapterListCreateView,
    StoryDetailView,
    StoryListCreateView,
)

# 路由配置：挂载于 /api/ 之下

app_name = "stories"

urlpatterns = [
    # 章节
    path("chapters/", ChapterListCreateView.as_view(), name="chapter-list"),
    path("chapters/<int:chapter_id>/", ChapterDetailView.as_view(), name="chapter-detail"),
    # 故事
    path("stories/", StoryListCreateView.as_view(), name="story-list"),
    path("stories/<int:story_id>/", StoryDetailView.as_view(), name="story-detail"),
    # 题目
    path("challenges/", ChallengeListCreateView.as_view(), name="challenge-list"),
    path("challenges/<int:challenge_id>/", ChallengeDetailView.as_view(), name="challenge-detail"),
]
