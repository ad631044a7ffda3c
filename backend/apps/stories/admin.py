from __future__ import annotations

from django.contrib import admin

from apps.common.admin_audit import AdminAuditMixin

from .models import Challenge, Chapter, Story
from .repo import StoryRepo


class StoryInline(admin.TabularInline):
    model = Story
    extra = 0
    fields = ("story_number", "challenge_count")
    readonly_fields = ("challenge_count",)


@admin.register(Chapter)
class ChapterAdmin(AdminAuditMixin, admin.ModelAdmin):
    audit_model = "Chapter"
    list_display = ("id", "chapter_number", "chapter_code", "updated_at")
    search_fields = ("chapter_code",)
    ordering = ("chapter_number",)
    inlines = [StoryInline]


@admin.register(Story)
class StoryAdmin(AdminAuditMixin, admin.ModelAdmin):
    """challenge_count 由题目增删维护，后台只读"""

    audit_model = "Story"
    list_display = ("id", "chapter", "story_number", "challenge_count")
    list_filter = ("chapter",)
    readonly_fields = ("challenge_count", "created_at", "updated_at")
    list_select_related = ("chapter",)


@admin.register(Challenge)
class ChallengeAdmin(AdminAuditMixin, admin.ModelAdmin):
    audit_model = "Challenge"
    list_display = ("id", "story", "story_number", "score")
    list_filter = ("story__chapter",)
    ordering = ("-score", "id")
    list_select_related = ("story",)

    def save_model(self, request, obj, form, change):
        previous_story_id = None
        if change and "story" in form.changed_data:
            previous_story_id = Challenge.objects.filter(pk=obj.pk).values_list("story_id", flat=True).first()
        super().save_model(request, obj, form, change)
        for story_id in {obj.story_id, previous_story_id} - {None}:
            StoryRepo().recount_challenges(story_id)

    def delete_model(self, request, obj):
        story_id = obj.story_id
        super().delete_model(request, obj)
        StoryRepo().recount_challenges(story_id)
