from __future__ import annotations

from django.contrib import admin

from apps.common.admin_audit import AdminAuditMixin

from .models import Team


@admin.register(Team)
class TeamAdmin(AdminAuditMixin, admin.ModelAdmin):
    """队伍后台：名次为实时计算值，不在后台展示或编辑"""

    audit_model = "Team"
    list_display = ("id", "name", "score", "member_count", "updated_at")
    search_fields = ("name",)
    ordering = ("-score", "id")
    readonly_fields = ("created_at", "updated_at")
