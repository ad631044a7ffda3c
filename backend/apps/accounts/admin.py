"""
后台参与者管理：
- 字段布局按“账户 / 资料 / 队伍 / 状态”分区
- 角色决定后台登录权限（is_staff 由模型保存时同步），表单中不开放直接编辑
- 后台改动队伍时同步刷新入队时间
"""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.contrib.auth.forms import UserChangeForm, UserCreationForm
from django.utils import timezone

from apps.common.admin_audit import AdminAuditMixin

from .models import Participant


class ParticipantChangeForm(UserChangeForm):
    """参与者变更表单：邮箱必填"""

    class Meta(UserChangeForm.Meta):  # type: ignore[misc]
        model = Participant
        fields = "__all__"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if "email" in self.fields:
            self.fields["email"].required = True


class ParticipantCreationForm(UserCreationForm):
    """参与者创建表单：采集身份字段与角色"""

    class Meta(UserCreationForm.Meta):  # type: ignore[misc]
        model = Participant
        fields = ("username", "email", "fullname", "registration_number", "role")


@admin.register(Participant)
class ParticipantAdmin(AdminAuditMixin, DjangoUserAdmin):
    audit_model = "Participant"
    form = ParticipantChangeForm
    add_form = ParticipantCreationForm

    fieldsets = (
        ("账户", {"fields": ("username", "password", "role")}),
        ("资料", {"fields": ("fullname", "email", "phone_number", "registration_number")}),
        ("队伍", {"fields": ("team", "team_joined_at")}),
        ("状态", {"fields": ("is_active", "last_login", "date_joined", "updated_at")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "fullname",
                    "registration_number",
                    "role",
                    "password1",
                    "password2",
                ),
            },
        ),
    )
    readonly_fields = ("team_joined_at", "last_login", "date_joined", "updated_at")
    list_display = ("id", "username", "fullname", "email", "registration_number", "role", "team", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("username", "fullname", "email", "registration_number")
    ordering = ("id",)
    list_select_related = ("team",)

    def save_model(self, request, obj, form, change):
        if "team" in form.changed_data:
            obj.team_joined_at = timezone.now() if obj.team_id else None
        super().save_model(request, obj, form, change)
