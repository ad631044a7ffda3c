"""
参与者模型

- Participant 同时是认证主体（AUTH_USER_MODEL），role 决定接口权限
- team 外键是成员关系的唯一事实来源：队伍删除时置空，参与者删除时随行消失
"""

from __future__ import annotations

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models

from .roles import ADMIN, PARTICIPANT, ROLE_CHOICES


class ParticipantManager(UserManager):
    """createsuperuser 创建的账号默认为 admin 角色"""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", ADMIN)
        extra_fields.setdefault("fullname", username)
        extra_fields.setdefault("registration_number", f"ADMIN-{username}")
        return super().create_superuser(username, email=email, password=password, **extra_fields)


class Participant(AbstractUser):
    """参与者"""

    # 只保留 fullname，不使用 AbstractUser 的姓 / 名拆分
    first_name = None
    last_name = None

    # 姓名
    fullname = models.CharField("姓名", max_length=255)
    # 邮箱，全局唯一
    email = models.EmailField("邮箱", unique=True)
    # 手机号
    phone_number = models.CharField("手机号", max_length=32, blank=True, default="")
    # 学号 / 注册号，全局唯一
    registration_number = models.CharField("注册号", max_length=64, unique=True)
    # 角色
    role = models.CharField("角色", max_length=20, choices=ROLE_CHOICES, default=PARTICIPANT, db_index=True)
    # 当前队伍
    team = models.ForeignKey(
        "teams.Team",
        verbose_name="当前队伍",
        related_name="members",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # 加入当前队伍的时间
    team_joined_at = models.DateTimeField("入队时间", null=True, blank=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    REQUIRED_FIELDS = ["email"]

    objects = ParticipantManager()

    class Meta:
        ordering = ["id"]
        verbose_name = "参与者"
        verbose_name_plural = "参与者"

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"

    def save(self, *args, **kwargs):
        # 后台登录权限跟随角色
        self.is_staff = self.role == ADMIN or self.is_superuser
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "role" in update_fields and "is_staff" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "is_staff"]
        super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN
