from __future__ import annotations

import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import apps.accounts.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
        ("teams", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Participant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("fullname", models.CharField(max_length=255, verbose_name="姓名")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="邮箱")),
                ("phone_number", models.CharField(blank=True, default="", max_length=32, verbose_name="手机号")),
                ("registration_number", models.CharField(max_length=64, unique=True, verbose_name="注册号")),
                ("role", models.CharField(choices=[("admin", "管理员"), ("author", "出题人"), ("participant", "参赛者")], db_index=True, default="participant", max_length=20, verbose_name="角色")),
                ("team_joined_at", models.DateTimeField(blank=True, null=True, verbose_name="入队时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
                ("team", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="members", to="teams.team", verbose_name="当前队伍")),
            ],
            options={
                "verbose_name": "参与者",
                "verbose_name_plural": "参与者",
                "ordering": ["id"],
            },
            managers=[
                ("objects", apps.accounts.models.ParticipantManager()),
            ],
        ),
    ]
