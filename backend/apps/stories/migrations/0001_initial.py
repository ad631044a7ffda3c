from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Chapter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("chapter_number", models.PositiveIntegerField(unique=True, verbose_name="章节序号")),
                ("chapter_code", models.CharField(max_length=100, unique=True, verbose_name="章节编码")),
                ("image", models.URLField(blank=True, default="", max_length=500, verbose_name="章节图片")),
                ("script", models.TextField(verbose_name="章节剧本")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
            ],
            options={
                "verbose_name": "章节",
                "verbose_name_plural": "章节",
                "ordering": ["chapter_number"],
            },
        ),
        migrations.CreateModel(
            name="Story",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("story_number", models.PositiveIntegerField(verbose_name="故事序号")),
                ("script", models.TextField(verbose_name="故事剧本")),
                ("challenge_count", models.PositiveIntegerField(default=0, verbose_name="题目数量")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
                ("chapter", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="stories", to="stories.chapter", verbose_name="所属章节")),
            ],
            options={
                "verbose_name": "故事",
                "verbose_name_plural": "故事",
                "ordering": ["story_number", "id"],
            },
        ),
        migrations.CreateModel(
            name="Challenge",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("flag", models.CharField(max_length=255, verbose_name="Flag")),
                ("story_number", models.PositiveIntegerField(verbose_name="故事序号")),
                ("score", models.PositiveIntegerField(default=0, verbose_name="分值")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
                ("story", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="challenges", to="stories.story", verbose_name="所属故事")),
            ],
            options={
                "verbose_name": "题目",
                "verbose_name_plural": "题目",
                "ordering": ["-score", "id"],
            },
        ),
    ]
