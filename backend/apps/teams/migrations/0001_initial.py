from __future__ import annotations

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True, verbose_name="队伍名称")),
                ("score", models.PositiveIntegerField(default=0, verbose_name="分数")),
                ("image", models.URLField(blank=True, default="", max_length=500, verbose_name="队伍图片")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
            ],
            options={
                "verbose_name": "队伍",
                "verbose_name_plural": "队伍",
                "ordering": ["-score", "id"],
            },
        ),
        migrations.AddIndex(
            model_name="team",
            index=models.Index(fields=["-score", "id"], name="team_score_idx"),
        ),
    ]
