from django.apps import AppConfig


class StoriesConfig(AppConfig):
    """剧情模块：章节、故事与题目"""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.stories"
    label = "stories"
    verbose_name = "Stories"
