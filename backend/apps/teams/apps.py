from django.apps import AppConfig


class TeamsConfig(AppConfig):
    """队伍模块：队伍资料、成员关系与实时排名"""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.teams"
    label = "teams"
    verbose_name = "Teams"
