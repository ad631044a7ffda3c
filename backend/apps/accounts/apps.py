from django.apps import AppConfig


class AccountsConfig(AppConfig):
    """
    参与者模块：
    - 自定义用户模型 Participant（AUTH_USER_MODEL），带角色与当前队伍
    - 登录 / 刷新 / 注销 / 个人资料，参与者增删改查
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.accounts"
    label = "accounts"
    verbose_name = "Accounts"
