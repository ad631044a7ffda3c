from __future__ import annotations

from django.core.cache import cache
from rest_framework.test import APIClient

from apps.accounts.models import Participant


class AuthenticatedAPIMixin:
    """
    统一的登录与认证客户端构造工具，减少各测试用例的重复代码
    """

    login_url: str = "/api/auth/login/"
    default_password: str = "Passw0rd!"
    client: APIClient  # 由 APITestCase 提供

    def setUp(self):
        super().setUp()
        # 登录限速基于缓存计数，用例之间互不影响
        cache.clear()

    @classmethod
    def make_participant(cls, username: str, *, role: str = "participant", team=None, **fields) -> Participant:
        """快速创建参与者，唯一字段按 username 派生"""
        fields.setdefault("fullname", username.title())
        fields.setdefault("email", f"{username}@example.com")
        fields.setdefault("registration_number", f"REG-{username}")
        return Participant.objects.create_user(
            username=username,
            password=cls.default_password,
            role=role,
            team=team,
            **fields,
        )

    def api_login(self, username: str, password: str | None = None, expect_status: int = 200) -> str:
        """登录并返回 access token"""
        resp = self.client.post(
            self.login_url,
            {"username": username, "password": password or self.default_password},
            format="json",
        )
        if resp.status_code != expect_status:
            raise AssertionError(f"登录接口返回 {resp.status_code}，期望 {expect_status}，响应：{resp.content}")
        return resp.data["data"]["access"]

    def auth_client(self, username: str, password: str | None = None) -> APIClient:
        """构造附带 Authorization 头的 APIClient"""
        token = self.api_login(username, password)
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return client
