from __future__ import annotations

from drf_spectacular.extensions import OpenApiAuthenticationExtension
from drf_spectacular.openapi import AutoSchema
from drf_spectacular.plumbing import build_bearer_security_scheme_object


class JWTAuthScheme(OpenApiAuthenticationExtension):
    """为自定义 JWTAuthentication 提供 OpenAPI 描述，文档中显示 Bearer Auth"""

    target_class = "apps.common.authentication.JWTAuthentication"
    name = "JWTAuth"

    def get_security_definition(self, auto_schema):
        return build_bearer_security_scheme_object(
            header_name="Authorization",
            token_prefix="Bearer",
        )


class ShortDescriptionAutoSchema(AutoSchema):
    """
    自定义 AutoSchema
    - 描述缺失时取视图类 docstring 首行
    - 标签缺失时按路径推导：/api/teams/... -> teams，/api/auth/... -> auth
    """

    def get_description(self) -> str:
        desc = super().get_description()
        if desc:
            return desc
        doc = (getattr(self.view, "__doc__", "") or "").strip()
        if doc:
            return doc.splitlines()[0].strip()
        return f"{self.method} {self.path} 接口"

    def get_tags(self):
        tags = super().get_tags() or []
        if tags and tags != ["api"]:
            return tags
        parts = [p for p in (self.path or "").strip("/").split("/") if p and p != "api"]
        if parts:
            return [parts[0].replace("-", "_")]
        return ["api"]
