from __future__ import annotations

from django.db import connection
from drf_spectacular.utils import extend_schema
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common import response
from apps.common.exceptions import BizError
from apps.common.infra.logger import get_logger
from apps.common.permissions import AllowAny
from apps.common.schema_utils import api_response_schema

logger = get_logger(__name__)


class DatabaseUnavailableError(BizError):
    default_code = 50300
    default_message = "数据库暂时不可用"
    http_status = 503


class HealthCheckView(APIView):
    """
    健康检查接口
    - 供负载均衡 / 监控探活，只做一次 SELECT 1
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]

    @extend_schema(
        summary="健康检查",
        request=None,
        responses=api_response_schema(
            "HealthCheck",
            {"status": serializers.CharField(), "database": serializers.CharField()},
        ),
    )
    def get(self, request: Request) -> Response:
        _ = request
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception as exc:
            logger.error("健康检查：数据库不可用", exc_info=exc)
            raise DatabaseUnavailableError() from exc
        return response.success({"status": "ok", "database": "ok"})
