"""
公共模块单测：
- 统一异常处理与响应结构
- Schema 解析、入参校验工具
- 手动分页、健康检查与 request_id 回写
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from django.http import Http404
from django.test import SimpleTestCase, TestCase
from django.urls import resolve
from rest_framework import exceptions as drf_exceptions
from rest_framework.test import APIRequestFactory
from rest_framework.request import Request

from apps.common.base.base_schema import BaseSchema
from apps.common.exception_handler import custom_exception_handler
from apps.common.exceptions import DuplicateFieldError, ValidationError
from apps.common.infra.logger import logger_extra
from apps.common.pagination import StandardPagination
from apps.common.schema_utils import chapter_serializer, story_serializer
from apps.common.utils.validators import coerce_int, validate_http_url, validate_text_length


@dataclass
class _DemoSchema(BaseSchema[None]):
    ALIASES: ClassVar[dict[str, str]] = {"displayName": "name"}

    name: Any
    size: Any = 1

    def validate(self) -> None:
        pass


class ExceptionHandlerTests(SimpleTestCase):
    def test_biz_error_payload(self):
        resp = custom_exception_handler(DuplicateFieldError("name", message="队伍名称已存在"), {})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], 40901)
        self.assertEqual(resp.data["message"], "队伍名称已存在")
        self.assertEqual(resp.data["extra"], {"field": "name"})

    def test_drf_exceptions_are_mapped(self):
        cases = [
            (drf_exceptions.NotAuthenticated(), 401),
            (drf_exceptions.PermissionDenied(), 403),
            (Http404(), 404),
            (drf_exceptions.ValidationError({"name": ["必填"]}), 400),
            (drf_exceptions.MethodNotAllowed("PATCH"), 405),
        ]
        for exc, status_code in cases:
            with self.subTest(exc=type(exc).__name__):
                resp = custom_exception_handler(exc, {})
                self.assertEqual(resp.status_code, status_code)
                self.assertIn("code", resp.data)
                self.assertIn("message", resp.data)

    def test_unexpected_error_is_500(self):
        resp = custom_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.data["code"], 50000)
        self.assertNotIn("boom", resp.data["message"])


class BaseSchemaTests(SimpleTestCase):
    def test_aliases_and_provided(self):
        schema = _DemoSchema.from_dict({"displayName": "x", "ignored": 1})
        self.assertEqual(schema.name, "x")
        self.assertTrue(schema.has("name"))
        self.assertFalse(schema.has("size"))
        self.assertEqual(schema.to_dict(only_provided=True), {"name": "x"})

    def test_missing_required_field(self):
        with self.assertRaises(ValidationError) as ctx:
            _DemoSchema.from_dict({})
        self.assertEqual(ctx.exception.extra["fields"], ["name"])

    def test_non_mapping_body(self):
        with self.assertRaises(ValidationError):
            _DemoSchema.from_dict(["not", "a", "dict"])  # type: ignore[arg-type]


class ValidatorTests(SimpleTestCase):
    def test_coerce_int(self):
        self.assertEqual(coerce_int("12", field_name="n"), 12)
        for bad in (True, "abc", 1.5, None):
            with self.subTest(value=bad), self.assertRaises(ValidationError):
                coerce_int(bad, field_name="n")
        with self.assertRaises(ValidationError):
            coerce_int(-1, field_name="n", min_value=0)

    def test_text_length_strips(self):
        self.assertEqual(validate_text_length("  ab  ", field_name="t", min_length=2), "ab")
        with self.assertRaises(ValidationError):
            validate_text_length("a" * 6, field_name="t", max_length=5)

    def test_http_url(self):
        validate_http_url("")
        validate_http_url("https://example.com/a.png")
        with self.assertRaises(ValidationError):
            validate_http_url("ftp://example.com/a.png")

    def test_logger_extra_masks_secrets(self):
        self.assertEqual(
            logger_extra({"password": "p", "flag": "F", "team_id": 1}),
            {"password": "***", "flag": "***", "team_id": 1},
        )


class PaginationTests(SimpleTestCase):
    factory = APIRequestFactory()

    def _request(self, **params) -> Request:
        return Request(self.factory.get("/x/", params))

    def test_paginate_sequence(self):
        resp = StandardPagination().paginate_sequence(list(range(45)), self._request(page=3, page_size=20))
        self.assertEqual(resp.data["data"], list(range(40, 45)))
        self.assertEqual(resp.data["extra"]["total_pages"], 3)
        self.assertFalse(resp.data["extra"]["has_next"])
        self.assertTrue(resp.data["extra"]["has_previous"])

    def test_invalid_page(self):
        for page in ("0", "abc"):
            with self.subTest(page=page), self.assertRaises(ValidationError):
                StandardPagination().paginate_sequence([1, 2], self._request(page=page))


class HealthCheckTests(TestCase):
    def test_health_ok_with_request_id(self):
        resp = self.client.get("/api/health/", HTTP_X_REQUEST_ID="req-123")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"], {"status": "ok", "database": "ok"})
        self.assertEqual(resp["X-Request-ID"], "req-123")

    def test_unknown_route_is_404(self):
        resp = self.client.get("/api/not-a-route/")
        self.assertEqual(resp.status_code, 404)


class SchemaDocsTests(TestCase):
    def test_urlconf_loads_every_route(self):
        for path in ("/api/teams/", "/api/participants/", "/api/chapters/", "/api/stories/", "/api/challenges/"):
            with self.subTest(path=path):
                self.assertIsNotNone(resolve(path))

    def test_schema_lists_api_paths(self):
        resp = self.client.get("/api/schema/", {"format": "json"})
        self.assertEqual(resp.status_code, 200)
        paths = json.loads(resp.content)["paths"]
        for path in ("/api/teams/", "/api/chapters/", "/api/stories/{story_id}/", "/api/auth/login/"):
            self.assertIn(path, paths)

    def test_nested_serializers_are_independent(self):
        self.assertIsNot(story_serializer(), story_serializer())
        chapter_serializer()
        self.assertIsNone(story_serializer().source)
