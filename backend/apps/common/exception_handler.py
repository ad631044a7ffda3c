"""
全局异常处理器（REST_FRAMEWORK.EXCEPTION_HANDLER）

处理策略：
  1) BizError 及子类 → 直接转换为 {code, message, data, extra}
  2) DRF / Django 内置异常 → 映射为 BizError 再统一输出
  3) 其他异常 → 记录完整堆栈，返回 50000/500，不泄露内部信息
"""

from typing import Any

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound as DRFNotFound,
    ParseError,
    PermissionDenied as DRFPermissionDenied,
    Throttled,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response

from .exceptions import (
    AuthError,
    BadRequestError,
    BizError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ValidationError as BizValidationError,
)
from .infra.logger import get_logger, logger_extra
from .response import api_response, payload_from_biz_error
from .utils.request_context import get_request_context

logger = get_logger(__name__)


def _extract_message(detail: Any) -> str:
    """
    从 DRF 的 detail 结构中取第一条可读错误信息
    detail 可能是 str / list / dict[field -> detail]
    """
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return _extract_message(detail[0])
    if isinstance(detail, dict) and detail:
        return _extract_message(next(iter(detail.values())))
    return str(detail)


def _map_to_biz(exc: Exception) -> BizError | None:
    """把框架异常映射为 BizError 子类，映射不到返回 None"""
    if isinstance(exc, DRFValidationError):
        return BizValidationError(message=_extract_message(exc.detail), extra={"raw_detail": exc.detail})

    if isinstance(exc, ParseError):
        return BadRequestError(message=_extract_message(exc.detail))

    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        return AuthError(message=_extract_message(exc.detail))

    if isinstance(exc, (DRFPermissionDenied, DjangoPermissionDenied)):
        detail = getattr(exc, "detail", None)
        return PermissionDeniedError(message=_extract_message(detail) if detail else None)

    if isinstance(exc, (DRFNotFound, Http404)):
        return NotFoundError()

    if isinstance(exc, Throttled):
        return RateLimitError(
            message=_extract_message(exc.detail),
            extra={"wait": exc.wait},
        )

    return None


def _handle_unexpected_exception(exc: Exception, context: dict) -> Response:
    ctx = get_request_context()
    req = context.get("request")
    view = context.get("view")
    logger.exception(
        "接口出现未处理异常",
        exc_info=exc,
        extra=logger_extra({"view": view.__class__.__name__ if view else None}),
    )
    return api_response(
        code=50000,
        message="内部服务器错误，请稍后重试",
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        extra={
            "request_path": getattr(req, "path", None),
            "request_id": ctx.get("request_id"),
        },
    )


def custom_exception_handler(exc: Exception, context: dict) -> Response | None:
    if isinstance(exc, BizError):
        return Response(payload_from_biz_error(exc), status=exc.http_status)

    mapped = _map_to_biz(exc)
    if mapped is not None:
        return Response(payload_from_biz_error(mapped), status=mapped.http_status)

    # 其余 APIException（如 405、415）保留原状态码，只统一响应结构
    if isinstance(exc, APIException):
        status_code = exc.status_code
        if isinstance(exc, MethodNotAllowed):
            message = "请求方法不被允许"
        else:
            message = _extract_message(exc.detail)
        return api_response(
            code=40000 if status_code < 500 else 50000,
            message=message,
            http_status=status_code,
        )

    return _handle_unexpected_exception(exc, context)
