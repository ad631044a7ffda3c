"""
统一 API 响应封装（common.response）

- 所有接口返回结构一致，业务代码只关注 data / message
- 与 BizError 体系对齐，异常处理器与正常返回共用同一字段语义

约定返回结构：
{
    "code": 0,            # 0 表示成功；非 0 表示业务错误
    "message": "OK",
    "data": {...},        # 业务数据（列表、字典、None 均可）
    "extra": {...}        # 可选，分页信息或错误细节
}
"""

from typing import Any, Mapping, Optional

from rest_framework import status
from rest_framework.response import Response

from .exceptions import BizError

SUCCESS_CODE = 0

Payload = dict[str, Any]


def build_payload(
        *,
        code: int = SUCCESS_CODE,
        message: str = "OK",
        data: Any = None,
        extra: Optional[Mapping[str, Any]] = None,
) -> Payload:
    payload: Payload = {
        "code": code,
        "message": message,
        "data": data,
    }
    if extra:
        payload["extra"] = dict(extra)
    return payload


def payload_from_biz_error(exc: BizError, data: Any = None) -> Payload:
    return build_payload(code=exc.code, message=exc.message, data=data, extra=exc.extra)


def api_response(
        *,
        code: int = SUCCESS_CODE,
        message: str = "OK",
        data: Any = None,
        http_status: int = status.HTTP_200_OK,
        extra: Optional[Mapping[str, Any]] = None,
) -> Response:
    """所有接口 / 异常的最终出口"""
    payload = build_payload(code=code, message=message, data=data, extra=extra)
    return Response(payload, status=http_status)


def success(data: Any = None, message: str = "OK") -> Response:
    return api_response(data=data, message=message, http_status=status.HTTP_200_OK)


def created(data: Any = None, message: str = "Created") -> Response:
    return api_response(data=data, message=message, http_status=status.HTTP_201_CREATED)


def no_content(message: str = "No Content") -> Response:
    """
    删除成功等无内容返回
    - HTTP 204 不允许携带响应体，客户端只看状态码
    """
    return api_response(data=None, message=message, http_status=status.HTTP_204_NO_CONTENT)


def page_success(
        *,
        items: Any,
        page: int,
        page_size: int,
        total: int,
        message: str = "OK",
) -> Response:
    """
    分页成功返回

    {
        "code": 0,
        "message": "OK",
        "data": [...],
        "extra": {"page": 1, "page_size": 20, "total": 120, "total_pages": 6,
                  "has_next": true, "has_previous": false}
    }
    """
    total_pages = (total + page_size - 1) // page_size if page_size else 0
    extra = {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }
    return api_response(data=items, message=message, http_status=status.HTTP_200_OK, extra=extra)
