"""
校验工具集合：字段格式与取值范围校验，失败统一抛 ValidationError
"""

from __future__ import annotations

from typing import Any, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator, validate_email as django_validate_email

from apps.common.exceptions import ValidationError

_http_url_validator = URLValidator(schemes=["http", "https"])

# PositiveIntegerField 在 PostgreSQL 上的上限
POSITIVE_INT_MAX = 2_147_483_647


def validate_email(email: Any) -> None:
    if not isinstance(email, str):
        raise ValidationError(message="邮箱格式不正确")
    try:
        django_validate_email(email)
    except DjangoValidationError as exc:
        raise ValidationError(message="邮箱格式不正确") from exc


def validate_text_length(
        value: Any, *, field_name: str, min_length: int = 1, max_length: Optional[int] = None
) -> str:
    """校验字符串长度并返回去除首尾空白后的值"""
    if not isinstance(value, str):
        raise ValidationError(message=f"{field_name}必须是字符串")
    value = value.strip()
    if len(value) < min_length:
        raise ValidationError(message=f"{field_name}长度不能少于 {min_length} 个字符")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(message=f"{field_name}长度不能超过 {max_length} 个字符")
    return value


def validate_http_url(
        url: Any, *, field_name: str = "链接", allow_blank: bool = True, max_length: Optional[int] = None
) -> None:
    """可选链接校验：空值放行（allow_blank），否则必须是 http(s) URL，且不超过 max_length"""
    if url in (None, "") and allow_blank:
        return
    if not isinstance(url, str):
        raise ValidationError(message=f"{field_name}必须是 http(s) 链接")
    if max_length is not None and len(url) > max_length:
        raise ValidationError(message=f"{field_name}长度不能超过 {max_length} 个字符")
    try:
        _http_url_validator(url)
    except DjangoValidationError as exc:
        raise ValidationError(message=f"{field_name}必须是 http(s) 链接") from exc


def coerce_int(
        value: Any, *, field_name: str, min_value: Optional[int] = None, max_value: Optional[int] = None
) -> int:
    """
    把请求中的数字（含数字字符串）转为 int，并校验上下限
    - 布尔值不视为整数
    """
    if isinstance(value, bool):
        raise ValidationError(message=f"{field_name}必须是整数")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(message=f"{field_name}必须是整数") from exc
    if isinstance(value, float) and value != number:
        raise ValidationError(message=f"{field_name}必须是整数")
    if min_value is not None and number < min_value:
        raise ValidationError(message=f"{field_name}不能小于 {min_value}")
    if max_value is not None and number > max_value:
        raise ValidationError(message=f"{field_name}不能大于 {max_value}")
    return number
