"""
自定义分页器（apps.common.pagination）

- 响应结构与 common.response.page_success 对齐：data 为当前页列表，extra 为分页元信息
- 限制单页最大条数，防止一次拉取过多数据
- 既可作为 DRF 全局分页器，也可在 APIView 中对普通列表手动分页
"""

from __future__ import annotations

from typing import Any, List, Sequence

from rest_framework.pagination import PageNumberPagination
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.exceptions import ValidationError
from apps.common.response import page_success


class StandardPagination(PageNumberPagination):
    page_size: int = 20
    page_size_query_param: str = "page_size"
    max_page_size: int = 100

    def get_paginated_response(self, data: List[Any]) -> Response:
        return page_success(
            items=data,
            page=self.page.number,
            page_size=self.page.paginator.per_page,
            total=self.page.paginator.count,
        )

    def get_page_size(self, request: Request) -> int:
        size = super().get_page_size(request)
        if size is None:
            return self.page_size
        return max(1, size)

    def paginate_sequence(self, items: Sequence[Any], request: Request) -> Response:
        """
        对已组装好的列表分页并直接返回统一响应
        - 页码非法（非数字或小于 1）→ ValidationError；超出末页返回空列表
        """
        page_size = self.get_page_size(request)
        raw_page = request.query_params.get(self.page_query_param, "1")
        try:
            page = int(raw_page)
        except (TypeError, ValueError) as exc:
            raise ValidationError(message="页码必须是正整数") from exc
        if page < 1:
            raise ValidationError(message="页码必须是正整数")
        start = (page - 1) * page_size
        return page_success(
            items=list(items[start:start + page_size]),
            page=page,
            page_size=page_size,
            total=len(items),
        )
