"""后台审计：记录 Django Admin 中的增删改操作"""

from __future__ import annotations

from apps.common.infra.logger import get_logger, logger_extra

logger = get_logger(__name__)


class AdminAuditMixin:
    """ModelAdmin 混入类，保存 / 删除后写一条审计日志"""

    audit_model = ""

    def _audit(self, request, obj, action: str) -> None:
        logger.info(
            "Admin操作",
            extra=logger_extra(
                {
                    "admin": getattr(request.user, "username", None),
                    "model": self.audit_model or obj.__class__.__name__,
                    "object_id": getattr(obj, "pk", None),
                    "action": action,
                }
            ),
        )

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)  # type: ignore[misc]
        self._audit(request, obj, "change" if change else "add")

    def delete_model(self, request, obj):
        pk = obj.pk
        super().delete_model(request, obj)  # type: ignore[misc]
        obj.pk = pk
        self._audit(request, obj, "delete")
