"""
Core app service layer.

Cross-app read services that back the ``/api/core/`` endpoints:

* ``SystemConstantsService`` — choice enumerations for frontend dropdowns.
* ``NotificationInboxService`` — per-user notification listing / read state.
* ``AuditLogQueryService``   — filtered audit trail for administrators.

Notification *creation* lives in ``core.domain.notifications``; audit
*writing* lives in ``core.domain.audit``.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models import QuerySet
from django.utils import timezone

from core.domain.access import RoleName, actor_for, require_admin
from core.domain.exceptions import NotFound

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all system-wide choice enumerations into a single dict for
    the frontend.

    This service is **stateless** — it does not depend on the requesting
    user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from cases.models import CaseStatus, HearingType, RemarkType

        to_list = SystemConstantsService._choices_to_list

        return {
            "case_statuses": to_list(CaseStatus),
            "hearing_types": to_list(HearingType),
            "remark_types": to_list(RemarkType),
            "roles": [
                {"value": name, "label": name.replace("_", " ").title()}
                for name in sorted(RoleName.ALL)
            ],
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification inbox
# ═══════════════════════════════════════════════════════════════════

class NotificationInboxService:
    """
    Handles listing and marking notifications as read for a given user.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet:
        """Return notifications for ``self.user``, most recent first."""
        from core.models import Notification

        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("content_type")
            .order_by("-created_at")
        )
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs

    def mark_as_read(self, notification_id: Any) -> Any:
        """Mark a single notification as read.  Idempotent."""
        from core.models import Notification

        try:
            notification = Notification.objects.get(
                pk=notification_id,
                recipient=self.user,
            )
        except (Notification.DoesNotExist, ValueError, TypeError):
            raise NotFound("Notification not found.")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification of ``self.user`` read; returns the count."""
        from core.models import Notification

        updated = Notification.objects.filter(
            recipient=self.user, is_read=False,
        ).update(is_read=True, read_at=timezone.now())
        logger.debug("Marked %d notification(s) read for user=%s", updated, self.user.pk)
        return updated


# ═══════════════════════════════════════════════════════════════════
#  Audit trail
# ═══════════════════════════════════════════════════════════════════

class AuditLogQueryService:

    @staticmethod
    def list_entries(user: Any, filters: dict[str, Any] | None = None) -> QuerySet:
        """
        Audit entries, newest first.  Administrators only.

        Supported filters: ``action``, ``entity_type``, ``entity_id``,
        ``actor``.
        """
        from core.models import AuditLog

        require_admin(actor_for(user))
        filters = filters or {}
        qs = AuditLog.objects.select_related("actor").order_by("-created_at")
        if filters.get("action"):
            qs = qs.filter(action=filters["action"])
        if filters.get("entity_type"):
            qs = qs.filter(entity_type=filters["entity_type"])
        if filters.get("entity_id"):
            qs = qs.filter(entity_id=str(filters["entity_id"]))
        if filters.get("actor"):
            qs = qs.filter(actor_id=filters["actor"])
        return qs
