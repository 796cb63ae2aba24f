"""
core.domain.audit — Append-only audit logger.

Writes one ``core.AuditLog`` row per call.  The case orchestrator writes
exactly one entry per committed transition, after notifications.

Usage::

    from core.domain.audit import AuditLogger

    AuditLogger.log(
        action="case.approved",
        entity_type="case",
        entity_id=case.pk,
        actor=request.user,
        details={"status": case.status},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from django.http import HttpRequest

    from accounts.models import User
    from core.models import AuditLog

logger = logging.getLogger(__name__)


def _client_ip(request: HttpRequest | None) -> str | None:
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


class AuditLogger:
    """Stateless audit writer."""

    @classmethod
    def log(
        cls,
        *,
        action: str,
        entity_type: str,
        entity_id: Any,
        actor: User | None = None,
        details: dict[str, Any] | None = None,
        request: HttpRequest | None = None,
    ) -> AuditLog:
        from core.models import AuditLog

        entry = AuditLog.objects.create(
            action=action,
            entity_type=entity_type,
            entity_id="" if entity_id is None else str(entity_id),
            actor=actor if actor is not None and actor.pk else None,
            actor_email=getattr(actor, "email", "") or "",
            ip_address=_client_ip(request),
            details=details or {},
        )
        logger.info(
            "Audit [%s] %s#%s by %s",
            action,
            entity_type,
            entry.entity_id,
            entry.actor_email or "anonymous",
        )
        return entry
