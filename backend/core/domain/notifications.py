"""
core.domain.notifications — In-app notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Idempotent per dedupe key** — ``notify`` with a ``dedupe_key``
  returns the existing row for that recipient/key instead of creating a
  second one.  ``notify_role`` suffixes the key with the recipient id so
  the fan-out stays idempotent per recipient.
* **Synchronous** — writes happen in the calling thread.  The case
  orchestrator calls this *after* the transition has committed and
  isolates any failure, so a notification error never undoes a
  transition.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.notify(
        user_id=officer.pk,
        title="Hearing Scheduled",
        message=f"{case.tracking_code} scheduled for ...",
        link=f"/dashboard/cases/{case.pk}",
        dedupe_key=f"hearing_scheduled:{hearing.pk}",
        event_type="hearing_scheduled",
        related_object=case,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model
from django.contrib.contenttypes.models import ContentType
from django.db import IntegrityError, models, transaction

if TYPE_CHECKING:
    from core.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def notify(
        cls,
        *,
        user_id: Any,
        title: str,
        message: str = "",
        link: str = "",
        dedupe_key: str | None = None,
        event_type: str = "general",
        related_object: models.Model | None = None,
    ) -> Notification | None:
        """
        Create (or return the existing) notification for one recipient.

        Args:
            user_id:        Recipient user PK.  ``None`` is a no-op.
            title:          Short title.  Empty title is a no-op.
            message:        Body text.
            link:           Front-end path the notification points to.
            dedupe_key:     Idempotency key, unique per recipient.
            event_type:     Machine-readable event name.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            The created or pre-existing ``Notification``, or ``None``.
        """
        from core.models import Notification  # lazy import

        if user_id is None or not title:
            return None

        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        fields = {
            "title": title,
            "message": message,
            "link": link,
            "event_type": event_type,
            "content_type": content_type,
            "object_id": object_id,
        }

        if dedupe_key is None:
            return Notification.objects.create(recipient_id=user_id, **fields)

        try:
            with transaction.atomic():
                notification, created = Notification.objects.get_or_create(
                    recipient_id=user_id,
                    dedupe_key=dedupe_key,
                    defaults=fields,
                )
        except IntegrityError:
            # Lost a race against a concurrent insert with the same key.
            notification = Notification.objects.get(
                recipient_id=user_id, dedupe_key=dedupe_key,
            )
            created = False

        if not created:
            logger.debug(
                "Notification [%s] for user=%s already exists — skipped",
                dedupe_key,
                user_id,
            )
        return notification

    @classmethod
    def notify_role(cls, role: str, **payload: Any) -> list[Notification]:
        """
        Fan a notification out to every active user holding ``role``.

        ``payload`` takes the same keyword arguments as ``notify`` (minus
        ``user_id``).  A ``dedupe_key`` is made per-recipient by appending
        ``:<user_id>``.
        """
        User = get_user_model()
        recipient_ids = list(
            User.objects.filter(roles__name=role, is_active=True)
            .values_list("pk", flat=True)
            .distinct()
        )
        if not recipient_ids:
            logger.warning("notify_role(%s) found no recipients", role)
            return []

        base_key = payload.pop("dedupe_key", None)
        notifications = []
        for user_id in recipient_ids:
            notification = cls.notify(
                user_id=user_id,
                dedupe_key=f"{base_key}:{user_id}" if base_key else None,
                **payload,
            )
            if notification is not None:
                notifications.append(notification)

        logger.info(
            "Created %d notification(s) for role=%s [%s]",
            len(notifications),
            role,
            payload.get("event_type", "general"),
        )
        return notifications
