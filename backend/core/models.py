"""
Core app models.

Provides abstract base models and the two cross-app records every
transition writes to: in-app ``Notification`` rows and the ``AuditLog``.
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class Notification(TimeStampedModel):
    """
    In-app notification sent to a user regarding case updates (new
    submissions, assignments, scheduled hearings, resubmissions).

    ``dedupe_key`` makes creation idempotent per recipient: a second
    ``notify`` call with the same key returns the existing row instead of
    creating a duplicate.

    Uses a GenericForeignKey so any model instance can be the *source* of a
    notification (usually a ``cases.Case``).
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Recipient",
    )
    event_type = models.CharField(
        max_length=50,
        default="general",
        verbose_name="Event Type",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(blank=True, default="", verbose_name="Message")
    link = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Link",
    )
    dedupe_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name="Dedupe Key",
    )
    is_read = models.BooleanField(default=False, verbose_name="Read")
    read_at = models.DateTimeField(null=True, blank=True, verbose_name="Read At")

    # Generic relation to the object that triggered the notification
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        verbose_name="Related Content Type",
    )
    object_id = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name="Related Object ID",
    )
    content_object = GenericForeignKey("content_type", "object_id")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="core_notif_recipient_read_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["recipient", "dedupe_key"],
                condition=models.Q(dedupe_key__isnull=False),
                name="unique_notification_dedupe_key_per_recipient",
            ),
        ]

    def __str__(self):
        return f"[{self.recipient}] {self.title}"


class AuditLog(models.Model):
    """
    Append-only audit trail.  One row per committed transition (and per
    case submission).  Never updated after creation.
    """

    action = models.CharField(max_length=100, verbose_name="Action", db_index=True)
    entity_type = models.CharField(max_length=50, verbose_name="Entity Type")
    entity_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        verbose_name="Entity ID",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
        verbose_name="Actor",
    )
    actor_email = models.CharField(
        max_length=254,
        blank=True,
        default="",
        verbose_name="Actor Email",
    )
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        verbose_name="IP Address",
    )
    details = models.JSONField(default=dict, blank=True, verbose_name="Details")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created At")

    class Meta:
        verbose_name = "Audit Log Entry"
        verbose_name_plural = "Audit Log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="core_audit_entity_idx"),
        ]

    def __str__(self):
        return f"{self.action} {self.entity_type}#{self.entity_id}"
