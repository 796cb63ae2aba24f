"""
Core app serializers.

Response serializers for the cross-app endpoints: system constants,
notifications, and the audit trail.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import AuditLog, Notification


# ════════════════════════════════════════════════════════════════════
#  System Constants / Enums
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "under_hearing", "label": "Under Hearing"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "case_statuses": [{"value": "submitted", "label": "Submitted"}, ...],
            "hearing_types": [...],
            "remark_types": [...],
            "roles": [...]
        }
    """

    case_statuses = ChoiceItemSerializer(
        many=True,
        help_text="All possible case lifecycle statuses.",
    )
    hearing_types = ChoiceItemSerializer(
        many=True,
        help_text="Initial / subsequent / extension.",
    )
    remark_types = ChoiceItemSerializer(
        many=True,
        help_text="Kinds of entries in a case's remark trail.",
    )
    roles = ChoiceItemSerializer(
        many=True,
        help_text="Role slugs recognised by the access policy.",
    )


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for ``Notification`` instances.
    """

    content_type = serializers.StringRelatedField(
        read_only=True,
        help_text="Related content type (if any).",
    )

    class Meta:
        model = Notification
        fields = [
            "id",
            "event_type",
            "title",
            "message",
            "link",
            "is_read",
            "read_at",
            "created_at",
            "content_type",
            "object_id",
        ]
        read_only_fields = fields


class MarkAllReadResponseSerializer(serializers.Serializer):
    updated = serializers.IntegerField()


# ════════════════════════════════════════════════════════════════════
#  Audit trail
# ════════════════════════════════════════════════════════════════════

class AuditLogFilterSerializer(serializers.Serializer):
    action = serializers.CharField(required=False, max_length=100)
    entity_type = serializers.CharField(required=False, max_length=50)
    entity_id = serializers.CharField(required=False, max_length=64)
    actor = serializers.IntegerField(required=False, min_value=1)


class AuditLogSerializer(serializers.ModelSerializer):

    class Meta:
        model = AuditLog
        fields = [
            "id",
            "action",
            "entity_type",
            "entity_id",
            "actor",
            "actor_email",
            "ip_address",
            "details",
            "created_at",
        ]
        read_only_fields = fields
