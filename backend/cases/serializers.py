"""
Cases app serializers.

Contains all Request and Response serializers for the Cases API.
Serializers handle field definitions, read/write constraints, and field-level
validation only.  **No lifecycle rules live here**: dates, remark length,
attachments and role checks are enforced by ``cases.lifecycle`` so that
every entry point rejects the same inputs with the same error.

Structure
---------
1. Filter / query-param serializers
2. Case read serializers (list, detail)
3. Case write serializers (submission)
4. Workflow action serializers (review, resubmit, schedule, decide, violation)
5. Sub-resource serializers (hearing, document, remark, public tracking)
"""

from __future__ import annotations

import re

from django.urls import reverse
from rest_framework import serializers

from .models import Case, CaseDocument, CaseRemark, CaseStatus, Hearing

# ── Phone number validation regex ───────────────────────────────────
_PHONE_REGEX = re.compile(r"^\+?[\d\- ]{7,20}$")


def _document_download_url(case_id, document_id, request=None) -> str:
    url = reverse("case-document-download", kwargs={"case_pk": case_id, "pk": document_id})
    return request.build_absolute_uri(url) if request else url


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseFilterSerializer(serializers.Serializer):
    """
    Validates and cleans query-parameter filters for ``GET /api/cases/``.

    All fields are optional.  The view passes the validated dict directly
    to ``CaseQueryService.list_cases``.

    Query Parameters
    ----------------
    ``status``     : str   — one of ``CaseStatus`` values
    ``status_in``  : str   — comma-separated ``CaseStatus`` values
    ``closed``     : bool  — only closed (true) or only open (false) cases
    ``district``   : str   — ``description.district`` equals this value
    ``search``     : str   — tracking-code prefix, applicant name or e-mail
    """

    status = serializers.ChoiceField(
        choices=CaseStatus.choices,
        required=False,
        help_text="Filter by case status.",
    )
    status_in = serializers.CharField(
        required=False,
        help_text="Comma-separated list of statuses.",
    )
    closed = serializers.BooleanField(
        required=False,
        allow_null=True,
        default=None,
        help_text="true = closed cases only, false = open cases only.",
    )
    district = serializers.CharField(required=False, max_length=100)
    search = serializers.CharField(
        required=False,
        max_length=255,
        allow_blank=False,
        help_text="Tracking-code prefix, applicant name, or applicant e-mail.",
    )

    def validate_status_in(self, value: str) -> list[str]:
        statuses = [s.strip() for s in value.split(",") if s.strip()]
        unknown = sorted(set(statuses) - set(CaseStatus.values))
        if unknown:
            raise serializers.ValidationError(
                f"Unknown status value(s): {', '.join(unknown)}."
            )
        return statuses


# ═══════════════════════════════════════════════════════════════════
#  2. Case Read Serializers
# ═══════════════════════════════════════════════════════════════════


def _user_name(user) -> str | None:
    if user is None:
        return None
    return user.get_full_name() or user.username


class CaseListSerializer(serializers.ModelSerializer):
    """
    Compact representation for the list endpoint.
    """

    status_display = serializers.CharField(
        source="get_status_display",
        read_only=True,
    )
    district = serializers.CharField(read_only=True)
    assigned_hearing_officer_name = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "tracking_code",
            "applicant_name",
            "organization_name",
            "case_type",
            "district",
            "status",
            "status_display",
            "assigned_registrar",
            "assigned_hearing_officer",
            "assigned_hearing_officer_name",
            "closed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_assigned_hearing_officer_name(self, obj: Case) -> str | None:
        return _user_name(obj.assigned_hearing_officer)


class CaseDetailSerializer(serializers.ModelSerializer):
    """
    **Full case detail serializer.**

    Used for ``GET /api/cases/{id}/`` and in every workflow action's
    response.  Hearings and remarks are separate nested endpoints; the
    detail only embeds the currently active hearing.
    """

    status_display = serializers.CharField(
        source="get_status_display",
        read_only=True,
    )
    district = serializers.CharField(read_only=True)
    is_closed = serializers.BooleanField(read_only=True)
    assigned_registrar_name = serializers.SerializerMethodField()
    assigned_hearing_officer_name = serializers.SerializerMethodField()
    active_hearing = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "tracking_code",
            "applicant_name",
            "applicant_email",
            "applicant_phone",
            "applicant_national_id",
            "applicant_user",
            "organization_name",
            "organization_address",
            "case_type",
            "description",
            "district",
            "status",
            "status_display",
            "is_closed",
            "assigned_registrar",
            "assigned_registrar_name",
            "assigned_hearing_officer",
            "assigned_hearing_officer_name",
            "active_hearing",
            "closed_at",
            "closed_by",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_assigned_registrar_name(self, obj: Case) -> str | None:
        return _user_name(obj.assigned_registrar)

    def get_assigned_hearing_officer_name(self, obj: Case) -> str | None:
        return _user_name(obj.assigned_hearing_officer)

    def get_active_hearing(self, obj: Case) -> dict | None:
        hearing = obj.hearings.filter(is_active=True).first()
        if hearing is None:
            return None
        return HearingSerializer(hearing, context=self.context).data


# ═══════════════════════════════════════════════════════════════════
#  3. Case Write Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseCreateSerializer(serializers.Serializer):
    """
    Validates a new application.

    ``description`` is a free-form object; ``district``, ``national_id``,
    ``violation_type`` and ``sub_violation`` are the keys the workflow
    reads from it.
    """

    applicant_name = serializers.CharField(max_length=255)
    applicant_email = serializers.EmailField()
    applicant_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    applicant_national_id = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    organization_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    organization_address = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    case_type = serializers.CharField(max_length=100)
    description = serializers.DictField(required=False, default=dict)

    def validate_applicant_phone(self, value: str) -> str:
        if value and not _PHONE_REGEX.match(value.strip()):
            raise serializers.ValidationError("Enter a valid phone number.")
        return value


# ═══════════════════════════════════════════════════════════════════
#  4. Workflow Action Serializers
# ═══════════════════════════════════════════════════════════════════


class ReviewSerializer(serializers.Serializer):
    """Body for ``mark-complete`` / ``mark-incomplete``."""

    remarks = serializers.CharField(required=False, allow_blank=True, default="")


class ResubmitSerializer(serializers.Serializer):
    """
    Body for ``resubmit``.  Every field is optional; supplied applicant
    fields replace the stored values and ``description`` keys are merged.
    """

    remarks = serializers.CharField(required=False, allow_blank=True)
    applicant_name = serializers.CharField(max_length=255, required=False)
    applicant_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    organization_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    organization_address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    case_type = serializers.CharField(max_length=100, required=False)
    description = serializers.DictField(required=False)


class _ViolationFieldsMixin(serializers.Serializer):
    violation_type = serializers.CharField(max_length=255, required=False, allow_blank=True)
    sub_violation = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ScheduleHearingSerializer(_ViolationFieldsMixin):
    """
    Body for ``schedule-hearing``.

    ``hearing_at`` is passed through as text: the lifecycle engine owns
    the "required / parseable / in the future" rules.
    ``hearing_officer_id`` is required for the first hearing only.
    """

    hearing_at = serializers.CharField(required=False, allow_blank=True)
    hearing_officer_id = serializers.IntegerField(required=False, min_value=1)
    remarks = serializers.CharField(required=False, allow_blank=True)
    proceedings = serializers.CharField(required=False, allow_blank=True)


class DecisionSerializer(_ViolationFieldsMixin):
    """
    Multipart body for ``approve`` / ``reject``.

    ``hearing_order`` is the signed hearing-order file.  Its absence and
    the remark length are reported by the lifecycle engine.
    """

    hearing_order = serializers.FileField(required=False, allow_empty_file=False)
    remarks = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    proceedings = serializers.CharField(required=False, allow_blank=True)


class AdjournSerializer(DecisionSerializer):
    """Multipart body for ``adjourn``: a decision plus the re-hearing date."""

    hearing_at = serializers.CharField(required=False, allow_blank=True)


class ViolationSerializer(_ViolationFieldsMixin):
    """Body for ``violation``."""


# ═══════════════════════════════════════════════════════════════════
#  5. Sub-resource Serializers
# ═══════════════════════════════════════════════════════════════════


class HearingSerializer(serializers.ModelSerializer):
    hearing_type_display = serializers.CharField(
        source="get_hearing_type_display",
        read_only=True,
    )
    hearing_order_url = serializers.SerializerMethodField()

    class Meta:
        model = Hearing
        fields = [
            "id",
            "sequence_no",
            "scheduled_for",
            "hearing_type",
            "hearing_type_display",
            "is_active",
            "hearing_order",
            "hearing_order_url",
            "scheduled_by",
            "created_at",
        ]
        read_only_fields = fields

    def get_hearing_order_url(self, obj: Hearing) -> str | None:
        if obj.hearing_order_id is None:
            return None
        return _document_download_url(obj.case_id, obj.hearing_order_id, self.context.get("request"))


class CaseDocumentSerializer(serializers.ModelSerializer):
    """
    Read-only document metadata.  The file itself is only served through
    the authenticated ``download`` action, never as a media URL.
    """

    document_type_display = serializers.CharField(
        source="get_document_type_display",
        read_only=True,
    )
    download_url = serializers.SerializerMethodField()

    class Meta:
        model = CaseDocument
        fields = [
            "id",
            "document_type",
            "document_type_display",
            "file_name",
            "content_type",
            "size",
            "uploaded_by",
            "download_url",
            "created_at",
        ]
        read_only_fields = fields

    def get_download_url(self, obj: CaseDocument) -> str:
        return _document_download_url(obj.case_id, obj.pk, self.context.get("request"))


class DocumentUploadSerializer(serializers.Serializer):
    """Multipart body for ``POST /api/cases/{case_pk}/documents/``."""

    file = serializers.FileField(
        help_text="Supporting document (PDF, image or office file).",
    )


class CaseRemarkSerializer(serializers.ModelSerializer):
    """Read-only serializer for a case's remark trail."""

    author_name = serializers.SerializerMethodField()
    remark_type_display = serializers.CharField(
        source="get_remark_type_display",
        read_only=True,
    )

    class Meta:
        model = CaseRemark
        fields = [
            "id",
            "remark_type",
            "remark_type_display",
            "remark",
            "proceedings",
            "status_at_time",
            "author",
            "author_name",
            "created_at",
        ]
        read_only_fields = fields

    def get_author_name(self, obj: CaseRemark) -> str | None:
        return _user_name(obj.author)


class SideEffectReportSerializer(serializers.Serializer):
    effect = serializers.CharField()
    ok = serializers.BooleanField()
    detail = serializers.CharField(allow_blank=True)


class TransitionResponseSerializer(serializers.Serializer):
    """
    Envelope returned by every workflow action:
    the updated case, the hearing touched (if any), and one report per
    notification / e-mail / audit call.
    """

    action = serializers.CharField()
    case = CaseDetailSerializer()
    hearing = HearingSerializer(allow_null=True)
    side_effects = SideEffectReportSerializer(many=True)


class CaseStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    submitted = serializers.IntegerField()
    complete = serializers.IntegerField()
    incomplete = serializers.IntegerField()
    hearing_scheduled = serializers.IntegerField()
    under_hearing = serializers.IntegerField()
    approved_resolved = serializers.IntegerField()
    rejected_closed = serializers.IntegerField()


class PublicCaseSerializer(serializers.Serializer):
    tracking_code = serializers.CharField()
    case_type = serializers.CharField()
    status = serializers.CharField()
    applicant_name = serializers.CharField()
    organization_name = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class PublicHearingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    scheduled_for = serializers.DateTimeField()
    hearing_type = serializers.CharField()
