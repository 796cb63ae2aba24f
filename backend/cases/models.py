"""
Cases app models.

Covers the environmental case lifecycle: from an applicant's submission,
through the registrar's completeness review and hearing scheduling, to
adjournments and the hearing officer's final disposition.
"""

import secrets

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.constants import TRACKING_CODE_BYTES, TRACKING_CODE_PREFIX
from core.domain.exceptions import Conflict
from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class CaseStatus(models.TextChoices):
    """
    Lifecycle states.

    ``approved_resolved`` and ``rejected_closed`` are terminal; no
    further transition is legal once a case reaches either.
    """

    SUBMITTED = "submitted", "Submitted"
    COMPLETE = "complete", "Complete"
    INCOMPLETE = "incomplete", "Incomplete"
    HEARING_SCHEDULED = "hearing_scheduled", "Hearing Scheduled"
    UNDER_HEARING = "under_hearing", "Under Hearing"
    APPROVED_RESOLVED = "approved_resolved", "Approved / Resolved"
    REJECTED_CLOSED = "rejected_closed", "Rejected / Closed"


_TERMINAL = ["approved_resolved", "rejected_closed"]
CLOSED_STATUSES = frozenset(_TERMINAL)
HEARING_DIVISION_STATUSES = frozenset({
    CaseStatus.COMPLETE,
    CaseStatus.HEARING_SCHEDULED,
    CaseStatus.UNDER_HEARING,
})


class HearingType(models.TextChoices):
    INITIAL = "initial", "Initial"
    SUBSEQUENT = "subsequent", "Subsequent"
    EXTENSION = "extension", "Extension (Adjournment)"


class RemarkType(models.TextChoices):
    """Mirrors the transition that produced the remark."""

    COMPLETE = "complete", "Marked Complete"
    INCOMPLETE = "incomplete", "Marked Incomplete"
    RESUBMITTED = "resubmitted", "Resubmitted"
    HEARING_SCHEDULED = "hearing_scheduled", "Hearing Scheduled"
    ADJOURNED = "adjourned", "Adjourned"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class DocumentType(models.TextChoices):
    HEARING_ORDER = "hearing_order", "Hearing Order"
    SUPPORTING = "supporting", "Supporting Document"


def generate_tracking_code() -> str:
    """``EPD-`` followed by eight upper-case hex digits."""
    return f"{TRACKING_CODE_PREFIX}-{secrets.token_hex(TRACKING_CODE_BYTES).upper()}"


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Case(TimeStampedModel):
    """
    Central entity of the system: one environmental-violation application.

    * ``tracking_code`` is the externally visible identifier; it is
      generated on creation and never changes.
    * ``description`` is a free-form map.  The lifecycle engine only reads
      ``district``, ``violation_type``, ``sub_violation`` and the applicant's
      ``national_id`` from it (see ``cases.lifecycle.CaseDescription``).
    * ``assigned_registrar`` / ``assigned_hearing_officer`` are filled from
      NULL at most once, via compare-and-set.
    * ``closed_at`` is set **iff** the status is terminal; a check
      constraint enforces this at the database level.
    """

    tracking_code = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        default=generate_tracking_code,
        verbose_name="Tracking Code",
    )

    # ── Applicant identity ──────────────────────────────────────────
    applicant_name = models.CharField(
        max_length=255,
        verbose_name="Applicant Name",
    )
    applicant_email = models.EmailField(
        db_index=True,
        verbose_name="Applicant Email",
    )
    applicant_phone = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Applicant Phone",
    )
    applicant_national_id = models.CharField(
        max_length=20,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Applicant National ID",
    )
    applicant_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="applications",
        verbose_name="Applicant Account",
    )

    # ── Organization identity ───────────────────────────────────────
    organization_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Organization Name",
    )
    organization_address = models.CharField(
        max_length=500,
        blank=True,
        default="",
        verbose_name="Organization Address",
    )

    case_type = models.CharField(
        max_length=100,
        verbose_name="Case Type",
    )
    description = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Description",
    )
    status = models.CharField(
        max_length=30,
        choices=CaseStatus.choices,
        default=CaseStatus.SUBMITTED,
        verbose_name="Current Status",
        db_index=True,
    )

    # ── Assignment ──────────────────────────────────────────────────
    assigned_registrar = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrar_cases",
        verbose_name="Assigned Registrar",
    )
    assigned_hearing_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="hearing_officer_cases",
        verbose_name="Assigned Hearing Officer",
    )

    # ── Closure ─────────────────────────────────────────────────────
    closed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Closed At",
    )
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_cases",
        verbose_name="Closed By",
    )

    # ── Audit fields ────────────────────────────────────────────────
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_cases",
        verbose_name="Created By",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_cases",
        verbose_name="Updated By",
    )

    class Meta:
        verbose_name = "Case"
        verbose_name_plural = "Cases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="cases_case_status_created_idx"),
            models.Index(fields=["assigned_hearing_officer", "status"], name="cases_case_officer_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status__in=_TERMINAL, closed_at__isnull=False)
                    | (~Q(status__in=_TERMINAL) & Q(closed_at__isnull=True))
                ),
                name="case_closed_at_iff_terminal",
            ),
        ]

    def __str__(self):
        return f"{self.tracking_code} — {self.applicant_name}"

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    @property
    def district(self) -> str:
        value = (self.description or {}).get("district")
        return str(value).strip() if value else ""


class CaseDocument(TimeStampedModel):
    """
    A file stored against a case.  Hearing orders are uploaded with
    adjourn / approve / reject and linked from the corresponding hearing;
    supporting documents come through the documents endpoint.  Files are
    only served through the authenticated download action.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="documents",
        verbose_name="Case",
    )
    document_type = models.CharField(
        max_length=30,
        choices=DocumentType.choices,
        default=DocumentType.HEARING_ORDER,
        verbose_name="Document Type",
    )
    file = models.FileField(
        upload_to="case_documents/%Y/%m/",
        verbose_name="File",
    )
    file_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Original File Name",
    )
    content_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name="Content Type",
    )
    size = models.PositiveBigIntegerField(
        default=0,
        verbose_name="Size (bytes)",
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploaded_case_documents",
        verbose_name="Uploaded By",
    )

    class Meta:
        verbose_name = "Case Document"
        verbose_name_plural = "Case Documents"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.get_document_type_display()} for {self.case_id}: {self.file_name}"


class Hearing(TimeStampedModel):
    """
    One scheduled hearing of a case.

    ``sequence_no`` runs 1..N per case without gaps; the highest is the
    *latest* hearing.  At most one hearing per case is active, enforced
    both by the sequencing helpers in ``cases.hearings`` and a partial
    unique constraint.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="hearings",
        verbose_name="Case",
    )
    scheduled_for = models.DateTimeField(
        verbose_name="Hearing Date/Time",
        db_index=True,
    )
    hearing_type = models.CharField(
        max_length=20,
        choices=HearingType.choices,
        default=HearingType.INITIAL,
        verbose_name="Hearing Type",
    )
    sequence_no = models.PositiveIntegerField(
        default=1,
        verbose_name="Sequence No.",
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name="Active",
        db_index=True,
    )
    hearing_order = models.ForeignKey(
        CaseDocument,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="hearings",
        verbose_name="Hearing Order",
    )
    scheduled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_hearings",
        verbose_name="Scheduled By",
    )
    reminder_sent = models.BooleanField(
        default=False,
        verbose_name="Reminder Sent",
    )

    class Meta:
        verbose_name = "Hearing"
        verbose_name_plural = "Hearings"
        ordering = ["case_id", "sequence_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["case", "sequence_no"],
                name="unique_hearing_sequence_per_case",
            ),
            models.UniqueConstraint(
                fields=["case"],
                condition=Q(is_active=True),
                name="one_active_hearing_per_case",
            ),
        ]

    def __str__(self):
        return f"Hearing #{self.sequence_no} for {self.case_id} at {self.scheduled_for:%Y-%m-%d %H:%M}"


class CaseRemark(models.Model):
    """
    Immutable annotation written at the moment of a transition.

    Rows are append-only: ``save()`` refuses to update an existing row and
    ``delete()`` is refused outright.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="remarks",
        verbose_name="Case",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="case_remarks",
        verbose_name="Author",
    )
    remark = models.TextField(
        blank=True,
        default="",
        verbose_name="Remark",
    )
    proceedings = models.TextField(
        blank=True,
        default="",
        verbose_name="Proceedings",
    )
    remark_type = models.CharField(
        max_length=30,
        choices=RemarkType.choices,
        verbose_name="Remark Type",
    )
    status_at_time = models.CharField(
        max_length=30,
        choices=CaseStatus.choices,
        verbose_name="Status at Time",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )

    class Meta:
        verbose_name = "Case Remark"
        verbose_name_plural = "Case Remarks"
        ordering = ["created_at", "pk"]

    def __str__(self):
        return f"{self.get_remark_type_display()} on {self.case_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise Conflict("Case remarks are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise Conflict("Case remarks are immutable.")
