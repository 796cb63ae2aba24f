"""
Cases app Service Layer.

This module is the **single source of truth** for all business logic
in the ``cases`` app that touches the database.  Views must remain thin:
validate input via serializers, call a service method, and return the
result wrapped in a DRF ``Response``.

Architecture
------------
- ``CaseTransitionService``   — the side-effect orchestrator: locks the
                                case, asks ``cases.lifecycle`` for a plan,
                                persists it atomically, then fires
                                notifications / e-mails / audit.
- ``CaseQueryService``        — role-scoped listing, detail, hearings,
                                remarks, documents and stats.
- ``CaseDocumentService``     — supporting-document uploads.
- ``CaseSubmissionService``   — creation of new ``submitted`` cases.
- ``PublicTrackingService``   — unauthenticated tracking-code lookup.
- ``HearingReminderService``  — reminder e-mails for upcoming hearings
                                and "hearing today" staff notices.

Two-phase contract
------------------
Phase 1 (validate + persist) runs inside ``transaction.atomic()`` with the
case row locked by ``select_for_update``; any exception leaves the case,
hearings and remarks untouched.  Phase 2 (notify + e-mail + audit) runs
after the block, each call isolated in its own savepoint and ``try``.
A phase-2 failure is logged as ``SideEffectFailure`` and reported in the
result; it never undoes phase 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from core.constants import (
    HEARING_REMINDER_LEAD_MINUTES,
    HEARING_REMINDER_WINDOW_MINUTES,
    REAUTH_LINK_LIFETIME_MINUTES,
)
from core.domain.access import (
    Actor,
    RoleName,
    actor_for,
    ensure_case_visible,
    scope_case_queryset,
)
from core.domain.audit import AuditLogger
from core.domain.email import EmailService
from core.domain.exceptions import (
    InvalidInput,
    NotFound,
    PreconditionFailed,
    SideEffectFailure,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import assign_if_unset, lock_for_update

from .hearings import (
    activate_new_hearing,
    attach_order_to_latest,
    deactivate_all,
    load_hearings,
)
from .lifecycle import (
    Action,
    EmailIntent,
    NotificationIntent,
    TransitionPlan,
    plan_transition,
    resolve_action,
)
from .models import (
    CLOSED_STATUSES,
    Case,
    CaseDocument,
    CaseRemark,
    CaseStatus,
    DocumentType,
    Hearing,
)

logger = logging.getLogger(__name__)

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Result envelope
# ═══════════════════════════════════════════════════════════════════


@dataclass
class SideEffectReport:
    effect: str
    ok: bool = True
    detail: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {"effect": self.effect, "ok": self.ok, "detail": self.detail}


@dataclass
class TransitionResult:
    """
    Success envelope returned by ``CaseTransitionService.apply_transition``.

    ``hearing`` is the hearing created or updated by the transition (if
    any); ``side_effects`` lists one report per phase-2 call.
    """

    case: Case
    action: str
    hearing: Hearing | None = None
    remark: CaseRemark | None = None
    side_effects: list[SideEffectReport] = field(default_factory=list)

    @property
    def side_effects_ok(self) -> bool:
        return all(report.ok for report in self.side_effects)


def _run_side_effect(
    reports: list[SideEffectReport],
    effect: str,
    func: Callable[[], Any],
) -> None:
    """
    Run one phase-2 call in its own savepoint, recording the outcome.

    Any exception is wrapped in ``SideEffectFailure``, logged with its
    traceback and swallowed.
    """
    try:
        with transaction.atomic():
            outcome = func()
    except Exception as exc:
        failure = SideEffectFailure(effect, exc)
        logger.exception("%s", failure.message)
        reports.append(SideEffectReport(effect, ok=False, detail=failure.message))
    else:
        detail = "skipped" if outcome is False else ""
        reports.append(SideEffectReport(effect, ok=True, detail=detail))


def _format_hearing_at(hearing: Hearing | None) -> str:
    if hearing is None:
        return ""
    return timezone.localtime(hearing.scheduled_for).strftime("%Y-%m-%d %H:%M %Z")


def _case_context(case: Case, hearing: Hearing | None = None) -> dict[str, Any]:
    return {
        "case_id": case.pk,
        "tracking_code": case.tracking_code,
        "applicant_name": case.applicant_name,
        "status": case.status,
        "hearing_id": hearing.pk if hearing is not None else "",
        "hearing_at": _format_hearing_at(hearing),
    }


def _linked_applicant(case: Case) -> User | None:
    """The applicant's account: the linked user, else a match by e-mail."""
    if case.applicant_user_id:
        return case.applicant_user
    if not case.applicant_email:
        return None
    return User.objects.filter(
        email__iexact=case.applicant_email, is_active=True,
    ).first()


def send_reauth_link(case: Case) -> bool:
    """
    E-mail the applicant a one-hour sign-in link for their case.

    Returns ``False`` (nothing sent) when the applicant has no account.
    """
    applicant = _linked_applicant(case)
    if applicant is None:
        logger.info("Re-auth link for %s skipped: no applicant account", case.tracking_code)
        return False
    token = AccessToken.for_user(applicant)
    token.set_exp(lifetime=timedelta(minutes=REAUTH_LINK_LIFETIME_MINUTES))
    login_url = f"{settings.APP_BASE_URL}/magic-login?token={token}"
    return EmailService.send(
        "reauth_link",
        applicant.email,
        tracking_code=case.tracking_code,
        login_url=login_url,
    )


# ═══════════════════════════════════════════════════════════════════
#  Transition orchestrator
# ═══════════════════════════════════════════════════════════════════


class CaseTransitionService:
    """
    Single entry point for every lifecycle action.

    Phase 1 (inside the lock)::

        lock case → load hearings → resolve selected officer
        → plan_transition → save case → compare-and-set assignment
        → hearing mutation (+ hearing-order document) → remark

    Phase 2 (after the atomic block)::

        notifications → e-mails → one audit entry
    """

    @staticmethod
    def apply_transition(
        case_id: Any,
        action: str,
        user: Any,
        payload: dict[str, Any] | None = None,
        *,
        request: Any = None,
        now: Any = None,
    ) -> TransitionResult:
        """
        Validate and apply one lifecycle action.

        Parameters
        ----------
        case_id : int
            PK of the case.
        action : str
            A ``cases.lifecycle.Action`` name.  ``schedule_hearing``
            picks first or subsequent by hearing count.
        user : User
            The authenticated actor; roles are re-read from the database.
        payload : dict, optional
            Action input (see ``cases.lifecycle.plan_transition``).
        request : HttpRequest, optional
            Used only for the audit entry's client IP.
        now : datetime, optional
            Clock override.

        Returns
        -------
        TransitionResult

        Raises
        ------
        NotFound
            Unknown case, hearing officer or hearing-order document.
        PermissionDenied, PreconditionFailed, InvalidInput
            From the lifecycle engine; nothing has been written.
        """
        payload = dict(payload or {})
        now = now or timezone.now()
        actor = actor_for(user)

        with transaction.atomic():
            case = lock_for_update(Case, case_id, label="Case")
            hearings = load_hearings(case)
            officer = _resolve_hearing_officer(
                resolve_action(action, hearings), payload,
            )
            plan = plan_transition(
                case, action, actor, hearings, payload,
                now=now, hearing_officer=officer,
            )
            result, won = _persist_plan(case, plan, user)

        logger.info(
            "Case %s: %s (%s → %s) by user=%s",
            case.tracking_code,
            plan.action,
            plan.from_status,
            plan.to_status,
            actor.id,
        )

        _fire_side_effects(result, plan, user, won, request=request)
        return result


def _resolve_hearing_officer(action: str, payload: dict[str, Any]) -> Actor | None:
    """Look up the officer selected for a first hearing; ``None`` if absent."""
    officer_id = payload.get("hearing_officer_id")
    if action != Action.SCHEDULE_FIRST_HEARING or not officer_id:
        return None
    try:
        officer = User.objects.filter(pk=officer_id, is_active=True).first()
    except (ValueError, TypeError):
        return None
    return actor_for(officer) if officer is not None else None


def _store_hearing_order(case: Case, upload: Any, user: Any) -> CaseDocument:
    """
    Persist the hearing-order attachment.

    ``upload`` is either an uploaded file or the PK of an existing
    document on the same case.
    """
    if isinstance(upload, CaseDocument):
        return upload
    if hasattr(upload, "read"):
        return CaseDocument.objects.create(
            case=case,
            document_type=DocumentType.HEARING_ORDER,
            file=upload,
            file_name=getattr(upload, "name", "") or "",
            content_type=getattr(upload, "content_type", "") or "",
            size=getattr(upload, "size", 0) or 0,
            uploaded_by=user,
        )
    try:
        return CaseDocument.objects.get(pk=upload, case=case)
    except (CaseDocument.DoesNotExist, ValueError, TypeError):
        raise NotFound("Hearing order document not found.")


def _persist_plan(case: Case, plan: TransitionPlan, user: Any) -> tuple[TransitionResult, set[str]]:
    """Apply a plan to the locked case.  Must run inside ``atomic()``."""
    updates = dict(plan.case_updates)
    for name, value in updates.items():
        setattr(case, name, value)
    case.save(update_fields=[*updates, "updated_at"])

    won: set[str] = set()
    if plan.assign_registrar is not None:
        if assign_if_unset(case, "assigned_registrar", plan.assign_registrar):
            won.add("assigned_registrar")
    if plan.assign_hearing_officer is not None:
        if assign_if_unset(case, "assigned_hearing_officer", plan.assign_hearing_officer):
            won.add("assigned_hearing_officer")

    document = None
    if plan.hearing_order is not None:
        document = _store_hearing_order(case, plan.hearing_order, user)

    hearing = None
    hearing_plan = plan.hearing
    if hearing_plan.attach_order_to_latest and document is not None:
        hearing = attach_order_to_latest(case, document)
    if hearing_plan.create is not None:
        new_hearing = hearing_plan.create
        hearing = activate_new_hearing(
            case,
            scheduled_for=new_hearing.scheduled_for,
            hearing_type=new_hearing.hearing_type,
            scheduled_by=user,
            hearing_order=document if new_hearing.attach_order else None,
        )
    elif hearing_plan.deactivate_all:
        deactivate_all(case)
        if hearing is not None:
            hearing.is_active = False

    remark = None
    if plan.remark is not None:
        remark = CaseRemark.objects.create(
            case=case,
            author=user,
            remark=plan.remark.remark,
            proceedings=plan.remark.proceedings,
            remark_type=plan.remark.remark_type,
            status_at_time=plan.remark.status_at_time,
        )

    result = TransitionResult(case=case, action=plan.action, hearing=hearing, remark=remark)
    return result, won


def _send_notification(intent: NotificationIntent, context: dict[str, Any], case: Case) -> Any:
    payload = {
        "title": intent.title.format(**context),
        "message": intent.message.format(**context),
        "link": intent.link.format(**context),
        "dedupe_key": intent.dedupe_key.format(**context) if intent.dedupe_key else None,
        "event_type": intent.event_type,
        "related_object": case,
    }
    if intent.role:
        return NotificationService.notify_role(intent.role, **payload)
    return NotificationService.notify(user_id=intent.recipient_id, **payload)


def _send_email(intent: EmailIntent, context: dict[str, Any], case: Case) -> bool:
    if intent.template == "reauth_link":
        return send_reauth_link(case)
    return EmailService.send(intent.template, intent.recipient or case.applicant_email, **context)


def _fire_side_effects(
    result: TransitionResult,
    plan: TransitionPlan,
    user: Any,
    won: set[str],
    *,
    request: Any = None,
) -> None:
    case = result.case
    context = _case_context(case, result.hearing)
    reports = result.side_effects

    for intent in plan.notifications:
        if intent.requires_assignment and intent.requires_assignment not in won:
            continue
        _run_side_effect(
            reports,
            f"notify:{intent.event_type}",
            lambda intent=intent: _send_notification(intent, context, case),
        )

    for intent in plan.emails:
        _run_side_effect(
            reports,
            f"email:{intent.template}",
            lambda intent=intent: _send_email(intent, context, case),
        )

    if plan.audit is not None:
        audit = plan.audit
        entity_id = case.pk
        if audit.entity_type == "hearing" and result.hearing is not None:
            entity_id = result.hearing.pk
        details = {
            "case_id": case.pk,
            "tracking_code": case.tracking_code,
            "from_status": plan.from_status,
            "to_status": plan.to_status,
            **audit.details,
        }
        if result.hearing is not None:
            details["hearing_at"] = result.hearing.scheduled_for.isoformat()
        _run_side_effect(
            reports,
            "audit",
            lambda: AuditLogger.log(
                action=audit.action,
                entity_type=audit.entity_type,
                entity_id=entity_id,
                actor=user,
                details=details,
                request=request,
            ),
        )


# ═══════════════════════════════════════════════════════════════════
#  Queries
# ═══════════════════════════════════════════════════════════════════


class CaseQueryService:
    """Role-scoped reads.  Every method applies the same visibility rule."""

    @staticmethod
    def list_cases(user: Any, filters: dict[str, Any] | None = None) -> QuerySet:
        """
        Return the cases visible to ``user``, optionally filtered.

        Supported filters: ``status``, ``status_in`` (list or comma list),
        ``closed`` (bool), ``district``, ``search`` (tracking-code prefix,
        applicant name, applicant e-mail).
        """
        filters = filters or {}
        queryset = scope_case_queryset(
            Case.objects.select_related(
                "assigned_registrar", "assigned_hearing_officer",
            ),
            actor_for(user),
        )

        if filters.get("status"):
            queryset = queryset.filter(status=filters["status"])

        status_in = filters.get("status_in")
        if status_in:
            if isinstance(status_in, str):
                status_in = [s.strip() for s in status_in.split(",") if s.strip()]
            queryset = queryset.filter(status__in=status_in)

        closed = filters.get("closed")
        if closed is True:
            queryset = queryset.filter(status__in=CLOSED_STATUSES)
        elif closed is False:
            queryset = queryset.exclude(status__in=CLOSED_STATUSES)

        if filters.get("district"):
            queryset = queryset.filter(description__district=filters["district"])

        search = (filters.get("search") or "").strip()
        if search:
            queryset = queryset.filter(
                Q(tracking_code__istartswith=search)
                | Q(applicant_name__icontains=search)
                | Q(applicant_email__icontains=search)
            )

        return queryset.order_by("-created_at")

    @staticmethod
    def get_case(case_id: Any, user: Any) -> Case:
        try:
            case = Case.objects.select_related(
                "assigned_registrar", "assigned_hearing_officer", "applicant_user",
            ).get(pk=case_id)
        except (Case.DoesNotExist, ValueError, TypeError):
            raise NotFound("Case not found.")
        ensure_case_visible(actor_for(user), case)
        return case

    @staticmethod
    def list_hearings(case_id: Any, user: Any) -> QuerySet:
        case = CaseQueryService.get_case(case_id, user)
        return (
            Hearing.objects.filter(case=case)
            .select_related("hearing_order", "scheduled_by")
            .order_by("sequence_no")
        )

    @staticmethod
    def list_remarks(case_id: Any, user: Any) -> QuerySet:
        case = CaseQueryService.get_case(case_id, user)
        return CaseRemark.objects.filter(case=case).select_related("author")

    @staticmethod
    def list_documents(case_id: Any, user: Any) -> QuerySet:
        case = CaseQueryService.get_case(case_id, user)
        return CaseDocument.objects.filter(case=case).select_related("uploaded_by")

    @staticmethod
    def get_document(case_id: Any, document_id: Any, user: Any) -> CaseDocument:
        """
        Return a document of a visible case whose file is still in storage.

        Raises ``NotFound`` for an unknown document, a document of another
        case, or a stored file that has gone missing.
        """
        case = CaseQueryService.get_case(case_id, user)
        try:
            document = CaseDocument.objects.get(pk=document_id, case=case)
        except (CaseDocument.DoesNotExist, ValueError, TypeError):
            raise NotFound("Document not found.")
        if not document.file or not document.file.storage.exists(document.file.name):
            logger.warning("Stored file missing for document=%s case=%s", document.pk, case.pk)
            raise NotFound("File not found.")
        return document

    @staticmethod
    def stats(user: Any) -> dict[str, int]:
        """Per-status counts over the cases visible to ``user``."""
        queryset = scope_case_queryset(Case.objects.all(), actor_for(user))
        aggregates = {
            status: Count("id", filter=Q(status=status))
            for status in CaseStatus.values
        }
        counts = queryset.aggregate(total=Count("id"), **aggregates)
        return {key: counts.get(key) or 0 for key in ["total", *CaseStatus.values]}


# ═══════════════════════════════════════════════════════════════════
#  Submission
# ═══════════════════════════════════════════════════════════════════


class CaseSubmissionService:

    MAX_TRACKING_CODE_ATTEMPTS = 5

    @staticmethod
    def submit_case(data: dict[str, Any], user: Any, *, request: Any = None) -> Case:
        """
        Create a new ``submitted`` case.

        * ``applicant_email`` is stored trimmed and lower-cased.
        * ``applicant_national_id`` falls back to ``description.national_id``
          (or the legacy ``cnic`` key).
        * When an applicant-only user submits with their own national ID,
          the case is linked to their account.

        Registrars are notified and the applicant is e-mailed their
        tracking code after the case is saved; those calls are isolated
        like any other side effect.
        """
        actor = actor_for(user)
        description = dict(data.get("description") or {})
        email = (data.get("applicant_email") or "").strip().lower()
        if not email:
            raise InvalidInput("Applicant email is required.")

        national_id = (
            (data.get("applicant_national_id") or "").strip()
            or str(description.get("national_id") or description.get("cnic") or "").strip()
        )

        applicant_user = None
        if actor.is_applicant_only and actor.national_id and actor.national_id == national_id:
            applicant_user = user

        fields = {
            "applicant_name": (data.get("applicant_name") or "").strip(),
            "applicant_email": email,
            "applicant_phone": (data.get("applicant_phone") or "").strip(),
            "applicant_national_id": national_id,
            "applicant_user": applicant_user,
            "organization_name": (data.get("organization_name") or "").strip(),
            "organization_address": (data.get("organization_address") or "").strip(),
            "case_type": (data.get("case_type") or "").strip(),
            "description": description,
            "status": CaseStatus.SUBMITTED,
            "created_by": user,
            "updated_by": user,
        }
        if not fields["applicant_name"] or not fields["case_type"]:
            raise InvalidInput("Applicant name and case type are required.")

        case = None
        for attempt in range(CaseSubmissionService.MAX_TRACKING_CODE_ATTEMPTS):
            try:
                with transaction.atomic():
                    case = Case.objects.create(**fields)
                break
            except IntegrityError:
                logger.warning("Tracking code collision (attempt %d)", attempt + 1)
        if case is None:
            raise IntegrityError("Could not allocate a unique tracking code.")

        logger.info("Case %s submitted by user=%s", case.tracking_code, actor.id)

        reports: list[SideEffectReport] = []
        context = _case_context(case)
        _run_side_effect(
            reports,
            "notify:application_submitted",
            lambda: NotificationService.notify_role(
                RoleName.REGISTRAR,
                title="New Application Submitted",
                message=f"{case.tracking_code} submitted by {case.applicant_name}.",
                link=f"/dashboard/cases/{case.pk}",
                dedupe_key=f"application_submitted:{case.pk}",
                event_type="application_submitted",
                related_object=case,
            ),
        )
        _run_side_effect(
            reports,
            "email:case_submitted",
            lambda: EmailService.send("case_submitted", case.applicant_email, **context),
        )
        _run_side_effect(
            reports,
            "audit",
            lambda: AuditLogger.log(
                action="case.submitted",
                entity_type="case",
                entity_id=case.pk,
                actor=user,
                details={"tracking_code": case.tracking_code, "case_type": case.case_type},
                request=request,
            ),
        )
        case.side_effects = reports
        return case


# ═══════════════════════════════════════════════════════════════════
#  Case documents
# ═══════════════════════════════════════════════════════════════════


class CaseDocumentService:
    """
    Supporting documents uploaded against a case.

    Hearing orders are not uploaded here; they arrive with the adjourn,
    approve and reject actions.
    """

    @staticmethod
    def upload(case_id: Any, user: Any, upload: Any, *, request: Any = None) -> CaseDocument:
        """
        Store ``upload`` as a supporting document of a visible, open case.

        The audit entry is written after the document is saved and never
        undoes the upload.
        """
        if upload is None or not hasattr(upload, "read"):
            raise InvalidInput("File is required.")

        with transaction.atomic():
            case = CaseQueryService.get_case(case_id, user)
            case = lock_for_update(Case, case.pk)
            if case.is_closed:
                raise PreconditionFailed("Case is already closed.")
            document = CaseDocument.objects.create(
                case=case,
                document_type=DocumentType.SUPPORTING,
                file=upload,
                file_name=getattr(upload, "name", "") or "",
                content_type=getattr(upload, "content_type", "") or "",
                size=getattr(upload, "size", 0) or 0,
                uploaded_by=user,
            )

        logger.info(
            "Document %s uploaded to %s by user=%s",
            document.pk,
            case.tracking_code,
            getattr(user, "pk", None),
        )
        reports: list[SideEffectReport] = []
        _run_side_effect(
            reports,
            "audit",
            lambda: AuditLogger.log(
                action="case.document_uploaded",
                entity_type="case_document",
                entity_id=document.pk,
                actor=user,
                details={
                    "case_id": case.pk,
                    "file_name": document.file_name,
                    "size": document.size,
                },
                request=request,
            ),
        )
        document.side_effects = reports
        return document


# ═══════════════════════════════════════════════════════════════════
#  Public tracking
# ═══════════════════════════════════════════════════════════════════


class PublicTrackingService:
    """
    Unauthenticated lookup by tracking code.

    Returns only a minimal projection; an unknown code yields ``None``
    rather than an error.
    """

    @staticmethod
    def _find(tracking_code: str) -> Case | None:
        normalized = (tracking_code or "").strip().upper()
        if not normalized:
            return None
        return Case.objects.filter(tracking_code=normalized).first()

    @staticmethod
    def lookup(tracking_code: str) -> dict[str, Any] | None:
        case = PublicTrackingService._find(tracking_code)
        if case is None:
            return None
        return {
            "tracking_code": case.tracking_code,
            "case_type": case.case_type,
            "status": case.status,
            "applicant_name": case.applicant_name,
            "organization_name": case.organization_name or None,
            "created_at": case.created_at,
            "updated_at": case.updated_at,
        }

    @staticmethod
    def hearings(tracking_code: str) -> list[dict[str, Any]]:
        case = PublicTrackingService._find(tracking_code)
        if case is None:
            return []
        return [
            {
                "id": hearing.pk,
                "scheduled_for": hearing.scheduled_for,
                "hearing_type": hearing.hearing_type,
            }
            for hearing in case.hearings.order_by("scheduled_for")
        ]


# ═══════════════════════════════════════════════════════════════════
#  Hearing reminders
# ═══════════════════════════════════════════════════════════════════


class HearingReminderService:

    @staticmethod
    def due_hearings(now=None) -> QuerySet:
        """Active hearings of open cases starting inside the reminder window."""
        now = now or timezone.now()
        lead = getattr(settings, "HEARING_REMINDER_LEAD_MINUTES", HEARING_REMINDER_LEAD_MINUTES)
        window = getattr(settings, "HEARING_REMINDER_WINDOW_MINUTES", HEARING_REMINDER_WINDOW_MINUTES)
        return (
            Hearing.objects.filter(
                is_active=True,
                reminder_sent=False,
                scheduled_for__gte=now + timedelta(minutes=lead - window),
                scheduled_for__lte=now + timedelta(minutes=lead + window),
            )
            .exclude(case__status__in=CLOSED_STATUSES)
            .select_related("case")
        )

    @staticmethod
    def send_due_reminders(now=None) -> int:
        """
        E-mail the applicant of every due hearing once.

        Each hearing is claimed with a conditional update before sending,
        so overlapping runs never send twice.  A failed send releases the
        claim so the next run retries.

        Returns the number of reminders sent.
        """
        sent = 0
        for hearing in HearingReminderService.due_hearings(now):
            claimed = Hearing.objects.filter(
                pk=hearing.pk, reminder_sent=False,
            ).update(reminder_sent=True)
            if not claimed:
                continue

            case = hearing.case
            try:
                EmailService.send(
                    "hearing_reminder",
                    case.applicant_email,
                    **_case_context(case, hearing),
                )
            except Exception:
                logger.exception(
                    "Hearing reminder for %s (hearing=%s) failed",
                    case.tracking_code,
                    hearing.pk,
                )
                Hearing.objects.filter(pk=hearing.pk).update(reminder_sent=False)
                continue
            sent += 1

        logger.info("Sent %d hearing reminder(s)", sent)
        return sent

    @staticmethod
    def todays_hearings(now=None) -> QuerySet:
        """Active hearings of open cases scheduled on the local calendar day of ``now``."""
        now = now or timezone.now()
        start = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
        return (
            Hearing.objects.filter(
                is_active=True,
                scheduled_for__gte=start,
                scheduled_for__lt=start + timedelta(days=1),
            )
            .exclude(case__status__in=CLOSED_STATUSES)
            .select_related("case")
            .order_by("scheduled_for")
        )

    @staticmethod
    def notify_staff_of_todays_hearings(now=None) -> int:
        """
        Post a "Hearing Today" notification for every hearing of the day.

        Recipients are the case's hearing officer (falling back to whoever
        scheduled the hearing) and its assigned registrar, or every
        registrar while none is assigned.  Keys are per hearing and
        recipient, so the job can run hourly without duplicates.

        Returns the number of hearings processed.
        """
        processed = 0
        for hearing in HearingReminderService.todays_hearings(now):
            case = hearing.case
            base_key = f"hearing_today:{hearing.pk}"
            payload = {
                "title": "Hearing Today",
                "message": f"{case.tracking_code} hearing is scheduled for {_format_hearing_at(hearing)}.",
                "link": f"/dashboard/cases/{case.pk}",
                "event_type": "hearing_today",
                "related_object": case,
            }
            officer_id = case.assigned_hearing_officer_id or hearing.scheduled_by_id
            try:
                with transaction.atomic():
                    if officer_id:
                        NotificationService.notify(
                            user_id=officer_id, dedupe_key=f"{base_key}:{officer_id}", **payload,
                        )
                    if case.assigned_registrar_id:
                        NotificationService.notify(
                            user_id=case.assigned_registrar_id,
                            dedupe_key=f"{base_key}:{case.assigned_registrar_id}",
                            **payload,
                        )
                    else:
                        NotificationService.notify_role(
                            RoleName.REGISTRAR, dedupe_key=base_key, **payload,
                        )
            except Exception:
                logger.exception(
                    "Hearing-today notice for %s (hearing=%s) failed",
                    case.tracking_code,
                    hearing.pk,
                )
                continue
            processed += 1

        logger.info("Posted hearing-today notices for %d hearing(s)", processed)
        return processed
