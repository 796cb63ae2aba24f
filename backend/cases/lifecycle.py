"""
cases.lifecycle — The case lifecycle engine.

╔══════════════════════════════════════════════════════════════════╗
║  PURE: ``plan_transition`` never touches the database.  It reads ║
║  a case snapshot, the hearing history and an ``Actor`` and       ║
║  either raises a domain exception or returns a TransitionPlan   ║
║  that ``cases.services.CaseTransitionService`` persists.         ║
╚══════════════════════════════════════════════════════════════════╝

State graph
-----------
::

    submitted ──► complete ──► hearing_scheduled ◄──► under_hearing
        │  ▲          │                 │                   │
        ▼  │          ▼                 └──────┬────────────┘
      incomplete ◄────┘                        ▼
                               approved_resolved | rejected_closed

Every action is one row of ``TRANSITIONS``.  The dispatcher applies the
same checks to each row, in this order:

    1. visibility (``ensure_case_visible``)      → PermissionDenied
    2. terminal status                           → PreconditionFailed
    3. source-status membership                  → InvalidTransition
    4. actor capability                          → PermissionDenied
    5. structural input (dates, remark, file)    → InvalidInput
       then sequencing / temporal checks         → PreconditionFailed
                                                   / PermissionDenied
    6. plan construction

Notification, e-mail and audit *intents* in the plan may contain
``str.format`` placeholders (``{case_id}``, ``{tracking_code}``,
``{hearing_id}``, ``{hearing_at}``) that the orchestrator fills in once
the hearing row exists.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Sequence

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from core.constants import MIN_DECISION_REMARK_LENGTH
from core.domain.access import Actor, RoleName, ensure_case_visible
from core.domain.exceptions import (
    InvalidInput,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    PreconditionFailed,
)

from .hearings import hearing_count, latest_hearing
from .models import CLOSED_STATUSES, CaseStatus, HearingType, RemarkType


class Action:
    MARK_COMPLETE = "mark_complete"
    MARK_INCOMPLETE = "mark_incomplete"
    RESUBMIT = "resubmit"
    SCHEDULE_HEARING = "schedule_hearing"
    SCHEDULE_FIRST_HEARING = "schedule_first_hearing"
    SCHEDULE_SUBSEQUENT_HEARING = "schedule_subsequent_hearing"
    ADJOURN = "adjourn"
    APPROVE = "approve"
    REJECT = "reject"
    SET_VIOLATION = "set_violation"


# Applicant-editable fields on resubmission.
RESUBMIT_FIELDS = (
    "applicant_name",
    "applicant_phone",
    "organization_name",
    "organization_address",
    "case_type",
)

CASE_LINK = "/dashboard/cases/{case_id}"


# ═══════════════════════════════════════════════════════════════════
#  Typed description view
# ═══════════════════════════════════════════════════════════════════


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip()


@dataclass(frozen=True)
class CaseDescription:
    """
    Typed view of ``Case.description``.

    The four fields the engine branches on are parsed out and trimmed for
    comparison; every other key is carried untouched in ``extra``.  A field
    is ``None`` when the key was absent.  ``stored`` keeps the typed keys
    as they were read, so ``to_dict`` writes back the original value of
    any field that was not changed.
    """

    district: str | None = None
    violation_type: str | None = None
    sub_violation: str | None = None
    national_id: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    stored: Mapping[str, Any] = field(default_factory=dict, repr=False)

    _TYPED = ("district", "violation_type", "sub_violation", "national_id")

    @classmethod
    def from_raw(cls, raw: Any) -> CaseDescription:
        if not isinstance(raw, Mapping):
            return cls()
        stored = {key: raw[key] for key in cls._TYPED if key in raw}
        typed = {key: _clean(value) for key, value in stored.items()}
        extra = {key: value for key, value in raw.items() if key not in cls._TYPED}
        return cls(extra=extra, stored=stored, **typed)

    def with_violation(
        self, violation_type: Any = None, sub_violation: Any = None,
    ) -> CaseDescription:
        """Merge non-empty violation values; empty values leave the field alone."""
        violation_type = _clean(violation_type)
        sub_violation = _clean(sub_violation)
        changes = {}
        if violation_type:
            changes["violation_type"] = violation_type
        if sub_violation:
            changes["sub_violation"] = sub_violation
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        for key in self._TYPED:
            value = getattr(self, key)
            if value is None:
                continue
            if key in self.stored and _clean(self.stored[key]) == value:
                value = self.stored[key]
            data[key] = value
        return data


# ═══════════════════════════════════════════════════════════════════
#  Plan types
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class HearingSpec:
    scheduled_for: datetime.datetime
    hearing_type: str
    attach_order: bool = False


@dataclass(frozen=True)
class HearingPlan:
    """
    Hearing mutation.  The orchestrator applies, in order:
    attach-to-latest, deactivate-all, create.  ``create`` implies a
    bulk deactivation first (see ``cases.hearings.activate_new_hearing``).
    """

    create: HearingSpec | None = None
    deactivate_all: bool = False
    attach_order_to_latest: bool = False


@dataclass(frozen=True)
class RemarkPlan:
    remark: str
    remark_type: str
    status_at_time: str
    proceedings: str = ""


@dataclass(frozen=True)
class NotificationIntent:
    """
    One in-app notification.  Exactly one of ``recipient_id`` / ``role``
    is set.  When ``requires_assignment`` names a case field, the intent
    fires only if this transition won the compare-and-set on that field.
    """

    title: str
    message: str
    event_type: str
    dedupe_key: str | None = None
    recipient_id: Any = None
    role: str | None = None
    link: str = CASE_LINK
    requires_assignment: str | None = None


@dataclass(frozen=True)
class EmailIntent:
    """``recipient`` defaults to the case's applicant e-mail."""

    template: str
    recipient: str = ""


@dataclass(frozen=True)
class AuditIntent:
    action: str
    entity_type: str = "case"
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionPlan:
    action: str
    from_status: str
    to_status: str
    case_updates: Mapping[str, Any] = field(default_factory=dict)
    assign_registrar: Any = None
    assign_hearing_officer: Any = None
    hearing: HearingPlan = field(default_factory=HearingPlan)
    hearing_order: Any = None
    remark: RemarkPlan | None = None
    notifications: Sequence[NotificationIntent] = ()
    emails: Sequence[EmailIntent] = ()
    audit: AuditIntent | None = None

    @property
    def changes_status(self) -> bool:
        return self.from_status != self.to_status


# ═══════════════════════════════════════════════════════════════════
#  Capability rules
# ═══════════════════════════════════════════════════════════════════
# Each returns ``None`` when the actor may act, or the denial message.


def _staff_only(actor: Actor, case: Any) -> str | None:
    if actor.is_applicant_only or actor.is_hearing_division_only:
        return "Only registrars or administrators can review cases."
    return None


def _applicant_owner(actor: Actor, case: Any) -> str | None:
    # Ownership itself is established by the visibility check.
    if not actor.is_applicant_only:
        return "Only the applicant can resubmit this case."
    return None


def _registrar_or_admin(actor: Actor, case: Any) -> str | None:
    if not (actor.is_registrar or actor.is_admin):
        return "Only the registrar or admin can schedule the first hearing."
    return None


def _assigned_officer_or_admin(verb: str) -> Callable[[Actor, Any], str | None]:
    def rule(actor: Actor, case: Any) -> str | None:
        if actor.is_admin:
            return None
        if not actor.is_hearing_officer:
            return f"Only the assigned hearing officer or admin can {verb}."
        assigned = getattr(case, "assigned_hearing_officer_id", None)
        if assigned is None:
            return "No hearing officer assigned to this case."
        if assigned != actor.id:
            return f"Only the assigned hearing officer can {verb}."
        return None

    return rule


def _hearing_division_or_admin(actor: Actor, case: Any) -> str | None:
    if not (actor.is_hearing_officer or actor.is_admin):
        return "Only hearing officers or admins can set the violation type."
    return None


# ═══════════════════════════════════════════════════════════════════
#  Input helpers
# ═══════════════════════════════════════════════════════════════════


def parse_hearing_datetime(value: Any, now: datetime.datetime) -> datetime.datetime:
    """
    Parse a hearing date that must lie strictly in the future.

    Accepts ``datetime`` instances or ISO-8601 strings; a bare date
    means midnight.  Naive values are interpreted in the current time
    zone.

    Raises:
        InvalidInput: missing, unparseable, or not after ``now``.
    """
    if value in (None, ""):
        raise InvalidInput("Hearing date is required.")
    if isinstance(value, datetime.datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            parsed = parse_datetime(text)
            if parsed is None:
                day = parse_date(text)
                if day is not None:
                    parsed = datetime.datetime.combine(day, datetime.time.min)
        except ValueError:
            parsed = None
        if parsed is None:
            raise InvalidInput("Invalid hearing date.")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    if parsed <= now:
        raise InvalidInput("Hearing date must be in the future.")
    return parsed


def _decision_remark(payload: Mapping[str, Any]) -> str:
    if not payload.get("hearing_order"):
        raise InvalidInput("Hearing order PDF is required.")
    remark = _clean(payload.get("remarks")) or ""
    if len(remark) < MIN_DECISION_REMARK_LENGTH:
        raise InvalidInput(
            f"Remarks must be at least {MIN_DECISION_REMARK_LENGTH} characters."
        )
    return remark


def _require_hearing_has_occurred(ctx: _Context) -> None:
    """
    The latest hearing must exist and, for non-admin actors, lie strictly
    in the past.  Admin-grade actors bypass only the timing part.
    """
    latest = latest_hearing(ctx.hearings)
    if latest is None:
        raise PreconditionFailed("No hearing scheduled for this case.")
    if ctx.actor.is_admin:
        return
    if latest.scheduled_for >= ctx.now:
        raise PermissionDenied("Hearing has not occurred yet.")


# ═══════════════════════════════════════════════════════════════════
#  Transition table
# ═══════════════════════════════════════════════════════════════════


@dataclass
class _Context:
    case: Any
    actor: Actor
    hearings: Sequence[Any]
    payload: Mapping[str, Any]
    now: datetime.datetime
    hearing_officer: Actor | None
    description: CaseDescription

    @property
    def status(self) -> str:
        return self.case.status

    def merged_description(self) -> dict[str, Any] | None:
        """Description with payload violation fields merged, or ``None`` if unchanged."""
        merged = self.description.with_violation(
            self.payload.get("violation_type"),
            self.payload.get("sub_violation"),
        )
        if merged == self.description:
            return None
        return merged.to_dict()

    def base_updates(self, to_status: str) -> dict[str, Any]:
        updates: dict[str, Any] = {"updated_by_id": self.actor.id}
        if to_status != self.status:
            updates["status"] = to_status
        description = self.merged_description()
        if description is not None:
            updates["description"] = description
        return updates


@dataclass(frozen=True)
class Transition:
    """
    One row of the transition table.

    ``target`` is ``None`` for actions that keep the current status.
    ``build`` performs the action-specific input and sequencing checks
    and returns the plan.
    """

    action: str
    sources: frozenset[str]
    target: str | None
    capability: Callable[[Actor, Any], str | None]
    source_error: str
    build: Callable[[_Context, Transition], TransitionPlan]


def _assignment_notice(field_name: str, recipient_id: Any) -> NotificationIntent:
    return NotificationIntent(
        recipient_id=recipient_id,
        title="Application Assigned",
        message="{tracking_code} is assigned to you.",
        event_type="application_assigned",
        dedupe_key="application_assigned:{case_id}",
        requires_assignment=field_name,
    )


def _build_review(ctx: _Context, transition: Transition) -> TransitionPlan:
    """mark_complete / mark_incomplete."""
    to_status = transition.target
    remarks = _clean(ctx.payload.get("remarks")) or ""
    assign = ctx.actor.id if getattr(ctx.case, "assigned_registrar_id", None) is None else None

    if transition.action == Action.MARK_COMPLETE:
        remark = (
            RemarkPlan(remarks, RemarkType.COMPLETE, to_status) if remarks else None
        )
        emails = (EmailIntent("status_changed"),)
    else:
        remark = RemarkPlan(remarks or "Marked incomplete", RemarkType.INCOMPLETE, to_status)
        emails = (EmailIntent("reauth_link"), EmailIntent("status_changed"))

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=to_status,
        case_updates=ctx.base_updates(to_status),
        assign_registrar=assign,
        remark=remark,
        notifications=(
            (_assignment_notice("assigned_registrar", ctx.actor.id),) if assign else ()
        ),
        emails=emails,
        audit=AuditIntent(action=f"case.{transition.action}"),
    )


def _check_corrected_national_id(ctx: _Context, corrections: Mapping[str, Any]) -> None:
    """
    A resubmission may restate the national ID already on file or the
    applicant's own profile ID, nothing else.
    """
    on_file = {
        _clean(getattr(ctx.case, "applicant_national_id", None)),
        ctx.description.national_id,
        _clean(ctx.description.extra.get("cnic")),
        ctx.actor.national_id,
    } - {None, ""}
    for key in ("national_id", "cnic"):
        corrected = _clean(corrections.get(key))
        if corrected and corrected not in on_file:
            raise InvalidInput("Applicant national ID does not match profile.")


def _build_resubmit(ctx: _Context, transition: Transition) -> TransitionPlan:
    to_status = transition.target
    updates = ctx.base_updates(to_status)
    for name in RESUBMIT_FIELDS:
        value = _clean(ctx.payload.get(name))
        if value:
            updates[name] = value

    corrections = ctx.payload.get("description")
    if corrections is not None:
        if not isinstance(corrections, Mapping):
            raise InvalidInput("Description must be an object.")
        _check_corrected_national_id(ctx, corrections)
        merged = dict(updates.get("description") or ctx.description.to_dict())
        merged.update(corrections)
        updates["description"] = merged

    if getattr(ctx.case, "applicant_user_id", None) is None and ctx.actor.id is not None:
        updates["applicant_user_id"] = ctx.actor.id

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=to_status,
        case_updates=updates,
        remark=RemarkPlan(
            _clean(ctx.payload.get("remarks")) or "Application resubmitted.",
            RemarkType.RESUBMITTED,
            to_status,
        ),
        notifications=(
            NotificationIntent(
                role=RoleName.REGISTRAR,
                title="Application Resubmitted",
                message="{tracking_code} was resubmitted by the applicant.",
                event_type="application_resubmitted",
                dedupe_key="application_resubmitted:{case_id}",
            ),
        ),
        emails=(EmailIntent("status_changed"),),
        audit=AuditIntent(action="case.resubmitted"),
    )


def _hearing_notices(officer_id: Any) -> tuple[NotificationIntent, ...]:
    return (
        NotificationIntent(
            recipient_id=officer_id,
            title="Hearing Scheduled",
            message="{tracking_code} scheduled for {hearing_at}.",
            event_type="hearing_scheduled",
            dedupe_key="hearing_scheduled:{hearing_id}",
        ),
    )


def _build_schedule_first(ctx: _Context, transition: Transition) -> TransitionPlan:
    to_status = transition.target
    scheduled_for = parse_hearing_datetime(ctx.payload.get("hearing_at"), ctx.now)

    if not ctx.payload.get("hearing_officer_id"):
        raise InvalidInput("Hearing officer is required for the first hearing.")
    officer = ctx.hearing_officer
    if officer is None:
        raise NotFound("Hearing officer not found.")
    if not officer.is_hearing_officer:
        raise InvalidInput("Selected user is not a hearing officer.")
    case_district = ctx.description.district or ""
    if case_district and officer.district and officer.district != case_district:
        raise InvalidInput("Hearing officer district does not match case district.")

    if hearing_count(ctx.hearings) != 0:
        raise PreconditionFailed(
            "Case already has hearings; schedule a subsequent hearing instead."
        )

    assign = officer.id if getattr(ctx.case, "assigned_hearing_officer_id", None) is None else None
    notifications = _hearing_notices(officer.id)
    if assign:
        notifications = (_assignment_notice("assigned_hearing_officer", officer.id),) + notifications

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=to_status,
        case_updates=ctx.base_updates(to_status),
        assign_hearing_officer=assign,
        hearing=HearingPlan(
            create=HearingSpec(scheduled_for, HearingType.INITIAL),
            deactivate_all=True,
        ),
        remark=RemarkPlan(
            _clean(ctx.payload.get("remarks")) or "Hearing scheduled (initial).",
            RemarkType.HEARING_SCHEDULED,
            to_status,
            proceedings=_clean(ctx.payload.get("proceedings")) or "",
        ),
        notifications=notifications,
        emails=(EmailIntent("hearing_scheduled"), EmailIntent("status_changed")),
        audit=AuditIntent(
            action="case.hearing_scheduled",
            entity_type="hearing",
            details={"hearing_officer_id": officer.id, "hearing_type": HearingType.INITIAL},
        ),
    )


def _build_schedule_subsequent(ctx: _Context, transition: Transition) -> TransitionPlan:
    to_status = transition.target
    scheduled_for = parse_hearing_datetime(ctx.payload.get("hearing_at"), ctx.now)

    if hearing_count(ctx.hearings) == 0:
        raise PreconditionFailed("Case has no hearings; schedule the first hearing instead.")
    officer_id = getattr(ctx.case, "assigned_hearing_officer_id", None)
    if officer_id is None:
        raise PermissionDenied("No hearing officer assigned to this case.")

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=to_status,
        case_updates=ctx.base_updates(to_status),
        hearing=HearingPlan(
            create=HearingSpec(scheduled_for, HearingType.SUBSEQUENT),
            deactivate_all=True,
        ),
        remark=RemarkPlan(
            _clean(ctx.payload.get("remarks")) or "Hearing scheduled (subsequent).",
            RemarkType.HEARING_SCHEDULED,
            to_status,
            proceedings=_clean(ctx.payload.get("proceedings")) or "",
        ),
        notifications=_hearing_notices(officer_id),
        emails=(EmailIntent("hearing_scheduled"), EmailIntent("status_changed")),
        audit=AuditIntent(
            action="case.hearing_scheduled",
            entity_type="hearing",
            details={"hearing_officer_id": officer_id, "hearing_type": HearingType.SUBSEQUENT},
        ),
    )


def _build_adjourn(ctx: _Context, transition: Transition) -> TransitionPlan:
    to_status = transition.target
    remark = _decision_remark(ctx.payload)
    scheduled_for = parse_hearing_datetime(ctx.payload.get("hearing_at"), ctx.now)
    _require_hearing_has_occurred(ctx)

    assign = None
    if getattr(ctx.case, "assigned_hearing_officer_id", None) is None and ctx.actor.is_hearing_officer:
        assign = ctx.actor.id

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=to_status,
        case_updates=ctx.base_updates(to_status),
        assign_hearing_officer=assign,
        hearing=HearingPlan(
            create=HearingSpec(scheduled_for, HearingType.EXTENSION, attach_order=True),
            deactivate_all=True,
        ),
        hearing_order=ctx.payload.get("hearing_order"),
        remark=RemarkPlan(
            remark,
            RemarkType.ADJOURNED,
            to_status,
            proceedings=_clean(ctx.payload.get("proceedings")) or "",
        ),
        notifications=(
            (_assignment_notice("assigned_hearing_officer", ctx.actor.id),) if assign else ()
        ),
        emails=(EmailIntent("status_changed"),),
        audit=AuditIntent(action="case.adjourned", entity_type="hearing"),
    )


def _build_decision(ctx: _Context, transition: Transition) -> TransitionPlan:
    """approve / reject."""
    to_status = transition.target
    remark = _decision_remark(ctx.payload)
    _require_hearing_has_occurred(ctx)

    updates = ctx.base_updates(to_status)
    updates["closed_at"] = ctx.now
    updates["closed_by_id"] = ctx.actor.id
    remark_type = (
        RemarkType.APPROVED if transition.action == Action.APPROVE else RemarkType.REJECTED
    )

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=to_status,
        case_updates=updates,
        hearing=HearingPlan(deactivate_all=True, attach_order_to_latest=True),
        hearing_order=ctx.payload.get("hearing_order"),
        remark=RemarkPlan(
            remark,
            remark_type,
            to_status,
            proceedings=_clean(ctx.payload.get("proceedings")) or "",
        ),
        emails=(EmailIntent("reauth_link"), EmailIntent("status_changed")),
        audit=AuditIntent(action=f"case.{remark_type.value}"),
    )


def _build_set_violation(ctx: _Context, transition: Transition) -> TransitionPlan:
    violation_type = _clean(ctx.payload.get("violation_type"))
    sub_violation = _clean(ctx.payload.get("sub_violation"))
    if not violation_type and not sub_violation:
        raise InvalidInput("violation_type or sub_violation is required.")

    return TransitionPlan(
        action=transition.action,
        from_status=ctx.status,
        to_status=ctx.status,
        case_updates=ctx.base_updates(ctx.status),
        audit=AuditIntent(
            action="case.violation_set",
            details={"violation_type": violation_type, "sub_violation": sub_violation},
        ),
    )


_OPEN_STATUSES = frozenset(CaseStatus.values) - CLOSED_STATUSES
_UNDER_HEARING = frozenset({CaseStatus.HEARING_SCHEDULED, CaseStatus.UNDER_HEARING})

TRANSITIONS: dict[str, Transition] = {
    row.action: row
    for row in (
        Transition(
            action=Action.MARK_COMPLETE,
            sources=frozenset({CaseStatus.SUBMITTED}),
            target=CaseStatus.COMPLETE,
            capability=_staff_only,
            source_error="Only submitted cases can be marked complete.",
            build=_build_review,
        ),
        Transition(
            action=Action.MARK_INCOMPLETE,
            sources=frozenset({CaseStatus.SUBMITTED, CaseStatus.COMPLETE}),
            target=CaseStatus.INCOMPLETE,
            capability=_staff_only,
            source_error="Only submitted or complete cases can be marked incomplete.",
            build=_build_review,
        ),
        Transition(
            action=Action.RESUBMIT,
            sources=frozenset({CaseStatus.INCOMPLETE}),
            target=CaseStatus.SUBMITTED,
            capability=_applicant_owner,
            source_error="Only incomplete cases can be resubmitted.",
            build=_build_resubmit,
        ),
        Transition(
            action=Action.SCHEDULE_FIRST_HEARING,
            sources=frozenset({CaseStatus.COMPLETE}),
            target=CaseStatus.HEARING_SCHEDULED,
            capability=_registrar_or_admin,
            source_error="Case must be marked complete before scheduling the first hearing.",
            build=_build_schedule_first,
        ),
        Transition(
            action=Action.SCHEDULE_SUBSEQUENT_HEARING,
            sources=_UNDER_HEARING,
            target=CaseStatus.HEARING_SCHEDULED,
            capability=_assigned_officer_or_admin("schedule subsequent hearings"),
            source_error="Case is not under hearing.",
            build=_build_schedule_subsequent,
        ),
        Transition(
            action=Action.ADJOURN,
            sources=_UNDER_HEARING,
            target=CaseStatus.UNDER_HEARING,
            capability=_assigned_officer_or_admin("adjourn this hearing"),
            source_error="Case is not under hearing.",
            build=_build_adjourn,
        ),
        Transition(
            action=Action.APPROVE,
            sources=_UNDER_HEARING,
            target=CaseStatus.APPROVED_RESOLVED,
            capability=_assigned_officer_or_admin("approve this case"),
            source_error="Case is not under hearing.",
            build=_build_decision,
        ),
        Transition(
            action=Action.REJECT,
            sources=_UNDER_HEARING,
            target=CaseStatus.REJECTED_CLOSED,
            capability=_assigned_officer_or_admin("reject this case"),
            source_error="Case is not under hearing.",
            build=_build_decision,
        ),
        Transition(
            action=Action.SET_VIOLATION,
            sources=_OPEN_STATUSES,
            target=None,
            capability=_hearing_division_or_admin,
            source_error="Closed cases cannot be updated.",
            build=_build_set_violation,
        ),
    )
}


def resolve_action(action: str, hearings: Sequence[Any]) -> str:
    """Expand the ``schedule_hearing`` alias by hearing count."""
    if action == Action.SCHEDULE_HEARING:
        if hearing_count(hearings) == 0:
            return Action.SCHEDULE_FIRST_HEARING
        return Action.SCHEDULE_SUBSEQUENT_HEARING
    return action


def plan_transition(
    case: Any,
    action: str,
    actor: Actor,
    hearings: Sequence[Any],
    payload: Mapping[str, Any] | None = None,
    *,
    now: datetime.datetime | None = None,
    hearing_officer: Actor | None = None,
) -> TransitionPlan:
    """
    Validate ``action`` on ``case`` for ``actor`` and return the plan.

    Args:
        case:            Case snapshot (model instance or any object with
                         the same attributes).
        action:          An ``Action`` name; ``schedule_hearing`` is
                         resolved by hearing count.
        actor:           The acting ``Actor``.
        hearings:        The case's hearings (any order).
        payload:         Action input (``hearing_at``, ``hearing_officer_id``,
                         ``remarks``, ``proceedings``, ``hearing_order``,
                         ``violation_type``, ``sub_violation``, resubmit
                         corrections).
        now:             Clock reading; defaults to ``timezone.now()``.
        hearing_officer: The officer selected by ``hearing_officer_id``, or
                         ``None`` if no such user exists.

    Raises:
        PermissionDenied, PreconditionFailed, InvalidTransition,
        InvalidInput, NotFound.
    """
    payload = payload or {}
    action = resolve_action(action, hearings)
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise InvalidInput(f"Unknown action '{action}'.")

    ensure_case_visible(actor, case)

    if case.status in CLOSED_STATUSES:
        raise PreconditionFailed("Case is already closed.")
    if case.status not in transition.sources:
        raise InvalidTransition(
            current=case.status,
            target=transition.target,
            reason=transition.source_error,
        )

    denial = transition.capability(actor, case)
    if denial:
        raise PermissionDenied(denial)

    ctx = _Context(
        case=case,
        actor=actor,
        hearings=list(hearings),
        payload=payload,
        now=now or timezone.now(),
        hearing_officer=hearing_officer,
        description=CaseDescription.from_raw(getattr(case, "description", None)),
    )
    return transition.build(ctx, transition)
