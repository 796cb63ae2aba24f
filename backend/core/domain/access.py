"""
core.domain.access — Role policy and role-scoped case visibility.

╔══════════════════════════════════════════════════════════════════╗
║  Classification is PURE and recomputed per request.              ║
║  Nothing here caches a category on the ``User`` object; views    ║
║  build an ``Actor`` from the live role set at request time.      ║
╚══════════════════════════════════════════════════════════════════╝

Categories
----------
Every actor falls into exactly one of:

    ┌──────────────────────────┬──────────────────────────────────────┐
    │ UNRESTRICTED_STAFF       │ holds admin, super_admin or registrar│
    │ HEARING_DIVISION_ONLY    │ holds hearing_officer (and none of   │
    │                          │ the above)                           │
    │ APPLICANT_ONLY           │ everything else, including no roles  │
    └──────────────────────────┴──────────────────────────────────────┘

On top of the category, ``admin`` / ``super_admin`` is an *admin-grade*
capability: it lifts ownership, district and assignment restrictions and
the "hearing has occurred" timing gate, but never a structural
precondition (attachment, remark length, status).

Visibility
----------
The same rule guards every read and write path:

* applicant-only actors see a case only when they own it
  (see ``applicant_owns_case``);
* hearing-division-only actors see a case only when its
  ``description.district`` equals their own non-empty district, or when
  they are its assigned hearing officer and one of the two districts is
  blank (the first-hearing rule only compares districts when both are
  set, see ``is_assigned_without_district``).

``ensure_case_visible`` is the single-object guard;
``scope_case_queryset`` is its list equivalent.

Usage::

    from core.domain.access import actor_for, ensure_case_visible

    actor = actor_for(request.user)
    ensure_case_visible(actor, case)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from django.db.models import Q, QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User


class RoleName:
    """Role slugs recognised by the policy (``accounts.Role.name``)."""

    APPLICANT = "applicant"
    REGISTRAR = "registrar"
    HEARING_OFFICER = "hearing_officer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    ADMIN_GRADE = frozenset({ADMIN, SUPER_ADMIN})
    STAFF = frozenset({ADMIN, SUPER_ADMIN, REGISTRAR})
    ALL = frozenset({APPLICANT, REGISTRAR, HEARING_OFFICER, ADMIN, SUPER_ADMIN})


class ActorCategory(str, enum.Enum):
    APPLICANT_ONLY = "applicant_only"
    HEARING_DIVISION_ONLY = "hearing_division_only"
    UNRESTRICTED_STAFF = "unrestricted_staff"


# Statuses a hearing-division-only actor may see while the case is open.
HEARING_DIVISION_OPEN_STATUSES = frozenset({"complete", "hearing_scheduled", "under_hearing"})
CLOSED_STATUSES = frozenset({"approved_resolved", "rejected_closed"})


def classify_roles(role_names: Iterable[str]) -> ActorCategory:
    """
    Map a raw role set to exactly one ``ActorCategory``.

    Staff roles dominate, then ``hearing_officer``; anything else
    (``applicant``, unknown roles, or no roles at all) is applicant-only.
    """
    roles = frozenset(role_names)
    if roles & RoleName.STAFF:
        return ActorCategory.UNRESTRICTED_STAFF
    if RoleName.HEARING_OFFICER in roles:
        return ActorCategory.HEARING_DIVISION_ONLY
    return ActorCategory.APPLICANT_ONLY


def is_admin_grade(role_names: Iterable[str]) -> bool:
    return bool(frozenset(role_names) & RoleName.ADMIN_GRADE)


@dataclass(frozen=True)
class Actor:
    """
    Request-scoped snapshot of the acting user.

    Built by ``actor_for(user)``; never stored.  ``category`` and the
    capability flags are derived from ``roles`` on construction.
    """

    id: Any
    roles: frozenset[str] = frozenset()
    email: str = ""
    national_id: str = ""
    district: str = ""
    category: ActorCategory = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", frozenset(self.roles))
        object.__setattr__(self, "category", classify_roles(self.roles))

    @property
    def is_admin(self) -> bool:
        return is_admin_grade(self.roles)

    @property
    def is_registrar(self) -> bool:
        return RoleName.REGISTRAR in self.roles

    @property
    def is_hearing_officer(self) -> bool:
        return RoleName.HEARING_OFFICER in self.roles

    @property
    def is_applicant_only(self) -> bool:
        return self.category is ActorCategory.APPLICANT_ONLY

    @property
    def is_hearing_division_only(self) -> bool:
        return self.category is ActorCategory.HEARING_DIVISION_ONLY


def actor_for(user: User) -> Actor:
    """Build an ``Actor`` from a live ``User`` (roles re-read from the DB)."""
    return Actor(
        id=user.pk,
        roles=user.role_names,
        email=(user.email or "").strip().lower(),
        national_id=(user.national_id or "").strip(),
        district=(user.district or "").strip(),
    )


# ── Case attribute accessors ────────────────────────────────────────
# The policy works on ``cases.Case`` instances but only touches these
# attributes, so lightweight stand-ins work too.


def _description(case: Any) -> Mapping[str, Any]:
    description = getattr(case, "description", None)
    return description if isinstance(description, Mapping) else {}


def case_district(case: Any) -> str:
    value = _description(case).get("district")
    return str(value).strip() if value else ""


def _description_national_id(case: Any) -> str:
    description = _description(case)
    value = description.get("national_id") or description.get("cnic")
    return str(value).strip() if value else ""


def applicant_owns_case(actor: Actor, case: Any) -> bool:
    """
    True if **any** of the ownership predicates matches:

    1. the case's linked applicant account is the actor;
    2. the case e-mail equals the actor's e-mail (case-insensitive);
    3. the case national ID equals the actor's national ID;
    4. the national ID stored in the case description equals it.
    """
    if actor.id is not None and getattr(case, "applicant_user_id", None) == actor.id:
        return True
    case_email = (getattr(case, "applicant_email", "") or "").strip().lower()
    if actor.email and case_email == actor.email:
        return True
    if actor.national_id:
        case_nid = (getattr(case, "applicant_national_id", "") or "").strip()
        if case_nid == actor.national_id:
            return True
        if _description_national_id(case) == actor.national_id:
            return True
    return False


def district_matches(actor: Actor, district: str) -> bool:
    """A hearing-division actor without a district matches nothing."""
    return bool(actor.district) and actor.district == (district or "")


def is_assigned_without_district(actor: Actor, case: Any) -> bool:
    """
    True when the actor is the case's assigned hearing officer and either
    side has no district.  Such an assignment passed the first-hearing
    district rule, which compares only when both districts are set.
    """
    if actor.id is None or getattr(case, "assigned_hearing_officer_id", None) != actor.id:
        return False
    return not actor.district or not case_district(case)


def can_view_case(actor: Actor, case: Any) -> bool:
    if actor.is_applicant_only:
        return applicant_owns_case(actor, case)
    if actor.is_hearing_division_only:
        return (
            district_matches(actor, case_district(case))
            or is_assigned_without_district(actor, case)
        )
    return True


def ensure_case_visible(actor: Actor, case: Any) -> None:
    """
    Raise ``PermissionDenied`` if the actor may not see (and therefore
    may not act on) the case.
    """
    if not can_view_case(actor, case):
        raise PermissionDenied("Forbidden")


def scope_case_queryset(queryset: QuerySet, actor: Actor) -> QuerySet:
    """
    Apply the actor's visibility scope to a ``Case`` queryset.

    - **Applicant-only**: cases matched by any ownership predicate.
    - **Hearing-division-only**: own district only; open cases in the
      hearing-division statuses plus closed cases they were the assigned
      officer on.  Cases assigned to them where either district is blank
      are included as well.
    - **Staff**: unfiltered.
    """
    if actor.is_applicant_only:
        match = Q(applicant_user_id=actor.id)
        if actor.email:
            match |= Q(applicant_email__iexact=actor.email)
        if actor.national_id:
            match |= Q(applicant_national_id=actor.national_id)
            match |= Q(description__national_id=actor.national_id)
            match |= Q(description__cnic=actor.national_id)
        return queryset.filter(match)

    if actor.is_hearing_division_only:
        assigned = Q(assigned_hearing_officer_id=actor.id)
        if not actor.district:
            return queryset.filter(assigned)
        blank_district = (
            Q(description__district__isnull=True)
            | Q(description__district=None)
            | Q(description__district="")
        )
        in_district = Q(description__district=actor.district) & (
            Q(status__in=HEARING_DIVISION_OPEN_STATUSES)
            | Q(status__in=CLOSED_STATUSES, assigned_hearing_officer_id=actor.id)
        )
        return queryset.filter(in_district | (assigned & blank_district))

    return queryset


def require_admin(actor: Actor, message: str = "") -> None:
    """Guard for admin-grade-only endpoints (audit log, user listing)."""
    if not actor.is_admin:
        raise PermissionDenied(message or "Only administrators can perform this action.")


def require_staff(actor: Actor, message: str = "") -> None:
    """Guard for endpoints open to any non-applicant staff member."""
    if actor.is_applicant_only:
        raise PermissionDenied(message or "Only staff members can perform this action.")
