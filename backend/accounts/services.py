"""
Accounts Service Layer.

Business logic for the ``accounts`` app.  Views stay *thin*: they
validate input through serializers, call a service method, and return
the result wrapped in a DRF ``Response``.

Architecture
------------
- ``CurrentUserService``      — "Me" endpoint helpers.
- ``HearingOfficerService``   — officer directory used when a registrar
                                schedules the first hearing of a case.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import QuerySet

from core.domain.access import Actor, RoleName, require_staff

User = get_user_model()


class CurrentUserService:
    """Helpers for the "Me" endpoint."""

    @staticmethod
    def get_profile(user: User) -> User:
        """
        Return the user with roles prefetched for serialization.

        ``role_names`` still reads the relation per access, so the
        prefetch only saves the query for the serializer's first read.
        """
        return User.objects.prefetch_related("roles").get(pk=user.pk)


class HearingOfficerService:
    """
    Directory of active users holding the ``hearing_officer`` role.

    Registrars pick from this list when scheduling the first hearing; a
    ``district`` filter narrows it to officers whose district matches the
    case (officers without a district are included, since the district
    check in the lifecycle engine only applies when both sides are set).
    """

    @staticmethod
    def list_officers(actor: Actor, *, district: str | None = None) -> QuerySet:
        """
        Parameters
        ----------
        actor : Actor
            Requesting actor.  Applicant-only actors are refused.
        district : str, optional
            When given, restrict to officers in that district or with no
            district recorded.

        Raises
        ------
        core.domain.exceptions.PermissionDenied
            If the actor is applicant-only.
        """
        require_staff(actor)
        queryset = (
            User.objects.filter(roles__name=RoleName.HEARING_OFFICER, is_active=True)
            .distinct()
            .order_by("first_name", "last_name", "username")
        )
        district = (district or "").strip()
        if district:
            queryset = queryset.filter(district__in=[district, ""])
        return queryset
