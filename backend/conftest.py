"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users with roles.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``make_case`` factory fixture for cases in any status.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            officer = create_user(roles=["hearing_officer"], district="Lahore")
            admin = create_user(username="root", roles=["admin"])
    """
    from accounts.models import Role, User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        national_id: str | None = None,
        phone_number: str | None = None,
        roles: tuple[str, ...] | list[str] = (),
        district: str = "",
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"
        if national_id is None:
            national_id = f"{_counter:010d}"
        if phone_number is None:
            phone_number = f"0912{_counter:07d}"

        user = User.objects.create_user(
            username=username,
            password=password,
            email=email,
            national_id=national_id,
            phone_number=phone_number,
            district=district,
            is_active=is_active,
            **kwargs,
        )
        for name in roles:
            role, _ = Role.objects.get_or_create(name=name)
            user.roles.add(role)
        return user

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper function that creates a user and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(roles=["registrar"])
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, username: str | None = None, **user_kwargs) -> dict[str, str]:
        user = create_user(username=username, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def make_case(db):
    """
    Factory fixture that inserts a case directly (bypassing submission).

    Usage::

        case = make_case(status="complete", district="Lahore")
    """
    from django.utils import timezone

    from cases.models import CLOSED_STATUSES, Case

    def _factory(
        *,
        status: str = "submitted",
        district: str = "Lahore",
        applicant_email: str = "applicant@test.local",
        description: dict | None = None,
        **fields,
    ) -> Case:
        desc = {"district": district} if district else {}
        desc.update(description or {})
        if status in CLOSED_STATUSES:
            fields.setdefault("closed_at", timezone.now())
        return Case.objects.create(
            applicant_name=fields.pop("applicant_name", "Green Works Ltd."),
            applicant_email=applicant_email,
            case_type=fields.pop("case_type", "air_pollution"),
            description=desc,
            status=status,
            **fields,
        )

    return _factory
