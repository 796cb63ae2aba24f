"""
Accounts app tests — authentication, profile and the officer directory.

Covers:
  1. Login with username, e-mail (any case) or national ID
  2. Wrong password / inactive user fail with 400
  3. ``me`` returns the live role set and its policy category
  4. Hearing-officer directory is staff-only and district-filterable
  5. ``setup_roles`` is idempotent and can grant a role
"""

from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Role

PASSWORD = "Str0ng!Pass123"


@pytest.mark.django_db
class TestLogin:

    @pytest.mark.parametrize(
        "identifier",
        ["loginuser", "LoginUser@Example.com", "35202-1111111-1"],
    )
    def test_login_with_any_identifier(self, api_client: APIClient, create_user, identifier):
        """Login succeeds with username, e-mail or national ID."""
        create_user(
            username="loginuser",
            email="loginuser@example.com",
            national_id="35202-1111111-1",
            password=PASSWORD,
            roles=["applicant"],
        )
        resp = api_client.post(
            reverse("accounts:login"),
            {"identifier": identifier, "password": PASSWORD},
            format="json",
        )
        assert resp.status_code == status.HTTP_200_OK, resp.data
        assert "access" in resp.data
        assert "refresh" in resp.data
        assert resp.data["user"]["username"] == "loginuser"
        assert resp.data["user"]["roles"] == ["applicant"]

    def test_wrong_password_fails(self, api_client: APIClient, create_user):
        """Login with the wrong password returns 400."""
        create_user(username="wrongpw", password="CorrectPass1!")
        resp = api_client.post(
            reverse("accounts:login"),
            {"identifier": "wrongpw", "password": "WrongPass1!"},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_inactive_user_cannot_login(self, api_client: APIClient, create_user):
        """An inactive user cannot authenticate."""
        create_user(username="inactive", password=PASSWORD, is_active=False)
        resp = api_client.post(
            reverse("accounts:login"),
            {"identifier": "inactive", "password": PASSWORD},
            format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestMe:

    def test_me_reports_roles_and_category(self, api_client: APIClient, auth_header):
        header = auth_header(username="officer_me", roles=["hearing_officer"], district="Lahore")
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

        resp = api_client.get(reverse("accounts:me"))

        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["username"] == "officer_me"
        assert resp.data["district"] == "Lahore"
        assert resp.data["roles"] == ["hearing_officer"]
        assert resp.data["category"] == "hearing_division_only"

    def test_roles_are_read_live(self, api_client: APIClient, create_user):
        user = create_user(roles=["hearing_officer"])
        api_client.force_authenticate(user=user)
        user.roles.add(Role.objects.get_or_create(name="registrar")[0])

        resp = api_client.get(reverse("accounts:me"))

        assert resp.data["roles"] == ["hearing_officer", "registrar"]
        assert resp.data["category"] == "unrestricted_staff"

    def test_me_requires_authentication(self, api_client: APIClient):
        resp = api_client.get(reverse("accounts:me"))
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestHearingOfficerDirectory:

    def test_applicant_is_refused(self, api_client: APIClient, create_user):
        api_client.force_authenticate(user=create_user(roles=["applicant"]))
        resp = api_client.get(reverse("accounts:hearing-officers"))
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.data["code"] == "forbidden"

    def test_district_filter(self, api_client: APIClient, create_user):
        lahore = create_user(username="ho_lahore", roles=["hearing_officer"], district="Lahore")
        create_user(username="ho_multan", roles=["hearing_officer"], district="Multan")
        roaming = create_user(username="ho_roaming", roles=["hearing_officer"])
        create_user(username="ho_retired", roles=["hearing_officer"], district="Lahore", is_active=False)
        api_client.force_authenticate(user=create_user(roles=["registrar"]))

        resp = api_client.get(reverse("accounts:hearing-officers"))
        assert resp.status_code == status.HTTP_200_OK
        assert len(resp.data) == 3

        resp = api_client.get(reverse("accounts:hearing-officers"), {"district": "Lahore"})
        assert {row["id"] for row in resp.data} == {lahore.pk, roaming.pk}


@pytest.mark.django_db
class TestSetupRoles:

    def test_idempotent_seeding(self):
        call_command("setup_roles", stdout=StringIO())
        call_command("setup_roles", stdout=StringIO())

        assert set(Role.objects.values_list("name", flat=True)) == {
            "applicant", "registrar", "hearing_officer", "admin", "super_admin",
        }

    def test_grant_role_to_user(self, create_user):
        user = create_user(username="promote_me", email="promote@example.com")
        out = StringIO()

        call_command("setup_roles", "--grant", "registrar", "--user", "PROMOTE@example.com", stdout=out)

        assert user.role_names == frozenset({"registrar"})
        assert "Granted 'registrar' to promote_me" in out.getvalue()

    def test_grant_unknown_user(self):
        with pytest.raises(CommandError, match="not found"):
            call_command("setup_roles", "--grant", "admin", "--user", "ghost", stdout=StringIO())
