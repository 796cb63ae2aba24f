"""
Core app endpoint tests: system constants, notification inbox and the
audit log.

Covers:
  1. Constants are public and list every case status
  2. Notification dedupe per recipient and role fan-out
  3. Inbox list / unread filter / mark one / mark all
  4. Another user's notification is 404
  5. Audit log is admin-only and filterable
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cases.models import CaseStatus
from core.domain.audit import AuditLogger
from core.domain.notifications import NotificationService
from core.models import Notification


@pytest.mark.django_db
class TestSystemConstants:

    def test_constants_are_public(self, api_client: APIClient):
        resp = api_client.get(reverse("core:system-constants"))
        assert resp.status_code == status.HTTP_200_OK

        statuses = [item["value"] for item in resp.data["case_statuses"]]
        assert statuses == list(CaseStatus.values)
        assert {"value": "hearing_officer", "label": "Hearing Officer"} in resp.data["roles"]
        assert [item["value"] for item in resp.data["hearing_types"]] == [
            "initial", "subsequent", "extension",
        ]


@pytest.mark.django_db
class TestNotificationService:

    def test_dedupe_key_is_unique_per_recipient(self, create_user):
        officer = create_user(roles=["hearing_officer"])
        first = NotificationService.notify(
            user_id=officer.pk, title="Hearing Scheduled", dedupe_key="hearing_scheduled:7",
        )
        again = NotificationService.notify(
            user_id=officer.pk, title="Hearing Scheduled (retry)", dedupe_key="hearing_scheduled:7",
        )

        assert again.pk == first.pk
        assert Notification.objects.filter(recipient=officer).count() == 1
        assert Notification.objects.get(pk=first.pk).title == "Hearing Scheduled"

    def test_no_recipient_or_title_is_a_noop(self, create_user):
        user = create_user()
        assert NotificationService.notify(user_id=None, title="Ignored") is None
        assert NotificationService.notify(user_id=user.pk, title="") is None
        assert not Notification.objects.exists()

    def test_role_fan_out_skips_inactive_users(self, create_user):
        active = create_user(roles=["registrar"])
        create_user(roles=["registrar"], is_active=False)
        create_user(roles=["applicant"])

        created = NotificationService.notify_role(
            "registrar", title="New Application Submitted", dedupe_key="application_submitted:1",
        )

        assert [n.recipient_id for n in created] == [active.pk]
        assert created[0].dedupe_key == f"application_submitted:1:{active.pk}"

    def test_role_without_members(self):
        assert NotificationService.notify_role("super_admin", title="Nobody home") == []


@pytest.mark.django_db
class TestNotificationInbox:

    def _seed(self, user, count=3):
        for index in range(count):
            NotificationService.notify(user_id=user.pk, title=f"Notice {index}")

    def test_list_and_unread_filter(self, api_client: APIClient, create_user):
        user = create_user(username="inbox_owner", roles=["registrar"])
        other = create_user(roles=["registrar"])
        self._seed(user)
        self._seed(other, count=1)
        api_client.force_authenticate(user=user)

        resp = api_client.get(reverse("core:notification-list"))
        assert resp.status_code == status.HTTP_200_OK
        assert len(resp.data) == 3

        first_id = resp.data[-1]["id"]
        resp = api_client.post(reverse("core:notification-mark-as-read", kwargs={"pk": first_id}))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["is_read"] is True
        assert resp.data["read_at"] is not None

        resp = api_client.get(reverse("core:notification-list"), {"unread": "true"})
        assert len(resp.data) == 2

        resp = api_client.post(reverse("core:notification-mark-all-as-read"))
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data == {"updated": 2}
        assert not Notification.objects.filter(recipient=user, is_read=False).exists()
        assert Notification.objects.filter(recipient=other, is_read=False).count() == 1

    def test_cannot_read_someone_elses_notification(self, api_client: APIClient, create_user):
        owner = create_user()
        intruder = create_user()
        notice = NotificationService.notify(user_id=owner.pk, title="Private")
        api_client.force_authenticate(user=intruder)

        resp = api_client.post(reverse("core:notification-mark-as-read", kwargs={"pk": notice.pk}))
        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.data["code"] == "not_found"

    def test_inbox_requires_authentication(self, api_client: APIClient):
        resp = api_client.get(reverse("core:notification-list"))
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestAuditLog:

    def test_admin_only(self, api_client: APIClient, auth_header):
        url = reverse("core:audit-logs")

        api_client.credentials(HTTP_AUTHORIZATION=auth_header(roles=["registrar"])["Authorization"])
        resp = api_client.get(url)
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.data["detail"] == "Only administrators can perform this action."

        api_client.credentials(HTTP_AUTHORIZATION=auth_header(roles=["super_admin"])["Authorization"])
        resp = api_client.get(url)
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data == []

    def test_filters_and_client_ip(self, api_client: APIClient, create_user, make_case, rf):
        admin = create_user(roles=["admin"])
        case = make_case()
        request = rf.get("/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1")
        AuditLogger.log(
            action="case.mark_complete", entity_type="case", entity_id=case.pk,
            actor=admin, request=request,
        )
        AuditLogger.log(action="case.submitted", entity_type="case", entity_id=case.pk)

        api_client.force_authenticate(user=admin)
        resp = api_client.get(reverse("core:audit-logs"), {"action": "case.mark_complete"})

        assert resp.status_code == status.HTTP_200_OK
        assert len(resp.data) == 1
        entry = resp.data[0]
        assert entry["entity_id"] == str(case.pk)
        assert entry["actor_email"] == admin.email
        assert entry["ip_address"] == "203.0.113.9"

        resp = api_client.get(reverse("core:audit-logs"), {"entity_id": case.pk})
        assert len(resp.data) == 2
