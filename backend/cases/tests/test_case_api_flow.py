"""
Integration tests — the full case lifecycle through real HTTP endpoints.

Flow covered
------------
  submit (applicant) → mark-complete (registrar) → schedule-hearing
  (registrar) → adjourn (officer, multipart) → reject (officer,
  multipart) → nested hearings / remarks / documents → public tracking.

Scoping, error envelopes, stats and document uploads have their own test
cases below.
"""

from __future__ import annotations

import shutil
import tempfile
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Role
from cases.models import Case, CaseStatus, Hearing
from core.models import AuditLog

User = get_user_model()

MEDIA_ROOT = tempfile.mkdtemp(prefix="epd-test-media-")
PASSWORD = "Case!Flow2024"
DECISION_REMARK = "Parties heard; directions issued in the order."


def _pdf(name="order.pdf"):
    return SimpleUploadedFile(name, b"%PDF-1.4\n% test order\n", content_type="application/pdf")


class CaseApiTestBase(TestCase):

    @classmethod
    def setUpTestData(cls):
        roles = {
            name: Role.objects.get_or_create(name=name)[0]
            for name in ("applicant", "registrar", "hearing_officer", "admin")
        }

        def make(username, role, **fields):
            user = User.objects.create_user(
                username=username,
                password=PASSWORD,
                email=fields.pop("email", f"{username}@epd.local"),
                **fields,
            )
            user.roles.add(roles[role])
            return user

        cls.applicant = make(
            "flow_applicant", "applicant",
            email="owner@greenworks.pk", national_id="35202-7654321-1",
        )
        cls.registrar = make("flow_registrar", "registrar")
        cls.officer = make("flow_officer", "hearing_officer", district="Lahore")
        cls.far_officer = make("flow_far_officer", "hearing_officer", district="Multan")
        cls.admin = make("flow_admin", "admin")

    def setUp(self):
        self.client = APIClient()

    # ── helpers ──────────────────────────────────────────────────────

    def _login(self, username: str) -> str:
        response = self.client.post(
            reverse("accounts:login"),
            {"identifier": username, "password": PASSWORD},
            format="json",
        )
        self.assertEqual(
            response.status_code,
            status.HTTP_200_OK,
            msg=f"Login failed for '{username}': {response.data}",
        )
        return response.data["access"]

    def _login_as(self, user) -> None:
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self._login(user.username)}")

    def _make_case(self, status_value=CaseStatus.SUBMITTED, district="Lahore", **fields):
        return Case.objects.create(
            applicant_name="Green Works Ltd.",
            applicant_email=fields.pop("applicant_email", "owner@greenworks.pk"),
            case_type="air_pollution",
            description={"district": district},
            status=status_value,
            **fields,
        )

    def _move_hearings_to_past(self, case):
        Hearing.objects.filter(case=case).update(
            scheduled_for=timezone.now() - timedelta(hours=1),
        )


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class TestCaseLifecycleFlow(CaseApiTestBase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def test_submission_to_rejection(self):
        # ── 1. Applicant submits ─────────────────────────────────────
        self._login_as(self.applicant)
        response = self.client.post(
            reverse("case-list"),
            {
                "applicant_name": "Green Works Ltd.",
                "applicant_email": "owner@greenworks.pk",
                "applicant_national_id": "35202-7654321-1",
                "case_type": "air_pollution",
                "description": {"district": "Lahore", "site": "Kot Lakhpat"},
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, msg=response.data)
        case_id = response.data["id"]
        tracking_code = response.data["tracking_code"]
        self.assertEqual(response.data["status"], "submitted")
        self.assertEqual(response.data["applicant_user"], self.applicant.pk)
        self.assertTrue(all(item["ok"] for item in response.data["side_effects"]))

        # ── 2. Registrar marks it complete ───────────────────────────
        self._login_as(self.registrar)
        response = self.client.post(
            reverse("case-mark-complete", kwargs={"pk": case_id}), {}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["case"]["status"], "complete")
        self.assertEqual(response.data["case"]["assigned_registrar"], self.registrar.pk)

        # ── 3. Registrar schedules the first hearing ─────────────────
        response = self.client.post(
            reverse("case-schedule-hearing", kwargs={"pk": case_id}),
            {
                "hearing_at": (timezone.now() + timedelta(days=2)).isoformat(),
                "hearing_officer_id": self.officer.pk,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["action"], "schedule_first_hearing")
        self.assertEqual(response.data["case"]["status"], "hearing_scheduled")
        self.assertEqual(response.data["case"]["assigned_hearing_officer"], self.officer.pk)
        self.assertEqual(response.data["hearing"]["sequence_no"], 1)

        # ── 4. Officer cannot decide before the hearing ──────────────
        self._login_as(self.officer)
        response = self.client.post(
            reverse("case-reject", kwargs={"pk": case_id}),
            {"remarks": DECISION_REMARK, "hearing_order": _pdf()},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["detail"], "Hearing has not occurred yet.")
        self.assertEqual(response.data["code"], "forbidden")

        # ── 5. Officer adjourns with a hearing order ─────────────────
        case = Case.objects.get(pk=case_id)
        self._move_hearings_to_past(case)
        response = self.client.post(
            reverse("case-adjourn", kwargs={"pk": case_id}),
            {
                "hearing_at": (timezone.now() + timedelta(days=14)).isoformat(),
                "remarks": DECISION_REMARK,
                "hearing_order": _pdf("adjournment.pdf"),
            },
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["case"]["status"], "under_hearing")
        self.assertEqual(response.data["hearing"]["hearing_type"], "extension")
        self.assertEqual(response.data["hearing"]["sequence_no"], 2)
        self.assertIsNotNone(response.data["hearing"]["hearing_order_url"])

        # ── 6. Officer rejects ───────────────────────────────────────
        self._move_hearings_to_past(case)
        response = self.client.post(
            reverse("case-reject", kwargs={"pk": case_id}),
            {"remarks": DECISION_REMARK, "hearing_order": _pdf("final.pdf")},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["case"]["status"], "rejected_closed")
        self.assertTrue(response.data["case"]["is_closed"])
        self.assertIsNotNone(response.data["case"]["closed_at"])
        self.assertIsNone(response.data["case"]["active_hearing"])

        # ── 7. Hearings and remarks ──────────────────────────────────
        response = self.client.get(reverse("case-hearing-list", kwargs={"case_pk": case_id}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([h["sequence_no"] for h in response.data], [1, 2])
        self.assertFalse(any(h["is_active"] for h in response.data))

        hearing_id = response.data[1]["id"]
        response = self.client.get(
            reverse("case-hearing-detail", kwargs={"case_pk": case_id, "pk": hearing_id}),
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data["hearing_order"])
        order_url = response.data["hearing_order_url"]
        self.assertTrue(order_url.endswith(f"/documents/{response.data['hearing_order']}/download/"))
        response = self.client.get(order_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response["Content-Disposition"].startswith("attachment;"))
        response.close()

        response = self.client.get(reverse("case-document-list", kwargs={"case_pk": case_id}))
        self.assertEqual(
            sorted(doc["file_name"] for doc in response.data), ["adjournment.pdf", "final.pdf"],
        )
        self.assertEqual({doc["document_type"] for doc in response.data}, {"hearing_order"})

        response = self.client.get(reverse("case-remark-list", kwargs={"case_pk": case_id}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [r["remark_type"] for r in response.data],
            ["hearing_scheduled", "adjourned", "rejected"],
        )

        # ── 8. Closed cases refuse every action ──────────────────────
        response = self.client.post(
            reverse("case-violation", kwargs={"pk": case_id}),
            {"violation_type": "Emissions"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["detail"], "Case is already closed.")

        # ── 9. Public tracking ───────────────────────────────────────
        self.client.credentials()
        response = self.client.get(reverse("public-track", kwargs={"tracking_code": tracking_code.lower()}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "rejected_closed")
        self.assertNotIn("applicant_email", response.data)

        response = self.client.get(reverse("public-track-hearings", kwargs={"tracking_code": tracking_code}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_decision_requires_hearing_order(self):
        case = self._make_case(CaseStatus.UNDER_HEARING, assigned_hearing_officer=self.officer)
        Hearing.objects.create(case=case, scheduled_for=timezone.now() - timedelta(days=1), sequence_no=1)

        self._login_as(self.officer)
        response = self.client.post(
            reverse("case-approve", kwargs={"pk": case.pk}),
            {"remarks": DECISION_REMARK},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Hearing order PDF is required.")
        self.assertEqual(response.data["code"], "invalid_input")

        response = self.client.post(
            reverse("case-approve", kwargs={"pk": case.pk}),
            {"remarks": "short", "hearing_order": _pdf()},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Remarks must be at least 10 characters.")

        case.refresh_from_db()
        self.assertEqual(case.status, CaseStatus.UNDER_HEARING)


class TestCaseScopingAndErrors(CaseApiTestBase):

    def test_unauthenticated_requests_are_rejected(self):
        response = self.client.get(reverse("case-list"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_is_scoped_per_role(self):
        own = self._make_case(CaseStatus.SUBMITTED)
        lahore_open = self._make_case(CaseStatus.HEARING_SCHEDULED)
        multan_open = self._make_case(CaseStatus.UNDER_HEARING, district="Multan")
        self._make_case(CaseStatus.SUBMITTED, applicant_email="someone@else.pk")

        expectations = [
            (self.admin, 4),
            (self.registrar, 4),
            (self.applicant, 3),
            (self.officer, 1),
            (self.far_officer, 1),
        ]
        for user, count in expectations:
            with self.subTest(user=user.username):
                self._login_as(user)
                response = self.client.get(reverse("case-list"))
                self.assertEqual(response.status_code, status.HTTP_200_OK)
                self.assertEqual(len(response.data), count)

        self._login_as(self.officer)
        response = self.client.get(reverse("case-list"))
        self.assertEqual(response.data[0]["id"], lahore_open.pk)

        self._login_as(self.far_officer)
        response = self.client.get(reverse("case-detail", kwargs={"pk": lahore_open.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get(reverse("case-detail", kwargs={"pk": multan_open.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self._login_as(self.applicant)
        response = self.client.get(reverse("case-list"), {"status": "submitted"})
        self.assertEqual([row["id"] for row in response.data], [own.pk])

    def test_list_filters_are_validated(self):
        self._login_as(self.registrar)
        response = self.client.get(reverse("case-list"), {"status_in": "submitted,archived"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self._make_case(CaseStatus.SUBMITTED)
        self._make_case(CaseStatus.COMPLETE)
        response = self.client.get(reverse("case-list"), {"status_in": "submitted,complete", "closed": "false"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_stats_are_scoped(self):
        self._make_case(CaseStatus.SUBMITTED)
        self._make_case(CaseStatus.COMPLETE)
        self._make_case(CaseStatus.UNDER_HEARING, district="Multan")

        self._login_as(self.registrar)
        response = self.client.get(reverse("case-stats"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 3)
        self.assertEqual(response.data["submitted"], 1)
        self.assertEqual(response.data["rejected_closed"], 0)

        self._login_as(self.officer)
        response = self.client.get(reverse("case-stats"))
        self.assertEqual(response.data["total"], 1)
        self.assertEqual(response.data["complete"], 1)

    def test_unknown_case_is_404(self):
        self._login_as(self.registrar)
        response = self.client.get(reverse("case-detail", kwargs={"pk": 987654}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")

    def test_wrong_status_is_409(self):
        case = self._make_case(CaseStatus.SUBMITTED)
        self._login_as(self.registrar)
        response = self.client.post(
            reverse("case-schedule-hearing", kwargs={"pk": case.pk}),
            {
                "hearing_at": (timezone.now() + timedelta(days=2)).isoformat(),
                "hearing_officer_id": self.officer.pk,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(
            response.data["detail"],
            "Case must be marked complete before scheduling the first hearing.",
        )
        self.assertEqual(response.data["code"], "precondition_failed")

    def test_applicant_cannot_review_own_case(self):
        case = self._make_case(CaseStatus.SUBMITTED)
        self._login_as(self.applicant)
        response = self.client.post(reverse("case-mark-complete", kwargs={"pk": case.pk}), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["detail"], "Only registrars or administrators can review cases.")

    def test_resubmit_by_owner(self):
        case = self._make_case(CaseStatus.INCOMPLETE)
        self._login_as(self.applicant)
        response = self.client.post(
            reverse("case-resubmit", kwargs={"pk": case.pk}),
            {"description": {"site_plan": "attached"}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["case"]["status"], "submitted")
        self.assertEqual(
            response.data["case"]["description"],
            {"district": "Lahore", "site_plan": "attached"},
        )

    def test_mark_incomplete_and_violation(self):
        case = self._make_case(CaseStatus.COMPLETE)
        self._login_as(self.officer)
        response = self.client.post(
            reverse("case-violation", kwargs={"pk": case.pk}),
            {"sub_violation": "Effluent discharge"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["case"]["status"], "complete")
        self.assertEqual(response.data["case"]["description"]["sub_violation"], "Effluent discharge")

        self._login_as(self.registrar)
        response = self.client.post(
            reverse("case-mark-incomplete", kwargs={"pk": case.pk}),
            {"remarks": "EIA report missing."},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["case"]["status"], "incomplete")

    def test_public_tracking_unknown_code(self):
        response = self.client.get(reverse("public-track", kwargs={"tracking_code": "EPD-00000000"}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(reverse("public-track-hearings", kwargs={"tracking_code": "EPD-00000000"}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class TestCaseDocuments(CaseApiTestBase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def _upload(self, case, name="site-plan.pdf"):
        return self.client.post(
            reverse("case-document-list", kwargs={"case_pk": case.pk}),
            {"file": _pdf(name)},
            format="multipart",
        )

    def _download(self, case, document_id):
        return self.client.get(
            reverse("case-document-download", kwargs={"case_pk": case.pk, "pk": document_id}),
        )

    def test_owner_uploads_and_downloads_supporting_document(self):
        case = self._make_case(CaseStatus.SUBMITTED)
        self._login_as(self.applicant)

        response = self._upload(case)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, msg=response.data)
        self.assertEqual(response.data["document_type"], "supporting")
        self.assertEqual(response.data["file_name"], "site-plan.pdf")
        self.assertNotIn("file", response.data)
        self.assertNotIn("/media/", response.data["download_url"])
        document_id = response.data["id"]
        audit = AuditLog.objects.get(action="case.document_uploaded")
        self.assertEqual(audit.entity_id, str(document_id))
        self.assertEqual(audit.details["case_id"], case.pk)

        response = self.client.get(reverse("case-document-list", kwargs={"case_pk": case.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([doc["id"] for doc in response.data], [document_id])

        response = self._download(case, document_id)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('filename="site-plan.pdf"', response["Content-Disposition"])
        self.assertEqual(b"".join(response.streaming_content), b"%PDF-1.4\n% test order\n")
        response.close()

        self._login_as(self.registrar)
        self.assertEqual(self._download(case, document_id).status_code, status.HTTP_200_OK)

    def test_documents_follow_case_visibility(self):
        case = self._make_case(CaseStatus.HEARING_SCHEDULED, applicant_email="someone@else.pk")
        self._login_as(self.registrar)
        document_id = self._upload(case).data["id"]

        for user in (self.applicant, self.far_officer):
            with self.subTest(user=user.username):
                self._login_as(user)
                response = self.client.get(reverse("case-document-list", kwargs={"case_pk": case.pk}))
                self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
                self.assertEqual(self._download(case, document_id).status_code, status.HTTP_403_FORBIDDEN)
                self.assertEqual(self._upload(case).status_code, status.HTTP_403_FORBIDDEN)

        self._login_as(self.officer)
        self.assertEqual(self._download(case, document_id).status_code, status.HTTP_200_OK)

        self.client.credentials()
        self.assertEqual(self._download(case, document_id).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_document_of_another_case_is_404(self):
        case = self._make_case(CaseStatus.SUBMITTED)
        other = self._make_case(CaseStatus.SUBMITTED)
        self._login_as(self.registrar)
        document_id = self._upload(other).data["id"]

        response = self._download(case, document_id)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Document not found.")

    def test_closed_case_refuses_uploads(self):
        case = self._make_case(CaseStatus.APPROVED_RESOLVED, closed_at=timezone.now())
        self._login_as(self.admin)

        response = self._upload(case)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["detail"], "Case is already closed.")
        self.assertFalse(case.documents.exists())

    def test_upload_requires_a_file(self):
        case = self._make_case(CaseStatus.SUBMITTED)
        self._login_as(self.applicant)
        response = self.client.post(
            reverse("case-document-list", kwargs={"case_pk": case.pk}), {}, format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("file", response.data)
