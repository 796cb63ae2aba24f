"""
Unit tests for ``core.domain.access``: role classification and case
visibility.  Pure; no database access.
"""

from __future__ import annotations

from types import SimpleNamespace

from django.test import SimpleTestCase

from core.domain.access import (
    Actor,
    ActorCategory,
    applicant_owns_case,
    can_view_case,
    classify_roles,
    ensure_case_visible,
)
from core.domain.exceptions import PermissionDenied


def _case(**overrides):
    fields = {
        "applicant_user_id": None,
        "applicant_email": "owner@example.com",
        "applicant_national_id": "",
        "description": {"district": "Lahore"},
        "status": "submitted",
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestClassifyRoles(SimpleTestCase):

    def test_staff_roles_dominate(self):
        for roles in (
            {"registrar"},
            {"admin"},
            {"super_admin"},
            {"hearing_officer", "registrar"},
            {"applicant", "admin"},
        ):
            with self.subTest(roles=roles):
                self.assertIs(classify_roles(roles), ActorCategory.UNRESTRICTED_STAFF)

    def test_hearing_officer_without_staff_role_is_hearing_division(self):
        self.assertIs(
            classify_roles({"hearing_officer", "applicant"}),
            ActorCategory.HEARING_DIVISION_ONLY,
        )

    def test_everything_else_is_applicant_only(self):
        for roles in (set(), {"applicant"}, {"auditor"}):
            with self.subTest(roles=roles):
                self.assertIs(classify_roles(roles), ActorCategory.APPLICANT_ONLY)

    def test_admin_grade_flags(self):
        self.assertTrue(Actor(id=1, roles={"super_admin"}).is_admin)
        self.assertFalse(Actor(id=1, roles={"registrar"}).is_admin)


class TestApplicantOwnership(SimpleTestCase):

    def test_linked_account_owns(self):
        actor = Actor(id=7, roles={"applicant"})
        self.assertTrue(applicant_owns_case(actor, _case(applicant_user_id=7, applicant_email="")))

    def test_email_match_is_case_insensitive(self):
        actor = Actor(id=7, email="owner@example.com")
        self.assertTrue(applicant_owns_case(actor, _case(applicant_email="Owner@Example.COM ")))

    def test_national_id_on_case_or_description(self):
        actor = Actor(id=7, email="someone@else.com", national_id="35202-1")
        self.assertTrue(applicant_owns_case(actor, _case(applicant_national_id="35202-1")))
        self.assertTrue(
            applicant_owns_case(actor, _case(description={"national_id": "35202-1"}))
        )
        self.assertTrue(applicant_owns_case(actor, _case(description={"cnic": "35202-1"})))

    def test_stranger_does_not_own(self):
        actor = Actor(id=8, email="stranger@example.com", national_id="999")
        self.assertFalse(applicant_owns_case(actor, _case()))


class TestCaseVisibility(SimpleTestCase):

    def test_staff_see_everything(self):
        actor = Actor(id=1, roles={"registrar"})
        self.assertTrue(can_view_case(actor, _case(description={"district": "Multan"})))

    def test_hearing_officer_sees_own_district_only(self):
        actor = Actor(id=2, roles={"hearing_officer"}, district="Lahore")
        self.assertTrue(can_view_case(actor, _case()))
        self.assertFalse(can_view_case(actor, _case(description={"district": "Multan"})))

    def test_hearing_officer_without_district_sees_only_assigned_cases(self):
        actor = Actor(id=2, roles={"hearing_officer"}, district="")
        self.assertFalse(can_view_case(actor, _case(description={})))
        self.assertFalse(can_view_case(actor, _case(assigned_hearing_officer_id=5)))
        self.assertTrue(can_view_case(actor, _case(assigned_hearing_officer_id=2)))

    def test_assigned_officer_sees_case_without_district(self):
        actor = Actor(id=2, roles={"hearing_officer"}, district="Lahore")
        self.assertTrue(
            can_view_case(actor, _case(description={}, assigned_hearing_officer_id=2))
        )
        self.assertFalse(can_view_case(actor, _case(description={})))

    def test_assignment_does_not_lift_a_district_mismatch(self):
        actor = Actor(id=2, roles={"hearing_officer"}, district="Lahore")
        self.assertFalse(
            can_view_case(
                actor,
                _case(description={"district": "Multan"}, assigned_hearing_officer_id=2),
            )
        )

    def test_ensure_case_visible_raises_forbidden(self):
        actor = Actor(id=3, email="stranger@example.com")
        with self.assertRaisesMessage(PermissionDenied, "Forbidden"):
            ensure_case_visible(actor, _case())
