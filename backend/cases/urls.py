"""
Cases app URL configuration.

Route Hierarchy
---------------
  /api/cases/                               → list / create
  /api/cases/stats/                         → per-status counts
  /api/cases/{id}/                          → retrieve

  ── Workflow @actions (resource-level RPC) ──────────────────────
  POST /api/cases/{id}/mark-complete/
  POST /api/cases/{id}/mark-incomplete/
  POST /api/cases/{id}/resubmit/
  POST /api/cases/{id}/schedule-hearing/
  POST /api/cases/{id}/adjourn/             (multipart)
  POST /api/cases/{id}/approve/             (multipart)
  POST /api/cases/{id}/reject/              (multipart)
  POST /api/cases/{id}/violation/

  ── Nested sub-resources ────────────────────────────────────────
  GET /api/cases/{case_pk}/hearings/
  GET /api/cases/{case_pk}/hearings/{id}/
  GET /api/cases/{case_pk}/remarks/
  GET  /api/cases/{case_pk}/documents/
  POST /api/cases/{case_pk}/documents/           (multipart)
  GET  /api/cases/{case_pk}/documents/{id}/download/

  ── Public ──────────────────────────────────────────────────────
  GET /api/public/track/{tracking_code}/
  GET /api/public/track/{tracking_code}/hearings/
"""

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers as nested_routers

from .views import (
    CaseDocumentViewSet,
    CaseRemarkViewSet,
    CaseViewSet,
    HearingViewSet,
    PublicHearingListView,
    PublicTrackingView,
)

router = DefaultRouter()
router.register(
    prefix=r"cases",
    viewset=CaseViewSet,
    basename="case",
)

# ── Nested router: hearings / remarks / documents ────────────────────
# Parent lookup kwarg → case_pk
case_router = nested_routers.NestedDefaultRouter(
    parent_router=router,
    parent_prefix=r"cases",
    lookup="case",
)
case_router.register(
    prefix=r"hearings",
    viewset=HearingViewSet,
    basename="case-hearing",
)
case_router.register(
    prefix=r"remarks",
    viewset=CaseRemarkViewSet,
    basename="case-remark",
)
case_router.register(
    prefix=r"documents",
    viewset=CaseDocumentViewSet,
    basename="case-document",
)

urlpatterns = [
    path(
        "public/track/<str:tracking_code>/",
        PublicTrackingView.as_view(),
        name="public-track",
    ),
    path(
        "public/track/<str:tracking_code>/hearings/",
        PublicHearingListView.as_view(),
        name="public-track-hearings",
    ),
    *router.urls,
    *case_router.urls,
]
