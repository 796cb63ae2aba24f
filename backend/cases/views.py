"""
Cases app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

No database queries, workflow logic, or role checks live here.

ViewSets
--------
- ``CaseViewSet``       — list / create / retrieve / stats plus one
                          ``@action`` per lifecycle transition.
- ``HearingViewSet``    — nested ``/cases/{case_pk}/hearings/``.
- ``CaseRemarkViewSet`` — nested ``/cases/{case_pk}/remarks/``.
- ``CaseDocumentViewSet`` — nested ``/cases/{case_pk}/documents/``:
                          list, upload, authenticated download.
- ``PublicTrackingView`` / ``PublicHearingListView`` — unauthenticated
  lookup by tracking code.
"""

from __future__ import annotations

import logging

from django.http import FileResponse
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.domain.exceptions import NotFound

from .lifecycle import Action
from .serializers import (
    AdjournSerializer,
    CaseCreateSerializer,
    CaseDetailSerializer,
    CaseDocumentSerializer,
    CaseFilterSerializer,
    CaseListSerializer,
    CaseRemarkSerializer,
    CaseStatsSerializer,
    DecisionSerializer,
    DocumentUploadSerializer,
    HearingSerializer,
    PublicCaseSerializer,
    PublicHearingSerializer,
    ResubmitSerializer,
    ReviewSerializer,
    ScheduleHearingSerializer,
    SideEffectReportSerializer,
    TransitionResponseSerializer,
    ViolationSerializer,
)
from .services import (
    CaseDocumentService,
    CaseQueryService,
    CaseSubmissionService,
    CaseTransitionService,
    PublicTrackingService,
    TransitionResult,
)

logger = logging.getLogger(__name__)

_WORKFLOW_ERRORS = {
    400: OpenApiResponse(description="Invalid input (missing date, short remark, missing hearing order)."),
    403: OpenApiResponse(description="Not allowed for this user or case, or the hearing has not occurred yet."),
    404: OpenApiResponse(description="Case not found."),
    409: OpenApiResponse(description="Case is closed or not in a valid status for this action."),
}


def _transition_response(request: Request, result: TransitionResult) -> Response:
    """Serialize a ``TransitionResult`` into the workflow response envelope."""
    context = {"request": request}
    data = {
        "action": result.action,
        "case": CaseDetailSerializer(result.case, context=context).data,
        "hearing": (
            HearingSerializer(result.hearing, context=context).data
            if result.hearing is not None else None
        ),
        "side_effects": [report.as_dict() for report in result.side_effects],
    }
    return Response(data, status=status.HTTP_200_OK)


class CaseViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the cases app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined; cases are never updated or deleted through
    generic CRUD, only through the lifecycle actions.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Visibility, role and
    ownership checks are enforced exclusively inside the service layer.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    # ── Helpers ──────────────────────────────────────────────────────

    def _transition(self, request: Request, pk, action_name: str, serializer_class) -> Response:
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = CaseTransitionService.apply_transition(
            pk,
            action_name,
            request.user,
            serializer.validated_data,
            request=request,
        )
        return _transition_response(request, result)

    # ── Standard endpoints ───────────────────────────────────────────

    @extend_schema(
        summary="List cases",
        description=(
            "List the cases visible to the authenticated user. Applicants see "
            "their own applications; hearing officers see their district; "
            "registrars and admins see everything."
        ),
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by case status."),
            OpenApiParameter(name="status_in", type=str, location=OpenApiParameter.QUERY, description="Comma-separated statuses."),
            OpenApiParameter(name="closed", type=bool, location=OpenApiParameter.QUERY, description="Only closed (true) or open (false) cases."),
            OpenApiParameter(name="district", type=str, location=OpenApiParameter.QUERY, description="Filter by district."),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Tracking code prefix, applicant name or e-mail."),
        ],
        responses={
            200: OpenApiResponse(response=CaseListSerializer(many=True), description="Filtered list of cases."),
        },
        tags=["Cases"],
    )
    def list(self, request: Request) -> Response:
        """
        GET /api/cases/
        """
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = CaseQueryService.list_cases(request.user, filter_serializer.validated_data)
        serializer = CaseListSerializer(qs, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a new application",
        description=(
            "Create a case in status 'submitted'. A tracking code is generated, "
            "registrars are notified and the applicant is e-mailed."
        ),
        request=CaseCreateSerializer,
        responses={
            201: OpenApiResponse(response=CaseDetailSerializer, description="Case created."),
            400: OpenApiResponse(description="Validation error."),
        },
        tags=["Cases"],
    )
    def create(self, request: Request) -> Response:
        """
        POST /api/cases/
        """
        serializer = CaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseSubmissionService.submit_case(
            serializer.validated_data, request.user, request=request,
        )
        out = CaseDetailSerializer(case, context={"request": request}).data
        out["side_effects"] = SideEffectReportSerializer(
            [report.as_dict() for report in case.side_effects], many=True,
        ).data
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve case details",
        responses={
            200: OpenApiResponse(response=CaseDetailSerializer, description="Full case detail."),
            403: OpenApiResponse(description="Case is outside the user's scope."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Cases"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        """
        GET /api/cases/{id}/
        """
        case = CaseQueryService.get_case(pk, request.user)
        serializer = CaseDetailSerializer(case, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="stats")
    @extend_schema(
        summary="Case counts by status",
        description="Per-status counts over the cases visible to the user.",
        responses={200: OpenApiResponse(response=CaseStatsSerializer, description="Counts.")},
        tags=["Cases"],
    )
    def stats(self, request: Request) -> Response:
        """
        GET /api/cases/stats/
        """
        return Response(CaseQueryService.stats(request.user), status=status.HTTP_200_OK)

    # ── Registrar review ──────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="mark-complete")
    @extend_schema(
        summary="Mark application complete",
        description=(
            "Registrar accepts a submitted (or resubmitted) application. "
            "The first registrar to act is assigned to the case."
        ),
        request=ReviewSerializer,
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def mark_complete(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/mark-complete/
        """
        return self._transition(request, pk, Action.MARK_COMPLETE, ReviewSerializer)

    @action(detail=True, methods=["post"], url_path="mark-incomplete")
    @extend_schema(
        summary="Return application as incomplete",
        description=(
            "Registrar returns a submitted application to the applicant. The "
            "applicant is e-mailed a sign-in link to correct and resubmit it."
        ),
        request=ReviewSerializer,
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def mark_incomplete(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/mark-incomplete/
        """
        return self._transition(request, pk, Action.MARK_INCOMPLETE, ReviewSerializer)

    @action(detail=True, methods=["post"], url_path="resubmit")
    @extend_schema(
        summary="Resubmit an incomplete application",
        description="The owning applicant corrects and resubmits an incomplete application.",
        request=ResubmitSerializer,
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def resubmit(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/resubmit/
        """
        return self._transition(request, pk, Action.RESUBMIT, ResubmitSerializer)

    # ── Hearings ──────────────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="schedule-hearing")
    @extend_schema(
        summary="Schedule a hearing",
        description=(
            "With no hearings yet, a registrar schedules the initial hearing and "
            "selects the hearing officer (hearing_officer_id). Afterwards the "
            "assigned hearing officer schedules subsequent hearings."
        ),
        request=ScheduleHearingSerializer,
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def schedule_hearing(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/schedule-hearing/
        """
        return self._transition(request, pk, Action.SCHEDULE_HEARING, ScheduleHearingSerializer)

    @action(detail=True, methods=["post"], url_path="adjourn")
    @extend_schema(
        summary="Adjourn the hearing",
        description=(
            "After the hearing time, the hearing officer uploads the hearing "
            "order and sets the next hearing date."
        ),
        request={"multipart/form-data": AdjournSerializer},
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def adjourn(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/adjourn/
        """
        return self._transition(request, pk, Action.ADJOURN, AdjournSerializer)

    # ── Decisions ─────────────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="approve")
    @extend_schema(
        summary="Approve and close the case",
        description=(
            "Hearing officer closes the case as resolved. Requires the signed "
            "hearing order and remarks of at least 10 characters."
        ),
        request={"multipart/form-data": DecisionSerializer},
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def approve(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/approve/
        """
        return self._transition(request, pk, Action.APPROVE, DecisionSerializer)

    @action(detail=True, methods=["post"], url_path="reject")
    @extend_schema(
        summary="Reject and close the case",
        description=(
            "Hearing officer closes the case as rejected. Requires the signed "
            "hearing order and remarks of at least 10 characters."
        ),
        request={"multipart/form-data": DecisionSerializer},
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def reject(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/reject/
        """
        return self._transition(request, pk, Action.REJECT, DecisionSerializer)

    @action(detail=True, methods=["post"], url_path="violation")
    @extend_schema(
        summary="Record the violation classification",
        description="Hearing-division staff set violation_type and/or sub_violation.",
        request=ViolationSerializer,
        responses={200: OpenApiResponse(response=TransitionResponseSerializer), **_WORKFLOW_ERRORS},
        tags=["Cases – Workflow"],
    )
    def violation(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/cases/{id}/violation/
        """
        return self._transition(request, pk, Action.SET_VIOLATION, ViolationSerializer)


class HearingViewSet(viewsets.ViewSet):
    """
    Read-only hearing history of a case, in sequence order.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List hearings",
        responses={200: OpenApiResponse(response=HearingSerializer(many=True), description="Hearings in sequence order.")},
        tags=["Cases – Hearings"],
    )
    def list(self, request: Request, case_pk: int = None) -> Response:
        hearings = CaseQueryService.list_hearings(case_pk, request.user)
        serializer = HearingSerializer(hearings, many=True, context={"request": request})
        return Response(serializer.data)

    @extend_schema(
        summary="Retrieve a hearing",
        responses={200: OpenApiResponse(response=HearingSerializer, description="Hearing detail.")},
        tags=["Cases – Hearings"],
    )
    def retrieve(self, request: Request, case_pk: int = None, pk: int = None) -> Response:
        hearing = CaseQueryService.list_hearings(case_pk, request.user).filter(pk=pk).first()
        if hearing is None:
            raise NotFound("Hearing not found.")
        return Response(HearingSerializer(hearing, context={"request": request}).data)


class CaseRemarkViewSet(viewsets.ViewSet):
    """
    Append-only remark trail of a case.  Remarks are written by the
    lifecycle actions; there is no create, update or delete endpoint.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List remarks",
        responses={200: OpenApiResponse(response=CaseRemarkSerializer(many=True), description="Remarks, oldest first.")},
        tags=["Cases – Remarks"],
    )
    def list(self, request: Request, case_pk: int = None) -> Response:
        remarks = CaseQueryService.list_remarks(case_pk, request.user)
        return Response(CaseRemarkSerializer(remarks, many=True).data)


class CaseDocumentViewSet(viewsets.ViewSet):
    """
    Documents stored against a case: hearing orders written by the
    decision actions plus supporting documents uploaded here.

    Every endpoint goes through the case visibility check; files are
    streamed by ``download`` and never exposed as public media URLs.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        summary="List documents",
        responses={
            200: OpenApiResponse(response=CaseDocumentSerializer(many=True), description="Documents, newest first."),
            403: OpenApiResponse(description="Case is outside the user's scope."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Cases – Documents"],
    )
    def list(self, request: Request, case_pk: int = None) -> Response:
        """
        GET /api/cases/{case_pk}/documents/
        """
        documents = CaseQueryService.list_documents(case_pk, request.user)
        serializer = CaseDocumentSerializer(documents, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Upload a supporting document",
        request={"multipart/form-data": DocumentUploadSerializer},
        responses={
            201: OpenApiResponse(response=CaseDocumentSerializer, description="Document stored."),
            400: OpenApiResponse(description="File is missing."),
            403: OpenApiResponse(description="Case is outside the user's scope."),
            409: OpenApiResponse(description="Case is closed."),
        },
        tags=["Cases – Documents"],
    )
    def create(self, request: Request, case_pk: int = None) -> Response:
        """
        POST /api/cases/{case_pk}/documents/
        """
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = CaseDocumentService.upload(
            case_pk, request.user, serializer.validated_data["file"], request=request,
        )
        out = CaseDocumentSerializer(document, context={"request": request}).data
        return Response(out, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="download")
    @extend_schema(
        summary="Download a document",
        responses={
            (200, "application/octet-stream"): OpenApiResponse(description="File contents."),
            403: OpenApiResponse(description="Case is outside the user's scope."),
            404: OpenApiResponse(description="Case, document or stored file not found."),
        },
        tags=["Cases – Documents"],
    )
    def download(self, request: Request, case_pk: int = None, pk: int = None) -> FileResponse:
        """
        GET /api/cases/{case_pk}/documents/{id}/download/
        """
        document = CaseQueryService.get_document(case_pk, pk, request.user)
        logger.info("Document %s downloaded by user=%s", document.pk, request.user.pk)
        return FileResponse(
            document.file.open("rb"),
            as_attachment=True,
            filename=document.file_name or document.file.name.rsplit("/", 1)[-1],
            content_type=document.content_type or "application/octet-stream",
        )


class PublicTrackingView(APIView):
    """
    GET /api/public/track/{tracking_code}/

    Unauthenticated status lookup.  Only a minimal projection is exposed.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Track an application",
        responses={
            200: OpenApiResponse(response=PublicCaseSerializer, description="Public case status."),
            404: OpenApiResponse(description="Unknown tracking code."),
        },
        tags=["Public"],
    )
    def get(self, request: Request, tracking_code: str) -> Response:
        data = PublicTrackingService.lookup(tracking_code)
        if data is None:
            raise NotFound("Case not found.")
        return Response(PublicCaseSerializer(data).data)


class PublicHearingListView(APIView):
    """
    GET /api/public/track/{tracking_code}/hearings/

    Hearing dates for a tracking code; an unknown code yields ``[]``.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Hearing dates for an application",
        responses={200: OpenApiResponse(response=PublicHearingSerializer(many=True))},
        tags=["Public"],
    )
    def get(self, request: Request, tracking_code: str) -> Response:
        hearings = PublicTrackingService.hearings(tracking_code)
        return Response(PublicHearingSerializer(hearings, many=True).data)
