"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``LoginView``              — POST /auth/login/
- ``MeView``                 — GET /me/
- ``HearingOfficerListView`` — GET /users/hearing-officers/
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.domain.access import actor_for

from .serializers import (
    CustomTokenObtainPairSerializer,
    HearingOfficerSerializer,
    UserDetailSerializer,
)
from .services import CurrentUserService, HearingOfficerService


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates a user via any of the three unique
    identifiers (username, national_id, email) plus password.

    Response body: ``{"access": ..., "refresh": ..., "user": {...}}``.
    Invalid credentials produce HTTP 400 from the serializer.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Log in",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(description="Token pair plus the user profile."),
            400: OpenApiResponse(description="Invalid credentials."),
        },
        tags=["Accounts"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = dict(serializer.validated_data)
        payload["user"] = UserDetailSerializer(serializer.user).data
        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET /api/accounts/me/

    Returns the authenticated user's profile, including the live role
    set and its policy classification.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user",
        responses={200: UserDetailSerializer},
        tags=["Accounts"],
    )
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Hearing Officer Directory
# ═══════════════════════════════════════════════════════════════════


class HearingOfficerListView(APIView):
    """
    GET /api/accounts/users/hearing-officers/?district=<name>

    Staff only.  Lists active hearing officers for the first-hearing
    picker.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List hearing officers",
        parameters=[
            OpenApiParameter(
                name="district",
                type=str,
                required=False,
                description="Only officers in this district (or with none set).",
            ),
        ],
        responses={
            200: HearingOfficerSerializer(many=True),
            403: OpenApiResponse(description="Applicants may not list officers."),
        },
        tags=["Accounts"],
    )
    def get(self, request: Request) -> Response:
        officers = HearingOfficerService.list_officers(
            actor_for(request.user),
            district=request.query_params.get("district"),
        )
        return Response(
            HearingOfficerSerializer(officers, many=True).data,
            status=status.HTTP_200_OK,
        )
