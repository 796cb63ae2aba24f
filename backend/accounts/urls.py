"""
Accounts app URL configuration.

All routes are namespaced under ``accounts`` and designed to be included
in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/login/                 → LoginView
    POST   /auth/token/refresh/         → TokenRefreshView (SimpleJWT)

Current User Profile ("Me")
    GET    /me/                         → MeView

Directory (staff)
    GET    /users/hearing-officers/     → HearingOfficerListView
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import HearingOfficerListView, LoginView, MeView

app_name = "accounts"

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),

    # ── Directory ────────────────────────────────────────────────────
    path(
        "users/hearing-officers/",
        HearingOfficerListView.as_view(),
        name="hearing-officers",
    ),
]
