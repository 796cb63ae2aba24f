"""
Root URL configuration.

Route map
---------
  /admin/                     Django admin (roles, users, cases, audit log)
  /api/accounts/              login, token refresh, me, hearing-officer directory
  /api/core/                  constants, notifications, audit log
  /api/cases/                 case list / detail / workflow actions,
                              hearings, remarks, documents (downloads are
                              authenticated; MEDIA_ROOT is never served)
  /api/public/track/<code>/   unauthenticated tracking lookup
  /api/schema/, /api/docs/    OpenAPI schema and Swagger UI
"""
from django.contrib import admin
from django.urls import include, path

from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # ── App routes ───────────────────────────────────────────────────
    path('api/accounts/', include('accounts.urls')),
    path('api/core/', include('core.urls')),
    path('api/', include('cases.urls')),

    # ── Swagger / OpenAPI schema ─────────────────────────────────────
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
