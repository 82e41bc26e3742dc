"""Root URL configuration — all API routes are versioned under /api/v1/."""

from django.contrib import admin
from django.urls import include, path

from apps.accounts.urls import auth_urlpatterns

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/auth/", include(auth_urlpatterns)),
    path("api/v1/", include("apps.accounts.urls")),
    path("api/v1/", include("apps.tasks.urls")),
]
