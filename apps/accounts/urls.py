"""
Accounts URL configuration.

``auth_urlpatterns`` are mounted under /api/v1/auth/ and the user
directory router under /api/v1/ by the root URL config.
Token refresh is handled by SimpleJWT's built-in view.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ChangePasswordView,
    LoginView,
    LogoutView,
    MeView,
    SignupView,
    UserViewSet,
)

router = SimpleRouter()
router.register(r"users", UserViewSet, basename="user")

auth_urlpatterns = [
    # Authentication
    path("signup/", SignupView.as_view(), name="auth-signup"),
    path("login/", LoginView.as_view(), name="auth-login"),
    path("logout/", LogoutView.as_view(), name="auth-logout"),
    path("token/refresh/", TokenRefreshView.as_view(), name="auth-token-refresh"),

    # Current user
    path("me/", MeView.as_view(), name="auth-me"),
    path("change-password/", ChangePasswordView.as_view(), name="auth-change-password"),
]

urlpatterns = [
    path("", include(router.urls)),
]
