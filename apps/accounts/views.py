"""
Views for signup, login, logout, password change and the user directory.

Credential verification and token issuance are delegated to
``apps.accounts.authentication`` (the Authenticator); token refresh is
handled by SimpleJWT's built-in view.
"""

import logging

from django.contrib.auth import get_user_model

from rest_framework import generics, status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .authentication import authenticate_credentials, issue_token
from .identity import Identity
from .serializers import (
    ChangePasswordSerializer,
    LoginSerializer,
    SignupSerializer,
    UserDetailSerializer,
    UserSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def _token_payload(tokens):
    return {"access": tokens.access, "refresh": tokens.refresh}


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------
class SignupView(generics.CreateAPIView):
    """
    POST /api/v1/auth/signup/

    Creates a new user account and returns JWT tokens so the user is
    logged-in immediately after registration.
    """

    serializer_class = SignupSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Signup successful for %s", user.email)

        tokens = issue_token(Identity.from_user(user))
        return Response(
            {
                "user": UserDetailSerializer(user).data,
                "tokens": _token_payload(tokens),
                "expires_in": tokens.expires_in,
            },
            status=status.HTTP_201_CREATED,
        )


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------
class LoginView(APIView):
    """
    POST /api/v1/auth/login/

    Authenticates credentials and returns JWT access + refresh tokens
    together with the user profile.  Bad credentials → 401.
    """

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        identity = authenticate_credentials(
            serializer.validated_data["email"],
            serializer.validated_data["password"],
        )
        tokens = issue_token(identity)
        user = User.objects.get(pk=identity.id)
        return Response(
            {
                "user": UserDetailSerializer(user).data,
                "tokens": _token_payload(tokens),
                "expires_in": tokens.expires_in,
            },
            status=status.HTTP_200_OK,
        )


# ---------------------------------------------------------------------------
# Logout (blacklist refresh token)
# ---------------------------------------------------------------------------
class LogoutView(APIView):
    """
    POST /api/v1/auth/logout/

    Blacklists the supplied refresh token so it can no longer be used.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            return Response(
                {"detail": "Refresh token is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError:
            return Response(
                {"detail": "Invalid or expired token."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(
            {"detail": "Successfully logged out."},
            status=status.HTTP_200_OK,
        )


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------
class MeView(generics.RetrieveAPIView):
    """GET /api/v1/auth/me/ → the authenticated user's record."""

    serializer_class = UserDetailSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


# ---------------------------------------------------------------------------
# Change Password
# ---------------------------------------------------------------------------
class ChangePasswordView(APIView):
    """
    POST /api/v1/auth/change-password/

    Requires the current password; sets a new one.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(
            data=request.data, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)

        request.user.set_password(serializer.validated_data["new_password"])
        request.user.save()
        logger.info("Password changed for %s", request.user.email)

        return Response(
            {"detail": "Password changed successfully."},
            status=status.HTTP_200_OK,
        )


# ---------------------------------------------------------------------------
# User directory
# ---------------------------------------------------------------------------
class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    list → GET /api/v1/users/
    read → GET /api/v1/users/{id}/

    Directory of registered users, used to pick task assignees.
    """

    queryset = User.objects.filter(is_active=True).order_by("last_name", "first_name")
    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.action == "retrieve":
            return UserDetailSerializer
        return UserSerializer
