"""
Authenticator — the capability boundary the project/task core relies on.

Resolves "who is the caller" and nothing more:

  - ``authenticate_credentials`` checks an email + password pair
  - ``issue_token`` mints a SimpleJWT access/refresh pair for an identity
  - ``validate_token`` turns a bearer access token back into an identity
  - ``IdentityJWTAuthentication`` applies ``validate_token`` to every API request

Token signing and lifetimes are delegated to djangorestframework-simplejwt
(configured via ``SIMPLE_JWT`` in settings).  The access token carries the
``user_id`` and ``email`` claims.
"""

import logging
from dataclasses import dataclass

from django.contrib.auth import authenticate, get_user_model
from django.core.exceptions import ValidationError
from django.utils import timezone

from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from apps.core.exceptions import (
    AuthenticationFailedError,
    InvalidTokenError,
    TokenExpiredError,
)

from .identity import Identity

User = get_user_model()
logger = logging.getLogger(__name__)

EMAIL_CLAIM = "email"


@dataclass(frozen=True)
class IssuedTokens:
    access: str
    refresh: str
    expires_in: int  # access token lifetime, seconds


def authenticate_credentials(email, password):
    """
    Verify credentials and return the caller's ``Identity``.

    Unknown email, wrong password and deactivated account are reported
    identically.
    """
    user = authenticate(email=email, password=password)
    if user is None:
        logger.warning("Login attempt failed for %s: invalid credentials", email)
        raise AuthenticationFailedError()
    logger.info("Login successful for %s", user.email)
    return Identity.from_user(user)


def issue_token(identity):
    """Mint an access/refresh token pair for ``identity``."""
    try:
        user = User.objects.get(pk=identity.id, is_active=True)
    except User.DoesNotExist:
        raise AuthenticationFailedError("Account not found or inactive.")

    refresh = RefreshToken.for_user(user)
    refresh[EMAIL_CLAIM] = user.email
    return IssuedTokens(
        access=str(refresh.access_token),
        refresh=str(refresh),
        expires_in=int(api_settings.ACCESS_TOKEN_LIFETIME.total_seconds()),
    )


def validate_token(raw_token):
    """
    Resolve a bearer access token to an ``Identity``.

    Raises ``TokenExpiredError`` for a well-formed token past its ``exp``
    claim and ``InvalidTokenError`` for anything else (bad signature,
    wrong token type, unknown or inactive user).
    """
    user, _ = _resolve_access_token(raw_token)
    return Identity.from_user(user)


def _resolve_access_token(raw_token):
    try:
        token = AccessToken(raw_token)
    except TokenError as exc:
        if _is_expired(raw_token):
            raise TokenExpiredError() from exc
        raise InvalidTokenError() from exc

    user_id = token.get(api_settings.USER_ID_CLAIM)
    try:
        user = User.objects.get(pk=user_id, is_active=True)
    except (User.DoesNotExist, ValidationError, ValueError, TypeError):
        raise InvalidTokenError()
    return user, token


def _is_expired(raw_token):
    """True when the token decodes (unverified) and its ``exp`` has passed."""
    try:
        payload = AccessToken(raw_token, verify=False).payload
    except TokenError:
        return False
    exp = payload.get("exp")
    return exp is not None and exp <= timezone.now().timestamp()


class IdentityJWTAuthentication(JWTAuthentication):
    """
    DRF authentication backend for ``Authorization: Bearer <access>``.

    Resolves the token through the same path as ``validate_token`` so an
    expired token is reported as ``token_expired`` and every other
    rejection as ``invalid_token``, both with status 401.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None
        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            user, token = _resolve_access_token(raw_token)
        except AuthenticationFailedError as exc:
            logger.info("Rejected bearer token: %s", exc.code)
            raise exceptions.AuthenticationFailed(exc.message, code=exc.code)
        return user, token
