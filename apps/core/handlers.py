"""
DRF exception handler — the single place domain errors become HTTP.

Registered as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``.  DRF's own
exceptions (serializer validation, 401 from the JWT backend, Http404)
keep DRF's default rendering plus their ``code``; domain errors get a stable
``{"detail", "code"}`` body; anything else is logged and reported as a
generic 500 so internals never leak to the client.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import (
    AuthenticationFailedError,
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    UnexpectedError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

# Most specific first; AuthenticationFailedError covers the token errors.
STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (AuthenticationFailedError, status.HTTP_401_UNAUTHORIZED),
    (UnexpectedError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc):
    """Return the HTTP status code for a ``DomainError`` instance."""
    for error_class, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return http_status
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        http_status = status_for(exc)
        if http_status >= 500:
            logger.error("Domain error in %s: %s", _view_name(context), exc.message)
        return Response({"detail": exc.message, "code": exc.code}, status=http_status)

    response = exception_handler(exc, context)
    if response is not None:
        # Plain DRF errors (e.g. a rejected bearer token) also carry their code.
        if isinstance(exc, APIException) and isinstance(exc.detail, str):
            response.data.setdefault("code", exc.detail.code)
        return response

    logger.exception("Unhandled exception in %s", _view_name(context), exc_info=exc)
    return Response(
        {"detail": UnexpectedError.default_message, "code": UnexpectedError.code},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _view_name(context):
    view = context.get("view") if context else None
    return view.__class__.__name__ if view is not None else "unknown view"
