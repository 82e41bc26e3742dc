"""
Domain error taxonomy shared by every app.

Services raise these at the point of detection; they propagate unchanged
to the DRF boundary, where ``apps.core.handlers`` maps each kind to an
HTTP status.  Nothing inside the core retries on them.
"""


class DomainError(Exception):
    """Base class for all classified domain failures."""

    code = "error"
    default_message = "The request could not be processed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(DomainError):
    """
    Entity absent *or* not owned by the caller.

    The two cases are indistinguishable to the caller.
    """

    code = "not_found"
    default_message = "Not found."


class ConflictError(DomainError):
    """Uniqueness violation (e.g. duplicate project name per owner)."""

    code = "conflict"
    default_message = "Duplicate entry or constraint violation."


class ValidationFailedError(DomainError):
    """Empty required field, past due date, illegal state transition."""

    code = "validation_failed"
    default_message = "Validation failed."


class ForbiddenError(DomainError):
    """The caller may not perform this action on the given set of entities."""

    code = "forbidden"
    default_message = "You do not have permission to perform this action."


class AuthenticationFailedError(DomainError):
    code = "authentication_failed"
    default_message = "Invalid email or password."


class InvalidTokenError(AuthenticationFailedError):
    code = "invalid_token"
    default_message = "Token is invalid."


class TokenExpiredError(AuthenticationFailedError):
    code = "token_expired"
    default_message = "Token has expired."


class UnexpectedError(DomainError):
    code = "unexpected"
    default_message = "An unexpected error occurred."
