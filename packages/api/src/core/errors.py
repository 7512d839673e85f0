# This project was developed with assistance from AI tools.
"""Domain exceptions raised by the service layer.

Routes never translate these themselves; the handlers registered in
``main.py`` map each one to an RFC 7807 response.
"""

from typing import NamedTuple


class FieldError(NamedTuple):
    """One offending form field, keyed by its camelCase name."""

    field: str
    message: str


class ClearanceError(Exception):
    """Base class for errors the API maps to a client-facing status."""


class AuthenticationError(ClearanceError):
    """No session, or the session token is invalid."""


class AuthorizationError(ClearanceError):
    """The caller does not own the application. Surfaced as not-found."""


class NotFoundError(ClearanceError):
    """The application (or document) does not exist."""


class ValidationError(ClearanceError):
    """One or more fields failed validation. Carries every error, not just the first."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} field(s) failed validation")


class ConflictError(ClearanceError):
    """The request conflicts with the application's current state."""


class InvalidTransitionError(ConflictError):
    """Raised when an application status transition is not allowed."""


class UpstreamError(ClearanceError):
    """PDF rendering or blob storage failed after the application was committed."""

    def __init__(self, message: str, *, application_id=None, status=None):
        self.application_id = application_id
        self.status = status
        super().__init__(message)
