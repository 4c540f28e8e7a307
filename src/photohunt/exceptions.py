"""Domain error taxonomy.

Every error carries an HTTP status and a machine-readable ``code`` so clients
can tell, for example, a normal login prompt (``AUTH_REQUIRED``) apart from a
forced logout after a cycle reset (``SESSION_EXPIRED_RESET``). The global
handler in ``photohunt.middleware.error_handler`` renders them as
``{"detail": message, "code": code}``.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(GameError):
    """Malformed input. Never retried."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthError(GameError):
    """Missing or invalid credentials."""

    status_code = 401
    code = "AUTH_REQUIRED"


class SessionExpiredError(AuthError):
    """Token was issued before the last cycle reset; the client must log out."""

    code = "SESSION_EXPIRED_RESET"


class ForbiddenError(GameError):
    """Role mismatch (non-admin on admin route, admin on gameplay route)."""

    status_code = 403
    code = "FORBIDDEN"


class BoothClosedError(ForbiddenError):
    """Submission outside the booth's operating hours."""

    code = "BOOTH_CLOSED"


class NotFoundError(GameError):
    status_code = 404
    code = "NOT_FOUND"


class NoActiveWordError(NotFoundError):
    code = "NO_ACTIVE_WORD"


class ConflictError(GameError):
    status_code = 409
    code = "CONFLICT"


class UpstreamError(GameError):
    """A collaborator service failed. Transient, not retried automatically."""

    status_code = 503
    code = "UPSTREAM_UNAVAILABLE"


class ClassifierUnavailableError(UpstreamError):
    code = "CLASSIFIER_UNAVAILABLE"


class FatalError(GameError):
    """Requires operator intervention."""

    status_code = 500
    code = "FATAL"


class NoWordsAvailableError(FatalError):
    code = "NO_WORDS_AVAILABLE"
