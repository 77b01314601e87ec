"""
Application error taxonomy.

Every failure a handler can produce is one of these. The exception handlers
registered in api.main render them as `{payload_key: message}` with the
matching status code; nothing else about the failure reaches the caller.
"""


class AppError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = 500
    payload_key: str = "message"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload_key: str | None = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if payload_key is not None:
            self.payload_key = payload_key
        super().__init__(message)


class BadRequestError(AppError):
    """Malformed or missing input."""

    status_code = 400


class UnauthenticatedError(AppError):
    """No bearer token was presented."""

    status_code = 401


class ForbiddenError(AppError):
    """Bearer token is invalid or expired."""

    status_code = 403


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404


class ConflictError(AppError):
    """Resource already exists."""

    status_code = 409


class UpstreamError(AppError):
    """
    News or image provider failure.

    status_code is the upstream status when one was received, 500 otherwise.
    The message is always a sanitized summary; upstream detail is logged only.
    """

    status_code = 500
