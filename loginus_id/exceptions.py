"""
Loginus ID exception hierarchy.

All exceptions inherit from LoginusError for easy catching.
"""

from typing import Any


class LoginusError(Exception):
    """Base exception for all loginus_id errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ValidationError(LoginusError):
    """Local input validation failed (never sent to the API)."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message, field=field)
        self.field = field


class AuthenticationError(LoginusError):
    """Authentication failed."""


class SessionExpiredError(AuthenticationError):
    """Session has expired and refresh failed."""


class APIError(LoginusError):
    """
    API request failed.

    Attributes:
        code: HTTP status code.
        endpoint: Endpoint that was called.
        detail: Message taken from the response body, or None if the body
            carried none.
    """

    def __init__(
        self,
        message: str,
        *,
        code: int,
        endpoint: str | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message, code=code, endpoint=endpoint)
        self.code = code
        self.endpoint = endpoint
        self.detail = detail


class NotFoundError(APIError):
    """Resource not found (factor, team, invitation)."""

    def __init__(
        self, message: str, *, endpoint: str | None = None, detail: str | None = None
    ) -> None:
        super().__init__(message, code=404, endpoint=endpoint, detail=detail)


class RateLimitError(APIError):
    """Rate limited by API."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message, code=429, detail=detail)
        self.retry_after = retry_after


class ServerError(APIError):
    """Server-side error (5xx)."""

    def __init__(
        self,
        message: str,
        *,
        code: int = 500,
        endpoint: str | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message, code=code, endpoint=endpoint, detail=detail)


class NetworkError(LoginusError):
    """Network-level error (connection failed, timeout)."""


class OperationInProgressError(LoginusError):
    """Another request from the same editor or generator is still in flight."""


class InvitationError(LoginusError):
    """Invitation flow failed."""


class InvitationLinkError(InvitationError):
    """Backend response carried neither an invitation link nor a token."""


class PlatformError(LoginusError):
    """Host platform capability (clipboard, native share) failed."""


class ClipboardError(PlatformError):
    """Clipboard is unavailable or rejected the write."""


class ShareError(PlatformError):
    """Native share failed."""


class ShareCancelledError(ShareError):
    """User dismissed the native share sheet (AbortError-class, not a failure)."""


def display_message(error: LoginusError, fallback: str) -> str:
    """
    Message to show a user for ``error``.

    Only text the backend put in the response body is shown; anything else
    (network failures, empty error bodies, local errors) yields ``fallback``.
    """
    if isinstance(error, APIError) and error.detail:
        return error.detail
    return fallback
