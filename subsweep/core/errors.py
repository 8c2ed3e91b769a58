"""
Error taxonomy shared by the credential and call guard layers.

Every failure that can reach a caller is one of these kinds. Internal
``code`` values are for logs; ``public_code`` and ``user_message`` are the
only details rendered to end users.
"""

from __future__ import annotations

import math
from http import HTTPStatus
from typing import Optional

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."


class GuardError(Exception):
    """Base exception for the credential and call guard."""

    code = "guard_error"
    public_code = "error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return self.message


class NotAuthenticatedError(GuardError):
    """Raised when the current request has no signed-in user."""

    code = "not_authenticated"
    public_code = "not_authenticated"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Please sign in to continue."


class AuthenticationRequiredError(GuardError):
    """Raised when no usable credential is stored for the user."""

    code = "authentication_required"
    public_code = "authentication_required"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Please connect your YouTube account again."


class SessionExpiredError(GuardError):
    """Raised when the access token expired and cannot be refreshed."""

    code = "session_expired"
    public_code = "session_expired"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = SESSION_EXPIRED_MESSAGE


class ConfigurationError(GuardError):
    """Raised when a server-side secret is missing or malformed."""

    code = "configuration_error"
    public_code = "service_unavailable"
    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    default_message = "Server configuration is incomplete."

    @property
    def user_message(self) -> str:
        return "The service is temporarily unavailable."


class DecryptionError(GuardError):
    """Raised when stored ciphertext cannot be authenticated or decoded."""

    code = "decryption_error"
    public_code = "session_expired"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Failed to decrypt data."

    @property
    def user_message(self) -> str:
        return SESSION_EXPIRED_MESSAGE


class TokenRefreshFailedError(GuardError):
    """Raised when the OAuth token endpoint rejects or fails a refresh."""

    code = "token_refresh_failed"
    public_code = "session_expired"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Token refresh failed."

    def __init__(
        self, message: Optional[str] = None, *, http_status: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.http_status = http_status

    @property
    def user_message(self) -> str:
        return SESSION_EXPIRED_MESSAGE


class RateLimitedError(GuardError):
    """Raised when the rate limiter denies admission."""

    code = "rate_limited"
    public_code = "rate_limited"
    status_code = HTTPStatus.TOO_MANY_REQUESTS

    def __init__(self, retry_after_ms: int) -> None:
        self.retry_after_ms = max(int(retry_after_ms), 0)
        super().__init__(
            f"Rate limit exceeded. Try again in {self.retry_after_seconds}s"
        )

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.retry_after_ms / 1000)


class InvalidInputError(GuardError):
    """Raised for malformed input rejected before any network call."""

    code = "invalid_input"
    public_code = "invalid_input"
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "The request is invalid."


class NotFoundError(GuardError):
    """Raised when a locally stored record is missing or owned by someone else."""

    code = "not_found"
    public_code = "not_found"
    status_code = HTTPStatus.NOT_FOUND
    default_message = "Not found."


class StoreConflictError(GuardError):
    """Raised when an atomic record update keeps losing its compare-and-swap."""

    code = "store_conflict"
    public_code = "service_unavailable"
    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    default_message = "The record is busy. Please try again."


_QUOTA_REASONS = frozenset(
    {
        "quotaExceeded",
        "dailyLimitExceeded",
        "rateLimitExceeded",
        "userRateLimitExceeded",
    }
)


class RemoteApiError(GuardError):
    """A non-success answer (or no answer) from the YouTube Data API."""

    code = "remote_api_error"

    def __init__(
        self,
        *,
        http_status: Optional[int],
        provider_message: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.http_status = http_status
        self.provider_message = provider_message
        self.reason = reason
        self.kind = self._classify()
        super().__init__(self._render_message())

    @property
    def is_quota_exceeded(self) -> bool:
        return self.http_status == HTTPStatus.FORBIDDEN and self.reason in _QUOTA_REASONS

    def _classify(self) -> str:
        if self.http_status is None:
            return "network_error"
        if self.http_status == HTTPStatus.UNAUTHORIZED:
            return "authentication_required"
        if self.http_status == HTTPStatus.FORBIDDEN:
            return "quota_exceeded" if self.is_quota_exceeded else "permission_denied"
        if self.http_status == HTTPStatus.NOT_FOUND:
            return "not_found"
        if self.http_status == HTTPStatus.TOO_MANY_REQUESTS:
            return "rate_limited"
        return "remote_error"

    def _render_message(self) -> str:
        messages = {
            "network_error": "Could not reach YouTube. Please try again.",
            "authentication_required": "YouTube rejected your session. Please sign in again.",
            "quota_exceeded": "YouTube quota exceeded. Please try again later.",
            "permission_denied": "Permission denied by YouTube.",
            "not_found": "The requested YouTube resource was not found.",
            "rate_limited": "YouTube is rate limiting requests. Please slow down and try again.",
        }
        if self.kind in messages:
            return messages[self.kind]
        return self.provider_message or "YouTube request failed."

    @property
    def public_code(self) -> str:  # type: ignore[override]
        return self.kind

    @property
    def status_code(self) -> int:  # type: ignore[override]
        statuses = {
            "authentication_required": HTTPStatus.UNAUTHORIZED,
            "quota_exceeded": HTTPStatus.TOO_MANY_REQUESTS,
            "permission_denied": HTTPStatus.FORBIDDEN,
            "not_found": HTTPStatus.NOT_FOUND,
            "rate_limited": HTTPStatus.TOO_MANY_REQUESTS,
        }
        return statuses.get(self.kind, HTTPStatus.BAD_GATEWAY)


__all__ = [
    "AuthenticationRequiredError",
    "ConfigurationError",
    "DecryptionError",
    "GuardError",
    "InvalidInputError",
    "NotAuthenticatedError",
    "NotFoundError",
    "RateLimitedError",
    "RemoteApiError",
    "SESSION_EXPIRED_MESSAGE",
    "SessionExpiredError",
    "StoreConflictError",
    "TokenRefreshFailedError",
]
