"""
Error taxonomy shared by services and API handlers.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to. Handlers in ``yuki.main`` turn them into ``{"error": ..., "code": ...}``
responses.
"""
from __future__ import annotations

from typing import Any


class YukiError(Exception):
    code = "INTERNAL_ERROR"
    http_status = 500
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(YukiError):
    code = "VALIDATION_ERROR"
    http_status = 400
    default_message = "Validation failed"


class Unauthenticated(YukiError):
    code = "UNAUTHORIZED"
    http_status = 401
    default_message = "Not authenticated"


class NotFound(YukiError):
    code = "NOT_FOUND"
    http_status = 404
    default_message = "Not found"


class Conflict(YukiError):
    code = "CONFLICT"
    http_status = 409
    default_message = "Resource already exists"


class ReplaySuspected(YukiError):
    code = "REPLAY_SUSPECTED"
    http_status = 400
    default_message = "Authenticator counter did not advance"


class UpstreamFailure(YukiError):
    code = "UPSTREAM_FAILURE"
    http_status = 500
    default_message = "Upstream provider failed"


class InternalError(YukiError):
    pass


# Specific errors


class InvalidAddress(ValidationError):
    code = "INVALID_ADDRESS"
    default_message = "Invalid wallet address format"


class UnsupportedChain(ValidationError):
    code = "UNSUPPORTED_CHAIN"
    default_message = "Unsupported chain"


class VerificationFailed(ValidationError):
    code = "VERIFICATION_FAILED"
    default_message = "Verification failed"


class HandleUnavailable(ValidationError):
    """Raised when a handle claim fails a format or reservation check."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message, code=reason)
        self.reason = reason


class HandleTaken(Conflict):
    code = "TAKEN"
    default_message = "Username is already taken"


class HandleCooldown(ValidationError):
    code = "RATE_LIMITED"

    def __init__(self, cooldown_days: int, days_remaining: int) -> None:
        super().__init__(
            f"Username can only be changed once every {cooldown_days} days. "
            f"Try again in {days_remaining} days.",
            details={"daysRemaining": days_remaining},
        )
        self.days_remaining = days_remaining


class NotConfigured(InternalError):
    code = "NOT_CONFIGURED"
    default_message = "Integration not configured"
