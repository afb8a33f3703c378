"""
Companion API — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions, one per failure class a handler can report.
How:   Each exception carries a client-facing message, an optional context dict
       (logged, never returned) and the HTTP status it maps to. Global exception
       handlers (registered in main.py) turn them into failure envelopes:
           {"success": false, "error": <message>}
Who:   Raised by dependencies and services; caught by the global handlers.

Exception Hierarchy:
    CompanionAPIError (base)            → 500
    ├── ValidationError                 → 400 Bad Request (missing fields, bad file)
    ├── UnauthorizedError               → 401 Unauthorized (missing/invalid token)
    ├── ForbiddenError                  → 403 Forbidden (resource not owned by caller)
    ├── UpstreamError                   → 500 (platform call failed; message surfaced)
    └── ConfigurationError              → 500 (platform settings missing)

"Not found" is deliberately absent: an empty single-row lookup is a successful
response with a null payload, decided in the platform layer.
"""

from typing import Any, Dict, Optional


class CompanionAPIError(Exception):
    """
    Base exception for all Companion API errors.

    Attributes:
        message:  User-facing error description (returned as `error` in the envelope)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CompanionAPIError):
    """
    Raised when client input fails validation.

    When:    No file provided, non-image MIME type, file over the size ceiling,
             missing body fields, unknown operation selector.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(CompanionAPIError):
    """
    Raised when the bearer token is absent, malformed, or rejected by the auth service.

    HTTP:    401 Unauthorized. The message is always "Unauthorized"; the reason
             is kept in context for the server log.
    """

    status_code = 401

    def __init__(self, reason: str = "", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message="Unauthorized", context=ctx)


class ForbiddenError(CompanionAPIError):
    """
    Raised when the caller addresses a record it does not own.

    When:    Sending a message into another user's conversation.
    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamError(CompanionAPIError):
    """
    Raised when a primary platform call fails.

    What:    Any auth/record/storage error not otherwise classified.
    HTTP:    500 with the upstream message surfaced, prefixed with what we
             were doing ("Failed to upload banner: ...").
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Upstream platform request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(CompanionAPIError):
    """
    Raised when platform settings are missing at request time.

    HTTP:    500. Names of missing variables go to the log, not the client.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Server configuration error: Missing required environment variables",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
