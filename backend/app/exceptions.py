"""
Schools24 Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, one per error class the API exposes.
How:   Each exception carries a message and an optional context dict.
       Global handlers (registered in main.py) map them to HTTP status codes
       and a uniform JSON body.
Who:   Raised by services, repositories and middleware.

Exception Hierarchy:
    SchoolsError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthorizedError        → 401 Unauthorized (missing credentials)
    │   └── InvalidTokenError    → 401 Unauthorized (token rejected)
    ├── ForbiddenError           → 403 Forbidden (role not allowed)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (duplicate)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    ├── CacheError               → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class SchoolsError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SchoolsError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, wrong types) are rejected by
    FastAPI with 422 before reaching a service; this covers the rest:
    unparseable UUIDs and dates, unknown roles, malformed attendance JSON.
    """

    status_code = 400
    error_code = "validation_error"

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


class UnauthorizedError(SchoolsError):
    """Credentials are missing or wrong (no bearer header, bad password)."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(UnauthorizedError):
    """
    A bearer token failed verification.

    Expired, not-yet-valid, malformed, wrongly signed and wrong-algorithm
    tokens all raise this one error with the same message.
    """

    error_code = "invalid_token"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="invalid token", context=context)


class ForbiddenError(SchoolsError):
    """The caller's role is not in the route's allow-list."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Insufficient permissions",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SchoolsError):
    """
    Raised when a requested resource does not exist.

    Repositories return None for missing rows; services convert that None
    into this exception so routes never branch on it.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(SchoolsError):
    """A unique value (email, subject code, receipt) already exists."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(SchoolsError):
    """
    Raised when a client's token bucket is empty.

    The middleware answers directly in most cases; this exists so the same
    response shape is available to handlers and tests.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 1,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message="Too many requests. Please slow down.", context=ctx)
        self.retry_after = retry_after


class FileStorageError(SchoolsError):
    """Could not write or remove an uploaded file."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CacheError(SchoolsError):
    """A cached value could not be encoded, decoded or written."""

    def __init__(
        self,
        message: str = "Cache operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SchoolsError):
    """
    Raised when a database operation fails unexpectedly.

    The client always receives a generic message; constraint names and SQL
    stay in the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
