"""
Sites API — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Routes and services raise these; global handlers registered in main.py
       turn them into JSON error responses with the right status code.
How:   Each exception carries a user-facing message and an optional context
       dict (logged server-side, never returned to the client).

Exception Hierarchy:
    SitesAPIError (base)
    ├── ValidationError            → 400 Bad Request
    ├── NotFoundError              → 404 Not Found
    ├── DataAccessError            → 500 Internal Server Error
    └── StoreInitializationError   → 500 Internal Server Error

Every error response carries a machine-readable `error` code next to the
human-readable `message`, so clients can branch on the code while the
literal messages stay stable for older clients.
"""

from typing import Any, Dict, Optional


class SitesAPIError(Exception):
    """
    Base exception for all Sites API errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    error_code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SitesAPIError):
    """
    Raised when client input fails validation.

    When:    page/perPage missing or not integers, malformed request body.
    HTTP:    400 Bad Request
    """

    error_code = "validation_error"
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


class NotFoundError(SitesAPIError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/sites/{id} for an unknown identifier, or any
             unregistered route.
    HTTP:    404 Not Found
    """

    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DataAccessError(SitesAPIError):
    """
    Raised when a store operation fails.

    The message is the underlying error text when there is one, otherwise
    the operation's fallback (e.g. "Unable to add site").
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreInitializationError(SitesAPIError):
    """
    Raised when the one-time store initialization fails.

    Fatal to the requests that were waiting on it, not to the process:
    the next request retries initialization.
    HTTP:    500 Internal Server Error
    """

    error_code = "initialization_error"

    def __init__(
        self,
        message: str = "Database initialization failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
