"""
CaseLocator Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and routes; caught by global handlers or, for
       lookup failures, by the location directory.

Exception Hierarchy:
    CaseLocatorError (base)
    ├── ValidationError            → 400 Bad Request (client can fix)
    ├── NotFoundError              → 404 Not Found
    └── LocationLookupFailed       → recovered locally (503 if it escapes)
        └── ProviderOfflineError   → circuit breaker open

LocationLookupFailed is the only distinguished lookup error. It never
reaches the end user as an error: the directory substitutes fallback data
and, at most, a passive "offline data" notice is shown.
"""

from typing import Any, Dict, Optional


class CaseLocatorError(Exception):
    """
    Base exception for all CaseLocator application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CaseLocatorError):
    """
    Raised when client input fails validation.

    When:    Coordinate regeneration requested before a country is selected.
             (Malformed query parameters are rejected by FastAPI with 422.)
    HTTP:    400 Bad Request
    """

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


class NotFoundError(CaseLocatorError):
    """
    Raised when a requested resource does not exist.

    When:    A location session id is unknown or already closed.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class LocationLookupFailed(CaseLocatorError):
    """
    Raised by the remote location provider for any unsuccessful call.

    What:    Network error, timeout, non-2xx status, or unparseable body.
    When:    Any RemoteLocationProvider operation.
    Recovery:
        The directory catches it and substitutes the fallback dataset.
        Timeouts and 4xx/5xx responses are deliberately indistinguishable
        to callers; `context` keeps the detail for logs.
    """

    def __init__(
        self,
        message: str = "Location lookup failed",
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.operation = operation
        self.status_code = status_code


class ProviderOfflineError(LocationLookupFailed):
    """
    Raised when the remote provider's circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for M seconds)
        → After M seconds → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again (reset timer)

    Callers treat it exactly like LocationLookupFailed; it only fails
    faster, without touching the network.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Location service is offline after repeated failures. "
            f"It will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
