"""
CaseLocator Backend — Request Logging Middleware
=================================================

What:  One access-log line per HTTP request: method, path, status, duration.
How:   Measures wall time around the downstream handler and logs at a level
       chosen from the status code. Health probes are not logged.
Who:   Applied to every request, after RequestIDMiddleware.

Typical durations:
    GET /api/locations/countries     one remote call, or ~1ms offline
    POST /{session}/country          states lookup plus, for countries
                                     without subdivisions, a city lookup
    GET /api/locations/coordinates   the generator delay (1s by default)

Request bodies are not logged; free-text address queries may contain PII.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from caselocator.middleware.request_id import request_id_var

logger = logging.getLogger("caselocator.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
