"""
CaseLocator Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Reports the remote location API status (or circuit breaker state)
       and the number of open form sessions.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    - healthy:   Remote location API reachable
    - degraded:  Remote API unavailable or circuit open; lookups are served
                 from the offline dataset, so the service still answers
"""

import logging
import time

from fastapi import APIRouter, Depends

from caselocator import __version__
from caselocator.schemas.location import HealthResponse
from caselocator.services.directory import LocationDirectory, get_location_directory
from caselocator.services.session_registry import SessionRegistry, get_session_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    directory: LocationDirectory = Depends(get_location_directory),
    registry: SessionRegistry = Depends(get_session_registry),
) -> HealthResponse:
    """
    Probe the remote location API without ever failing the request.

    An open circuit is reported as such without a probe request.
    """
    api_status = "available"
    breaker = getattr(directory.remote, "circuit_breaker", None)

    if breaker is not None and breaker.state == "open":
        api_status = "circuit_open"
    elif not await directory.remote.health_check():
        api_status = "unavailable"

    if api_status != "available":
        logger.warning("Health check: location API %s", api_status)

    return HealthResponse(
        status="healthy" if api_status == "available" else "degraded",
        version=__version__,
        location_api=api_status,
        active_sessions=len(registry),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
