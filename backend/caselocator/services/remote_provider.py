"""
CaseLocator Backend — Remote Location Provider (Country State City API)
========================================================================

What:  Concrete LocationProvider backed by the hosted Country State City API.
How:   One GET per operation through a shared httpx.AsyncClient carrying the
       static API-key header. Every failure mode is translated into
       LocationLookupFailed; a circuit breaker short-circuits calls after
       repeated failures.
Who:   Instantiated once at import; used by LocationDirectory and the
       debounced search index.

Endpoints consumed:
    GET /countries                                   → [{iso2, name, ...}]
    GET /countries/{country}/states                  → [{iso2, name, ...}]
    GET /countries/{country}/states/{state}/cities   → [{id, name, ...}]
    GET /countries/{country}/cities                  → [{id, name, ...}]

Resilience Strategy:
    1. No retries here (callers fail over to the bundled dataset instead)
    2. Circuit breaker: after N consecutive failures, reject instantly for
       M seconds so the form switches to offline data without waiting
    3. Optional timeout (LOCATION_API_TIMEOUT); unset means none
    4. Per-call ids and durations in the logs
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Callable, List, Optional, Sequence, TypeVar
from urllib.parse import quote

import httpx

from caselocator.config import settings
from caselocator.exceptions import LocationLookupFailed, ProviderOfflineError
from caselocator.schemas.location import City, Country, State
from caselocator.services.location_provider import LocationProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Implements the circuit breaker pattern for the remote location API.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise ProviderOfflineError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Concurrency:
        Plain counters; all callers share one asyncio event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None
        self._trial_in_flight = False

    def can_execute(self) -> bool:
        """
        Check if a request is allowed through the circuit breaker.

        In HALF_OPEN only the first caller gets through; the rest are
        rejected until that request is recorded as a success or failure.

        Raises:
            ProviderOfflineError if circuit is OPEN and recovery timeout hasn't elapsed,
            or the HALF_OPEN test request is still in flight.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.monotonic() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                self._trial_in_flight = True
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise ProviderOfflineError(recovery_time=remaining)

        if self._trial_in_flight:
            raise ProviderOfflineError(recovery_time=0)
        self._trial_in_flight = True
        return True

    def record_success(self) -> None:
        """Record a successful API call. Resets the circuit breaker to CLOSED."""
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (location API recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None
        self._trial_in_flight = False

    def record_failure(self) -> None:
        """Record a failed API call. May trigger CLOSED → OPEN transition."""
        self.failure_count += 1
        self.last_failure_time = time.monotonic()
        self._trial_in_flight = False

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Remote Provider
# ══════════════════════════════════════════════════════════════════════════

class RemoteLocationProvider(LocationProvider):
    """
    Country State City API implementation of LocationProvider.

    Error Handling Chain:
        httpx error / non-2xx / bad JSON → record breaker failure
        → raise LocationLookupFailed (caller fails over)
        → breaker threshold reached → ProviderOfflineError without a request
        → recovery timeout → one probe request (HALF_OPEN)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        key_header: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Args:
            base_url:  API root; defaults to settings.location_api_base_url
            api_key:   Credential; an empty key is still sent (as an empty header)
            key_header: Header carrying the credential
            timeout:   Seconds per request; defaults to settings (None = no timeout)
            transport: httpx transport override (tests use httpx.MockTransport)
            circuit_breaker: Shared breaker; a new one is built from settings if omitted
        """
        self.base_url = (base_url or settings.location_api_base_url).rstrip("/")
        self.api_key = settings.country_state_city_api_key if api_key is None else api_key
        self.key_header = key_header or settings.location_api_key_header
        self.timeout = settings.location_api_timeout if timeout is None else timeout
        self.health_timeout = settings.health_check_timeout

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={self.key_header: self.api_key or "", "Accept": "application/json"},
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        if not self.api_key:
            logger.warning(
                "RemoteLocationProvider has no API key; requests will be sent with an "
                "empty %s header and are expected to fail over to offline data",
                self.key_header,
            )
        logger.info(
            "RemoteLocationProvider initialized with base_url=%s, timeout=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.base_url,
            self.timeout if self.timeout is not None else "none",
            self.circuit_breaker.failure_threshold,
            self.circuit_breaker.recovery_timeout,
        )

    # ── Public API ────────────────────────────────────────────────────────

    async def list_countries(self) -> List[Country]:
        payload = await self._get("countries", "/countries")
        countries = self._parse_rows(
            "countries", payload, ("iso2", "name"),
            lambda row: Country(code=str(row["iso2"]), name=str(row["name"])),
        )
        countries.sort(key=lambda c: c.name.casefold())
        return countries

    async def list_states(self, country_code: str) -> List[State]:
        path = f"/countries/{quote(country_code, safe='')}/states"
        payload = await self._get("states", path)
        states = self._parse_rows(
            "states", payload, ("iso2", "name"),
            lambda row: State(code=str(row["iso2"]), name=str(row["name"])),
        )
        states.sort(key=lambda s: s.name.casefold())
        return states

    async def list_cities(
        self, country_code: str, state_code: Optional[str] = None
    ) -> List[City]:
        country = quote(country_code, safe="")
        if state_code:
            path = f"/countries/{country}/states/{quote(state_code, safe='')}/cities"
        else:
            path = f"/countries/{country}/cities"
        payload = await self._get("cities", path)
        return self._parse_rows(
            "cities", payload, ("id", "name"),
            lambda row: City(id=int(row["id"]), name=str(row["name"])),
        )

    async def health_check(self) -> bool:
        """
        Check if the location API is reachable and accepts our key.

        Returns False (never raises) when the circuit is open or the request
        fails. Unlike form lookups the check is always bounded by
        `health_timeout`; a check that times out counts as a breaker failure.
        """
        if self.circuit_breaker.state == CircuitBreaker.OPEN:
            return False
        try:
            await asyncio.wait_for(self._get("health", "/countries"), self.health_timeout)
            return True
        except asyncio.TimeoutError:
            self.circuit_breaker.record_failure()
            logger.warning(
                "Location API health check timed out after %.1fs", self.health_timeout
            )
            return False
        except LocationLookupFailed as e:
            logger.warning("Location API health check failed: %s", e.message)
            return False

    async def aclose(self) -> None:
        """Close the pooled HTTP connections (called on app shutdown)."""
        await self._client.aclose()

    # ── Internals ─────────────────────────────────────────────────────────

    async def _get(self, operation: str, path: str) -> List[Any]:
        """
        Perform one GET and return the decoded JSON list.

        Flow:
            1. Check circuit breaker → may raise ProviderOfflineError
            2. Send request (no retry)
            3. Non-2xx, transport error, or non-list body → LocationLookupFailed
            4. Record success/failure in the breaker
        """
        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        start_time = time.perf_counter()
        try:
            response = await self._client.get(path)
        except Exception as e:
            self._fail(request_id, operation, path, start_time, str(e))
            raise LocationLookupFailed(
                message=f"Location API request failed: {operation}",
                operation=operation,
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        if not response.is_success:
            self._fail(request_id, operation, path, start_time, f"HTTP {response.status_code}")
            raise LocationLookupFailed(
                message=f"Location API returned HTTP {response.status_code}",
                operation=operation,
                status_code=response.status_code,
                context={"request_id": request_id},
            )

        try:
            payload = response.json()
        except ValueError as e:
            self._fail(request_id, operation, path, start_time, "invalid JSON body")
            raise LocationLookupFailed(
                message="Location API returned an invalid body",
                operation=operation,
                context={"request_id": request_id},
            ) from e

        if not isinstance(payload, list):
            self._fail(request_id, operation, path, start_time, "unexpected payload shape")
            raise LocationLookupFailed(
                message="Location API returned an unexpected payload",
                operation=operation,
                context={"request_id": request_id, "payload_type": type(payload).__name__},
            )

        self.circuit_breaker.record_success()
        logger.info(
            "[%s] Location API %s %s completed in %.0fms, %d records",
            request_id,
            operation,
            path,
            (time.perf_counter() - start_time) * 1000,
            len(payload),
        )
        return payload

    def _parse_rows(
        self,
        operation: str,
        payload: List[Any],
        required: Sequence[str],
        build: Callable[[dict], T],
    ) -> List[T]:
        """
        Turn decoded rows into models.

        Rows lacking a required field are skipped. A row whose values cannot
        be converted fails the whole call as LocationLookupFailed, counted
        as a breaker failure like any other bad response.
        """
        try:
            return [
                build(row)
                for row in payload
                if isinstance(row, dict)
                and all(row.get(field) not in (None, "") for field in required)
            ]
        except (KeyError, TypeError, ValueError) as e:
            self.circuit_breaker.record_failure()
            logger.warning("Location API %s returned a malformed record: %s", operation, e)
            raise LocationLookupFailed(
                message="Location API returned a malformed record",
                operation=operation,
                context={"error_type": type(e).__name__},
            ) from e

    def _fail(
        self, request_id: str, operation: str, path: str, start_time: float, reason: str
    ) -> None:
        self.circuit_breaker.record_failure()
        logger.warning(
            "[%s] Location API %s %s failed after %.0fms: %s",
            request_id,
            operation,
            path,
            (time.perf_counter() - start_time) * 1000,
            reason,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the shared breaker and connection pool for the whole process.
remote_provider = RemoteLocationProvider()
