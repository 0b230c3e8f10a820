"""
CaseLocator Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The remote location API is replaced by FakeLocationAPI served through
       httpx.MockTransport, so the real RemoteLocationProvider code path
       (headers, status handling, parsing, circuit breaker) runs without a
       network.

Fixture Hierarchy:
    location_api ─▶ remote ─▶ directory ─▶ registry ─▶ test_client
                                  └──────▶ generator (no delay)
"""

import asyncio
import os
from typing import Callable, Dict, List, Optional, Set, Tuple

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any caselocator import builds the settings singleton
os.environ["LOCATION_API_BASE_URL"] = "http://location-api.test/v1"
os.environ["COUNTRY_STATE_CITY_API_KEY"] = "test-key"
os.environ["SEARCH_DEBOUNCE_MS"] = "0"
os.environ["CITY_SELECT_DELAY_MS"] = "0"
os.environ["COORDINATE_DELAY_MS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from caselocator.services.coordinate_generator import CoordinateGenerator  # noqa: E402
from caselocator.services.directory import LocationDirectory  # noqa: E402
from caselocator.services.fallback_provider import FallbackLocationProvider  # noqa: E402
from caselocator.services.remote_provider import (  # noqa: E402
    CircuitBreaker,
    RemoteLocationProvider,
)
from caselocator.services.session_registry import SessionRegistry  # noqa: E402

API_KEY = "test-key"
BASE_URL = "http://location-api.test/v1"


# ══════════════════════════════════════════════════════════════════════════
# Fake Country State City API
# ══════════════════════════════════════════════════════════════════════════

class FakeLocationAPI:
    """
    In-memory stand-in for the Country State City API.

    Attributes:
        requests: Paths requested, in order (without the /v1 prefix)
        headers:  Request headers, parallel to `requests`
        offline:  When True every request answers HTTP 500
        failing:  Paths that answer HTTP 500
        gates:    Path → asyncio.Event; the response waits until it is set
    """

    def __init__(self) -> None:
        self.countries = [
            {"id": 233, "name": "United States", "iso2": "US"},
            {"id": 82, "name": "Germany", "iso2": "DE"},
            {"id": 232, "name": "United Kingdom", "iso2": "GB"},
            {"id": 199, "name": "Singapore", "iso2": "SG"},
        ]
        self.states: Dict[str, List[dict]] = {
            "US": [
                {"id": 1416, "name": "California", "iso2": "CA"},
                {"id": 1452, "name": "New York", "iso2": "NY"},
            ],
            "DE": [
                {"id": 3009, "name": "Bavaria", "iso2": "BY"},
                {"id": 3010, "name": "Berlin", "iso2": "BE"},
            ],
            "GB": [{"id": 2336, "name": "England", "iso2": "ENG"}],
            "SG": [],
        }
        self.cities: Dict[Tuple[str, str], List[dict]] = {
            ("US", "CA"): [
                {"id": 110992, "name": "Los Angeles"},
                {"id": 111165, "name": "San Diego"},
            ],
            ("US", "NY"): [{"id": 123001, "name": "New York City"}],
            ("DE", "BY"): [
                {"id": 28930, "name": "Munich"},
                {"id": 28960, "name": "Nuremberg"},
            ],
            ("DE", ""): [
                {"id": 28930, "name": "Munich"},
                {"id": 28141, "name": "Berlin"},
            ],
            ("GB", "ENG"): [
                {"id": 50388, "name": "London"},
                {"id": 50100, "name": "Longford"},
                {"id": 50420, "name": "Manchester"},
            ],
            ("SG", ""): [{"id": 103644, "name": "Singapore"}],
        }
        self.requests: List[str] = []
        self.headers: List[httpx.Headers] = []
        self.offline = False
        self.failing: Set[str] = set()
        self.gates: Dict[str, asyncio.Event] = {}

    def count(self, path: str) -> int:
        return self.requests.count(path)

    def gate(self, path: str) -> asyncio.Event:
        """Hold responses for `path` until the returned event is set."""
        event = asyncio.Event()
        self.gates[path] = event
        return event

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v1"):
            path = path[len("/v1"):]
        self.requests.append(path)
        self.headers.append(request.headers)

        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()

        if self.offline or path in self.failing:
            return httpx.Response(500, json={"error": "Internal Server Error"})
        if request.headers.get("X-CSCAPI-KEY") != API_KEY:
            return httpx.Response(401, json={"error": "Unauthorized. You shouldn't be here."})

        parts = path.strip("/").split("/")
        if parts == ["countries"]:
            return httpx.Response(200, json=self.countries)
        if len(parts) == 3 and parts[0] == "countries" and parts[2] == "states":
            return httpx.Response(200, json=self.states.get(parts[1], []))
        if len(parts) == 3 and parts[0] == "countries" and parts[2] == "cities":
            return httpx.Response(200, json=self.cities.get((parts[1], ""), []))
        if len(parts) == 5 and parts[2] == "states" and parts[4] == "cities":
            return httpx.Response(200, json=self.cities.get((parts[1], parts[3]), []))
        return httpx.Response(404, json={"error": "Not found"})


async def wait_until(condition: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until `condition()` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def location_api() -> FakeLocationAPI:
    return FakeLocationAPI()


def build_remote(
    api: Optional[FakeLocationAPI] = None,
    api_key: str = API_KEY,
    circuit_breaker: Optional[CircuitBreaker] = None,
    handler: Optional[Callable] = None,
) -> RemoteLocationProvider:
    return RemoteLocationProvider(
        base_url=BASE_URL,
        api_key=api_key,
        transport=httpx.MockTransport(handler or api.handler),
        circuit_breaker=circuit_breaker or CircuitBreaker(failure_threshold=50, recovery_timeout=60),
    )


@pytest_asyncio.fixture
async def remote(location_api):
    provider = build_remote(location_api)
    yield provider
    await provider.aclose()


@pytest.fixture
def fallback() -> FallbackLocationProvider:
    return FallbackLocationProvider()


@pytest.fixture
def directory(remote, fallback) -> LocationDirectory:
    return LocationDirectory(remote=remote, fallback=fallback)


@pytest.fixture
def generator(fallback) -> CoordinateGenerator:
    return CoordinateGenerator(fallback=fallback, delay_seconds=0)


@pytest.fixture
def registry(directory) -> SessionRegistry:
    return SessionRegistry(directory, max_sessions=10)


@pytest_asyncio.fixture
async def test_client(directory, registry, generator):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The directory, session registry and coordinate generator are swapped
    for the fixture instances, so route tests drive FakeLocationAPI.
    """
    from caselocator.main import app
    from caselocator.services.coordinate_generator import get_coordinate_generator
    from caselocator.services.directory import get_location_directory
    from caselocator.services.session_registry import get_session_registry

    app.dependency_overrides[get_location_directory] = lambda: directory
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_coordinate_generator] = lambda: generator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    await registry.close_all()
