"""
CaseLocator Backend — Remote Provider Tests (Mock Transport)
=============================================================

What:  RemoteLocationProvider against FakeLocationAPI via httpx.MockTransport.

What we test:
    ✅ Record parsing, sorting, and the endpoint used for each operation
    ✅ API key header (including an empty key)
    ✅ Any failure → LocationLookupFailed, with no retry
    ✅ Circuit breaker state machine and fail-fast when open
    ❌ The real Country State City API
"""

import time

import httpx
import pytest

from caselocator.exceptions import LocationLookupFailed, ProviderOfflineError
from caselocator.services.remote_provider import CircuitBreaker

from conftest import build_remote


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute() is True

    def test_opens_at_threshold_and_rejects(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.state == "open"

        with pytest.raises(ProviderOfflineError) as exc_info:
            cb.can_execute()
        assert 0 < exc_info.value.recovery_time <= 60

    def test_offline_error_is_a_lookup_failure(self):
        """Callers fail over on LocationLookupFailed; an open circuit must match it."""
        assert issubclass(ProviderOfflineError, LocationLookupFailed)

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == "closed"

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        assert cb.state == "open"
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_half_open_admits_a_single_request(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        with pytest.raises(ProviderOfflineError):
            cb.can_execute()

        cb.record_success()
        assert cb.can_execute() is True

    def test_failure_in_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        cb.can_execute()
        cb.record_failure()
        assert cb.state == "open"

    def test_success_in_half_open_closes(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        cb.can_execute()
        cb.record_success()
        assert cb.state == "closed"


class TestRemoteLocationProvider:
    @pytest.mark.asyncio
    async def test_list_countries_sorted_by_name(self, remote, location_api):
        countries = await remote.list_countries()

        assert [c.name for c in countries] == [
            "Germany", "Singapore", "United Kingdom", "United States",
        ]
        assert countries[0].code == "DE"
        assert location_api.requests == ["/countries"]

    @pytest.mark.asyncio
    async def test_sends_api_key_header(self, remote, location_api):
        await remote.list_countries()
        assert location_api.headers[0]["X-CSCAPI-KEY"] == "test-key"

    @pytest.mark.asyncio
    async def test_empty_key_is_still_sent_and_fails(self, location_api):
        provider = build_remote(location_api, api_key="")
        try:
            with pytest.raises(LocationLookupFailed) as exc_info:
                await provider.list_countries()
        finally:
            await provider.aclose()

        assert location_api.headers[0]["X-CSCAPI-KEY"] == ""
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_list_states(self, remote, location_api):
        states = await remote.list_states("DE")

        assert [(s.code, s.name) for s in states] == [("BY", "Bavaria"), ("BE", "Berlin")]
        assert location_api.requests == ["/countries/DE/states"]

    @pytest.mark.asyncio
    async def test_country_without_states_returns_empty_list(self, remote):
        assert await remote.list_states("SG") == []

    @pytest.mark.asyncio
    async def test_list_cities_of_state(self, remote, location_api):
        cities = await remote.list_cities("DE", "BY")

        assert [c.name for c in cities] == ["Munich", "Nuremberg"]
        assert cities[0].id == 28930
        assert location_api.requests == ["/countries/DE/states/BY/cities"]

    @pytest.mark.asyncio
    async def test_list_cities_of_country(self, remote, location_api):
        cities = await remote.list_cities("SG")

        assert [c.name for c in cities] == ["Singapore"]
        assert location_api.requests == ["/countries/SG/cities"]

    @pytest.mark.asyncio
    async def test_server_error_raises_lookup_failed_without_retry(self, remote, location_api):
        location_api.offline = True

        with pytest.raises(LocationLookupFailed) as exc_info:
            await remote.list_states("US")

        assert exc_info.value.status_code == 500
        assert exc_info.value.operation == "states"
        assert location_api.count("/countries/US/states") == 1

    @pytest.mark.asyncio
    async def test_transport_error_raises_lookup_failed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = build_remote(handler=handler)
        try:
            with pytest.raises(LocationLookupFailed):
                await provider.list_countries()
        finally:
            await provider.aclose()

    @pytest.mark.asyncio
    async def test_timeout_is_indistinguishable_from_other_failures(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = build_remote(handler=handler)
        try:
            with pytest.raises(LocationLookupFailed) as exc_info:
                await provider.list_cities("US", "CA")
        finally:
            await provider.aclose()

        assert type(exc_info.value) is LocationLookupFailed
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_unexpected_payload_raises_lookup_failed(self, remote, location_api):
        location_api.countries = {"error": "quota exceeded"}

        with pytest.raises(LocationLookupFailed):
            await remote.list_countries()

    @pytest.mark.asyncio
    async def test_open_circuit_fails_fast_without_request(self, location_api):
        provider = build_remote(location_api, circuit_breaker=CircuitBreaker(2, 60))
        location_api.offline = True
        try:
            for _ in range(2):
                with pytest.raises(LocationLookupFailed):
                    await provider.list_countries()

            with pytest.raises(ProviderOfflineError):
                await provider.list_countries()
        finally:
            await provider.aclose()

        assert location_api.count("/countries") == 2

    @pytest.mark.asyncio
    async def test_health_check(self, remote, location_api):
        assert await remote.health_check() is True

        location_api.offline = True
        assert await remote.health_check() is False

    @pytest.mark.asyncio
    async def test_hung_health_check_is_bounded(self, remote, location_api):
        location_api.gate("/countries")
        remote.health_timeout = 0.05

        assert await remote.health_check() is False
        assert remote.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_malformed_record_raises_lookup_failed(self, remote, location_api):
        location_api.cities[("US", "CA")] = [{"id": "n/a", "name": "Los Angeles"}]

        with pytest.raises(LocationLookupFailed) as exc_info:
            await remote.list_cities("US", "CA")

        assert exc_info.value.operation == "cities"
        assert remote.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_rows_missing_required_fields_are_skipped(self, remote, location_api):
        location_api.countries.append({"id": 999, "name": "Nowhere"})

        countries = await remote.list_countries()

        assert "Nowhere" not in [c.name for c in countries]
        assert len(countries) == 4
