"""
CaseLocator Backend — Location Directory (Failover Policy)
===========================================================

What:  Composes the remote and fallback providers behind one interface.
How:   Every lookup tries the remote provider once. Any LocationLookupFailed
       (including an open circuit) is replaced by the matching fallback
       subset; the result is tagged with the DataSource that produced it.
Who:   The cascade controller, the debounced search index, and the
       stateless /api/locations routes.

Failover Policy:
    remote OK          → LookupResult(items, REMOTE)   (cities capped at 100)
    remote failed      → LookupResult(fallback, FALLBACK) (cities capped at 50)
    fallback has none  → empty list, free-text entry allowed

A successful-but-empty remote answer is NOT a failure: some countries have
no subdivisions, and the caller moves on to a country-level city list.
"""

import logging
from typing import Optional

from caselocator.config import settings
from caselocator.exceptions import LocationLookupFailed
from caselocator.schemas.location import City, Country, DataSource, LookupResult, State
from caselocator.services.fallback_provider import FallbackLocationProvider, fallback_provider
from caselocator.services.location_provider import LocationProvider
from caselocator.services.remote_provider import remote_provider

logger = logging.getLogger(__name__)


class LocationDirectory:
    def __init__(
        self,
        remote: LocationProvider,
        fallback: Optional[FallbackLocationProvider] = None,
        city_list_limit: Optional[int] = None,
        fallback_city_limit: Optional[int] = None,
        search_result_limit: Optional[int] = None,
    ):
        self.remote = remote
        self.fallback = fallback or fallback_provider
        self.city_list_limit = city_list_limit or settings.city_list_limit
        self.fallback_city_limit = fallback_city_limit or settings.fallback_city_limit
        self.search_result_limit = search_result_limit or settings.search_result_limit

    async def countries(self) -> LookupResult[Country]:
        try:
            items = await self.remote.list_countries()
        except LocationLookupFailed as e:
            self._log_failover("countries", e)
            return LookupResult[Country](
                items=await self.fallback.list_countries(), source=DataSource.FALLBACK
            )
        return LookupResult[Country](items=items)

    async def states(self, country: str) -> LookupResult[State]:
        """States of `country` (code preferred, display name accepted)."""
        try:
            items = await self.remote.list_states(country)
        except LocationLookupFailed as e:
            self._log_failover(f"states of {country}", e)
            return LookupResult[State](
                items=await self.fallback.list_states(country), source=DataSource.FALLBACK
            )
        return LookupResult[State](items=items)

    async def cities(self, country: str, state: Optional[str] = None) -> LookupResult[City]:
        """Cities of a state, or of the whole country when `state` is empty."""
        state = state or None
        try:
            items = await self.remote.list_cities(country, state)
        except LocationLookupFailed as e:
            self._log_failover(f"cities of {country}/{state or '*'}", e)
            items = await self.fallback.list_cities(country, state)
            return LookupResult[City](
                items=items[: self.fallback_city_limit], source=DataSource.FALLBACK
            )
        return LookupResult[City](items=items[: self.city_list_limit])

    async def search_cities(
        self, query: str, country: str, state: Optional[str] = None
    ) -> LookupResult[City]:
        """
        Free-text city search.

        One remote city-list call for the scope, filtered client-side by
        case-insensitive substring and capped. On failure the fallback
        cities of the whole country are filtered the same way.
        """
        needle = query.strip().casefold()
        try:
            items = await self.remote.list_cities(country, state or None)
        except LocationLookupFailed as e:
            self._log_failover(f"city search '{query}' in {country}", e)
            return LookupResult[City](
                items=self.fallback.search_cities(query, country, self.search_result_limit),
                source=DataSource.FALLBACK,
            )
        matches = [city for city in items if needle in city.name.casefold()]
        return LookupResult[City](items=matches[: self.search_result_limit])

    def addresses(self, city: str, query: str) -> LookupResult[str]:
        """Address suggestions; only the bundled table exists for addresses."""
        return LookupResult[str](
            items=self.fallback.addresses_for(city, query), source=DataSource.FALLBACK
        )

    @staticmethod
    def _log_failover(what: str, error: LocationLookupFailed) -> None:
        logger.warning(
            "Remote lookup for %s failed (%s); serving offline data",
            what,
            error.message,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
location_directory = LocationDirectory(remote=remote_provider)


def get_location_directory() -> LocationDirectory:
    """FastAPI dependency; tests override it with a directory over a mock transport."""
    return location_directory
