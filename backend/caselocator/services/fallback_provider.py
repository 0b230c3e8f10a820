"""
CaseLocator Backend — Fallback Location Provider
=================================================

What:  LocationProvider over the bundled dataset in `caselocator.data.world`.
How:   Lookups accept either a code or a display name. Codes are the
       canonical key; names are translated through the name ↔ code tables.
Who:   LocationDirectory (failover), the coordinate generator, and address
       suggestions.

Never raises LocationLookupFailed: an unknown country or state simply
yields an empty list.
"""

import logging
from typing import Dict, List, Optional, Tuple

from caselocator.data import world
from caselocator.schemas.location import City, Coordinates, Country, State
from caselocator.services.location_provider import LocationProvider

logger = logging.getLogger(__name__)


class FallbackLocationProvider(LocationProvider):
    """Offline provider backed by static tables."""

    def __init__(self) -> None:
        self._name_by_code: Dict[str, str] = {
            code: name for name, code in world.COUNTRY_CODES.items()
        }
        self._code_by_folded_name: Dict[str, str] = {
            name.casefold(): code for name, code in world.COUNTRY_CODES.items()
        }

    # ── Key resolution ────────────────────────────────────────────────────

    def country_code_for(self, country: str) -> Optional[str]:
        """Resolve a country code or display name to its ISO alpha-2 code."""
        if not country:
            return None
        candidate = country.strip()
        if candidate.upper() in self._name_by_code:
            return candidate.upper()
        return self._code_by_folded_name.get(candidate.casefold())

    def country_name_for(self, country: str) -> Optional[str]:
        code = self.country_code_for(country)
        return self._name_by_code.get(code) if code else None

    def state_code_for(self, country: str, state: str) -> Optional[str]:
        """Resolve a state code or name within a country to its subdivision code."""
        country_code = self.country_code_for(country)
        if not country_code or not state:
            return None
        candidate = state.strip()
        folded = candidate.casefold()
        for code, name in world.STATES.get(country_code, []):
            if code.upper() == candidate.upper() or name.casefold() == folded:
                return code
        return None

    # ── LocationProvider ──────────────────────────────────────────────────

    async def list_countries(self) -> List[Country]:
        countries = [Country(code=code, name=name) for name, code in world.COUNTRY_CODES.items()]
        countries.sort(key=lambda c: c.name.casefold())
        return countries

    async def list_states(self, country_code: str) -> List[State]:
        code = self.country_code_for(country_code)
        if code is None:
            return []
        return [State(code=s_code, name=s_name) for s_code, s_name in world.STATES.get(code, [])]

    async def list_cities(
        self, country_code: str, state_code: Optional[str] = None
    ) -> List[City]:
        return self._cities(country_code, state_code)

    async def health_check(self) -> bool:
        return True

    # ── Offline-only lookups ──────────────────────────────────────────────

    def search_cities(self, query: str, country: str, limit: int) -> List[City]:
        """Case-insensitive substring match over every city of the country."""
        needle = query.strip().casefold()
        if not needle:
            return []
        matches = [city for city in self._cities(country, None) if needle in city.name.casefold()]
        return matches[:limit]

    def addresses_for(self, city: str, query: str) -> List[str]:
        """Sample street addresses of a city containing `query` (case-insensitive)."""
        needle = query.strip().casefold()
        addresses = world.ADDRESSES.get(city.strip(), [])
        return [address for address in addresses if needle in address.casefold()]

    def coordinates_for(self, country: str) -> Optional[Coordinates]:
        """Representative point for a country name (or code), None if unknown."""
        name = self.country_name_for(country) or country.strip()
        point = world.COUNTRY_COORDINATES.get(name)
        if point is None:
            return None
        return Coordinates(latitude=point[0], longitude=point[1])

    # ── Internals ─────────────────────────────────────────────────────────

    def _cities(self, country: str, state: Optional[str]) -> List[City]:
        country_code = self.country_code_for(country)
        if country_code is None:
            return []
        country_name = self._name_by_code[country_code]
        state_names = dict(world.STATES.get(country_code, []))

        if state:
            state_code = self.state_code_for(country_code, state)
            if state_code is None:
                return []
            scopes: List[Tuple[str, str]] = [(country_code, state_code)]
        else:
            # country-level list: every state of the country that has city data
            scopes = [key for key in world.CITIES if key[0] == country_code]

        cities: List[City] = []
        for scope in scopes:
            for name in world.CITIES.get(scope, []):
                cities.append(
                    City(
                        id=len(cities) + 1,
                        name=name,
                        region=state_names.get(scope[1]),
                        country=country_name,
                    )
                )
        return cities


fallback_provider = FallbackLocationProvider()
