"""
CaseLocator Backend — Abstract Location Provider Interface
===========================================================

What:  Abstract base class defining the contract for hierarchical location
       lookups (countries → states → cities).
How:   RemoteLocationProvider (live API) and FallbackLocationProvider
       (bundled dataset) both implement it, so LocationDirectory can swap
       one for the other without the cascade controller noticing.
Who:   Called by LocationDirectory and the debounced search index.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from caselocator.schemas.location import City, Country, State


class LocationProvider(ABC):
    """
    Abstract interface for location lookups.

    Contract:
        - Each call performs at most one underlying lookup
        - No retries inside the provider; failover is the caller's job
        - Implementation-specific errors are wrapped in LocationLookupFailed
        - Lists are returned whole; callers replace, never merge
    """

    @abstractmethod
    async def list_countries(self) -> List[Country]:
        """
        Return all countries, sorted by display name.

        Raises:
            LocationLookupFailed: When the lookup cannot be completed.
        """
        ...

    @abstractmethod
    async def list_states(self, country_code: str) -> List[State]:
        """
        Return the states of one country.

        An empty list is a valid answer: some countries have no
        subdivision data, in which case callers load cities directly.

        Raises:
            LocationLookupFailed: When the lookup cannot be completed.
        """
        ...

    @abstractmethod
    async def list_cities(
        self, country_code: str, state_code: Optional[str] = None
    ) -> List[City]:
        """
        Return the cities of a country, or of one of its states.

        Args:
            country_code: ISO alpha-2 code of the country.
            state_code:   Subdivision code; None for a country-level list.

        Raises:
            LocationLookupFailed: When the lookup cannot be completed.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the provider can currently serve lookups. Never raises."""
        ...
