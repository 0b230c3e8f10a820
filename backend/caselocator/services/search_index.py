"""
CaseLocator Backend — Debounced City Search
============================================

What:  Coalesces free-text city queries typed in quick succession into one
       lookup.
How:   Each call waits out the quiescence window (300ms by default). A newer
       call made during that window supersedes the waiting one, which then
       returns None without touching the network. A call whose window has
       elapsed is dispatched and is never cancelled by later typing.
       Dispatch is guarded by the `search-…` RequestKey.
Who:   LocationCascadeController (one index per controller).

Example:
    "lon" then "lond" typed 100ms apart → one lookup, for "lond".
"""

import asyncio
import logging
from typing import Optional

from caselocator.config import settings
from caselocator.schemas.location import City, LookupResult
from caselocator.services.directory import LocationDirectory
from caselocator.services.request_deduplicator import RequestDeduplicator, search_key

logger = logging.getLogger(__name__)


class DebouncedSearchIndex:
    def __init__(
        self,
        directory: LocationDirectory,
        deduplicator: Optional[RequestDeduplicator] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.directory = directory
        self.deduplicator = deduplicator or RequestDeduplicator()
        self.debounce_seconds = (
            settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._ticket = 0
        self.dispatched = 0

    def cancel_pending(self) -> None:
        """Supersede any query still waiting in its window."""
        self._ticket += 1

    async def search(
        self, query: str, country_code: str, state_code: Optional[str] = None
    ) -> Optional[LookupResult[City]]:
        """
        Debounced search for cities matching `query` within a scope.

        Returns:
            The lookup result, or None if this call was superseded during
            its window or an identical search was already in flight.
        """
        self._ticket += 1
        ticket = self._ticket
        await asyncio.sleep(self.debounce_seconds)
        if ticket != self._ticket:
            logger.debug("Search '%s' superseded before dispatch", query)
            return None

        key = search_key(query, country_code, state_code)
        if not self.deduplicator.try_acquire(key):
            return None
        self.dispatched += 1
        try:
            return await self.directory.search_cities(query, country_code, state_code)
        finally:
            self.deduplicator.release(key)
