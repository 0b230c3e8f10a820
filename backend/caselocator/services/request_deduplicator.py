"""
CaseLocator Backend — Request Deduplicator
===========================================

What:  Tracks in-flight RequestKeys so identical concurrent fetches are not
       reissued.
How:   A set of outstanding keys. `try_acquire` claims a key; the caller
       MUST `release` it when the request settles, success or failure
       (use try/finally).
Who:   One instance per cascade controller, shared with its search index.

RequestKey formats:
    countries
    states-{countryCode}
    cities-{countryCode}-{stateCode}      (empty state segment = country-level)
    search-{query}-{countryCode}-{stateCode}

Guarantees at most one concurrent fetch per key. Does not guarantee
freshness: there is no per-key sequence numbering.
"""

import logging
from typing import Optional, Set

logger = logging.getLogger(__name__)


def countries_key() -> str:
    return "countries"


def states_key(country_code: str) -> str:
    return f"states-{country_code}"


def cities_key(country_code: str, state_code: Optional[str] = None) -> str:
    return f"cities-{country_code}-{state_code or ''}"


def search_key(query: str, country_code: str, state_code: Optional[str] = None) -> str:
    return f"search-{query}-{country_code}-{state_code or ''}"


class RequestDeduplicator:
    def __init__(self) -> None:
        self._pending: Set[str] = set()

    def try_acquire(self, key: str) -> bool:
        """Claim `key`. False if an identical request is already outstanding."""
        if key in self._pending:
            logger.debug("Request %s already in flight; skipping", key)
            return False
        self._pending.add(key)
        return True

    def release(self, key: str) -> None:
        self._pending.discard(key)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def has_pending(self, prefix: str) -> bool:
        """True if any outstanding key starts with `prefix` (e.g. 'states-')."""
        return any(key.startswith(prefix) for key in self._pending)

    def __len__(self) -> int:
        return len(self._pending)
