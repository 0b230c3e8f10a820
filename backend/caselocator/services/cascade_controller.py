"""
CaseLocator Backend — Location Cascade Controller
==================================================

What:  Keeps one form's Country → State → City → Coordinates selections
       mutually consistent while the user edits them.
How:   An explicit state machine (CascadePhase + transition table) drives
       the cascade; list lookups go through the LocationDirectory (which
       owns failover) behind a per-session RequestDeduplicator.
Who:   One controller per form session (see SessionRegistry). It is the
       only writer of its FormLocation.

Cascade:
    country C  → clear state/city/coordinates, load states of C
    states []  → load cities of C with no state qualifier
    state S    → clear city/coordinates, load cities of C+S
    city       → after 100ms, generate coordinates for C unless already set

Edit mode:
    A controller opened on an existing case is "hydrating": the first
    country cascade keeps the pre-filled state/city/coordinates instead of
    clearing them ("country_hydrated" instead of "country_selected").

Staleness:
    Each list family carries a generation counter bumped by every cascade
    step that invalidates it. A settled result whose generation is older
    than the current one is discarded. When the deduplicator skips a
    request because the same key is already in flight, the newer
    generation adopts that in-flight request so its result still applies.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Union

from caselocator.config import settings
from caselocator.exceptions import ValidationError
from caselocator.schemas.location import (
    CascadePhase,
    CascadeSnapshot,
    City,
    Country,
    DataSource,
    FormLocation,
    LoadingState,
    LookupResult,
    State,
)
from caselocator.services.coordinate_generator import CoordinateGenerator, coordinate_generator
from caselocator.services.directory import LocationDirectory
from caselocator.services.request_deduplicator import (
    RequestDeduplicator,
    cities_key,
    countries_key,
    states_key,
)
from caselocator.services.search_index import DebouncedSearchIndex

logger = logging.getLogger(__name__)

OFFLINE_NOTICE = (
    "Using offline country data. For full location features, "
    "configure the Country State City API."
)

_ANY = tuple(CascadePhase)

# event → {from phase: to phase}; events missing for the current phase are ignored
TRANSITIONS: Dict[str, Dict[CascadePhase, CascadePhase]] = {
    "country_selected": {phase: CascadePhase.AWAITING_STATES for phase in _ANY},
    "country_hydrated": {CascadePhase.IDLE: CascadePhase.AWAITING_STATES},
    "country_cleared": {phase: CascadePhase.IDLE for phase in _ANY},
    "states_loaded": {CascadePhase.AWAITING_STATES: CascadePhase.SELECTING_STATE},
    "states_empty": {CascadePhase.AWAITING_STATES: CascadePhase.AWAITING_CITIES},
    "state_selected": {
        CascadePhase.AWAITING_STATES: CascadePhase.AWAITING_CITIES,
        CascadePhase.SELECTING_STATE: CascadePhase.AWAITING_CITIES,
        CascadePhase.AWAITING_CITIES: CascadePhase.AWAITING_CITIES,
        CascadePhase.READY: CascadePhase.AWAITING_CITIES,
    },
    "state_hydrated": {CascadePhase.SELECTING_STATE: CascadePhase.AWAITING_CITIES},
    "state_cleared": {
        CascadePhase.AWAITING_CITIES: CascadePhase.SELECTING_STATE,
        CascadePhase.READY: CascadePhase.SELECTING_STATE,
    },
    "cities_loaded": {CascadePhase.AWAITING_CITIES: CascadePhase.READY},
}


class LocationCascadeController:
    def __init__(
        self,
        directory: LocationDirectory,
        location: Optional[FormLocation] = None,
        hydrating: bool = False,
        deduplicator: Optional[RequestDeduplicator] = None,
        search_index: Optional[DebouncedSearchIndex] = None,
        generator: Optional[CoordinateGenerator] = None,
        city_select_delay: Optional[float] = None,
        session_id: Optional[str] = None,
    ):
        self.directory = directory
        self.location = location or FormLocation()
        self.session_id = session_id
        self.phase = CascadePhase.IDLE
        self.deduplicator = deduplicator or RequestDeduplicator()
        self.search_index = search_index or DebouncedSearchIndex(directory, self.deduplicator)
        self.generator = generator or coordinate_generator
        self.city_select_delay = (
            settings.city_select_delay_seconds if city_select_delay is None else city_select_delay
        )

        self.countries: List[Country] = []
        self.states: List[State] = []
        self.cities: List[City] = []
        self.city_suggestions: List[City] = []
        self.address_suggestions: List[str] = []
        self.show_city_suggestions = False
        self.show_address_suggestions = False

        self._hydrating = hydrating
        self._generations: Dict[str, int] = {
            "countries": 0,
            "states": 0,
            "cities": 0,
            "coordinates": 0,
        }
        self._adopted: Dict[str, int] = {}
        self._sources: Dict[str, DataSource] = {}
        self._search_scope: Optional[tuple] = None
        self._coordinate_task: Optional[asyncio.Task] = None
        self._coordinate_task_generation = -1
        self._generating = 0

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def for_new_case(cls, directory: LocationDirectory, **kwargs) -> "LocationCascadeController":
        return cls(directory, **kwargs)

    @classmethod
    def for_existing_case(
        cls, directory: LocationDirectory, record: Optional[dict], **kwargs
    ) -> "LocationCascadeController":
        """Open a controller pre-populated from a persisted case record."""
        location = FormLocation.from_case_record(record)
        return cls(directory, location=location, hydrating=bool(location.country), **kwargs)

    @property
    def hydrating(self) -> bool:
        return self._hydrating

    # ── Lists ─────────────────────────────────────────────────────────────

    async def load_countries(self) -> List[Country]:
        gen = self._bump("countries")
        result = await self._fetch(
            "countries", countries_key(), gen, self.directory.countries
        )
        if result is not None:
            self.countries = result.items
        return self.countries

    async def hydrate(self) -> FormLocation:
        """
        Re-derive the cascade for a pre-filled location without resetting it.

        Loads countries, cascades the stored country, then (once its states
        are known) loads the cities of the stored state.
        """
        await self.load_countries()
        if self.location.country:
            await self.change_country(self.location.country)
            if self.location.state and self.states:
                await self._cascade_state(self.location.state, reset=False)
        self._hydrating = False
        return self.location

    # ── Field changes ─────────────────────────────────────────────────────

    async def change_country(self, value: str) -> FormLocation:
        """
        Country changed: clear dependants and load its states.

        The very first call on a hydrating controller keeps the pre-filled
        state, city and coordinates.
        """
        keep_dependants = self._hydrating
        self._hydrating = False

        if keep_dependants:
            self.location = self.location.model_copy(update={"country": value})
            self._transition("country_hydrated")
        else:
            self.location = self.location.model_copy(
                update={"country": value, "state": "", "city": "", "latitude": "", "longitude": ""}
            )
            self._transition("country_cleared" if not value else "country_selected")

        self.states = []
        self.cities = []
        self._clear_city_suggestions()
        self._clear_address_suggestions()
        self._bump("cities")
        self._invalidate_coordinates()
        gen = self._bump("states")

        if not value:
            return self.location

        country_code = self._country_code(value)
        result = await self._fetch(
            "states",
            states_key(country_code),
            gen,
            lambda: self.directory.states(country_code),
        )
        if result is None:
            return self.location

        self.states = result.items
        if result.items:
            self._transition("states_loaded")
        elif self.phase == CascadePhase.AWAITING_STATES:
            self._transition("states_empty")
            await self._load_cities(country_code, None)
        return self.location

    async def change_state(self, value: str) -> FormLocation:
        """State changed: clear city and coordinates, load the state's cities."""
        return await self._cascade_state(value, reset=True)

    async def change_city(self, value: str) -> FormLocation:
        """
        Free-text city entry.

        While no city list is loaded for the current scope the text is
        forwarded to the debounced search; otherwise it is just stored.
        Typing alone does not trigger coordinate generation.
        """
        self.location = self.location.model_copy(update={"city": value})
        self._clear_address_suggestions()
        if not self.cities:
            await self.search_city(value)
        return self.location

    def select_city(self, city: Union[City, str]) -> Optional[asyncio.Task]:
        """
        City chosen from the dropdown or the suggestion list.

        Schedules coordinate generation unless coordinates are already set.
        Returns the pending generation task, if any.
        """
        name = city.name if isinstance(city, City) else city
        self.location = self.location.model_copy(update={"city": name})
        self._clear_city_suggestions()
        return self._schedule_coordinates()

    async def search_city(self, query: str) -> List[City]:
        """Debounced free-text city search populating the suggestion list."""
        if self.cities or len(query.strip()) < settings.search_min_query_length:
            self.search_index.cancel_pending()
            self._clear_city_suggestions()
            return self.city_suggestions
        if not self.location.country:
            self._clear_city_suggestions()
            return self.city_suggestions

        country_code = self._country_code(self.location.country)
        state_code = self._state_code(self.location.state) if self.location.state else None
        scope = (query, country_code, state_code)
        self._search_scope = scope

        result = await self.search_index.search(query, country_code, state_code)
        if result is None or self._search_scope != scope:
            return self.city_suggestions
        self._sources["search"] = result.source
        self.city_suggestions = result.items
        self.show_city_suggestions = bool(result.items)
        return self.city_suggestions

    def search_address(self, query: str) -> List[str]:
        """Address suggestions for the selected city (offline table only)."""
        self.location = self.location.model_copy(update={"address": query})
        if len(query.strip()) < settings.search_min_query_length or not self.location.city:
            self._clear_address_suggestions()
            return self.address_suggestions
        result = self.directory.addresses(self.location.city, query)
        self.address_suggestions = result.items
        self.show_address_suggestions = bool(result.items)
        return self.address_suggestions

    def select_address(self, address: str) -> FormLocation:
        self.location = self.location.model_copy(update={"address": address})
        self._clear_address_suggestions()
        return self.location

    # ── Coordinates ───────────────────────────────────────────────────────

    async def regenerate_coordinates(self) -> FormLocation:
        """Explicit regenerate: overwrites existing coordinates."""
        if not self.location.country:
            raise ValidationError(
                message="Select a country before generating coordinates",
                field="country",
            )
        gen = self._invalidate_coordinates()
        country = self.location.country
        self._generating += 1
        try:
            coordinates = await self.generator.generate(country)
        finally:
            self._generating -= 1
        if gen == self._generations["coordinates"]:
            self.location = self.location.with_coordinates(coordinates)
        return self.location

    async def settle(self) -> FormLocation:
        """Wait for a scheduled coordinate generation, if one is pending."""
        task = self._coordinate_task
        if task is not None and not task.done():
            await asyncio.wait({task})
        return self.location

    # ── Views ─────────────────────────────────────────────────────────────

    def snapshot(self) -> CascadeSnapshot:
        offline = any(source == DataSource.FALLBACK for source in self._sources.values())
        return CascadeSnapshot(
            session_id=self.session_id,
            location=self.location,
            phase=self.phase,
            hydrating=self._hydrating,
            countries=self.countries,
            states=self.states,
            cities=self.cities,
            city_suggestions=self.city_suggestions,
            address_suggestions=self.address_suggestions,
            show_city_suggestions=self.show_city_suggestions,
            show_address_suggestions=self.show_address_suggestions,
            loading=LoadingState(
                loading_countries=self.deduplicator.is_pending(countries_key()),
                loading_states=self.deduplicator.has_pending("states-"),
                loading_cities=self.deduplicator.has_pending("cities-"),
                loading_coordinates=self._coordinates_pending(),
            ),
            offline_notice=OFFLINE_NOTICE if offline else None,
        )

    async def aclose(self) -> None:
        self.search_index.cancel_pending()
        task = self._coordinate_task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

    # ── Internals ─────────────────────────────────────────────────────────

    def _transition(self, event: str) -> None:
        target = TRANSITIONS[event].get(self.phase)
        if target is None:
            logger.debug("Cascade event %s ignored in phase %s", event, self.phase.value)
            return
        self.phase = target

    def _bump(self, family: str) -> int:
        self._generations[family] += 1
        return self._generations[family]

    async def _fetch(
        self,
        family: str,
        key: str,
        gen: int,
        call: Callable[[], Awaitable[LookupResult]],
    ) -> Optional[LookupResult]:
        """
        Run one deduplicated lookup and return its result if still current.

        Returns None when the key was already in flight (the in-flight
        request is adopted by `gen`) or when the result is stale.
        """
        if not self.deduplicator.try_acquire(key):
            self._adopted[key] = max(gen, self._adopted.get(key, gen))
            return None
        try:
            result = await call()
        finally:
            self.deduplicator.release(key)
            adopted = self._adopted.pop(key, gen)

        effective = max(gen, adopted)
        if effective != self._generations[family]:
            logger.debug(
                "Discarding stale %s result for %s (generation %d, current %d)",
                family,
                key,
                effective,
                self._generations[family],
            )
            return None
        self._sources[family] = result.source
        return result

    async def _cascade_state(self, value: str, reset: bool) -> FormLocation:
        if reset:
            self.location = self.location.model_copy(
                update={"state": value, "city": "", "latitude": "", "longitude": ""}
            )
            self._invalidate_coordinates()
        else:
            self.location = self.location.model_copy(update={"state": value})
        self.cities = []
        self._clear_city_suggestions()
        self._clear_address_suggestions()
        self._bump("cities")

        if not self.location.country:
            return self.location
        if not value and self.states:
            self._transition("state_cleared")
            return self.location

        self._transition("state_selected" if reset else "state_hydrated")
        country_code = self._country_code(self.location.country)
        state_code = self._state_code(value) if value else None
        await self._load_cities(country_code, state_code)
        return self.location

    async def _load_cities(self, country_code: str, state_code: Optional[str]) -> None:
        gen = self._generations["cities"]
        result = await self._fetch(
            "cities",
            cities_key(country_code, state_code),
            gen,
            lambda: self.directory.cities(country_code, state_code),
        )
        if result is None:
            return
        self.cities = result.items
        self._transition("cities_loaded")

    def _country_code(self, country: str) -> str:
        folded = country.strip().casefold()
        for item in self.countries:
            if item.name.casefold() == folded or item.code.casefold() == folded:
                return item.code
        return self.directory.fallback.country_code_for(country) or country

    def _state_code(self, state: str) -> str:
        folded = state.strip().casefold()
        for item in self.states:
            if item.name.casefold() == folded or item.code.casefold() == folded:
                return item.code
        return self.directory.fallback.state_code_for(self.location.country, state) or state

    def _clear_city_suggestions(self) -> None:
        self._search_scope = None
        self.city_suggestions = []
        self.show_city_suggestions = False

    def _clear_address_suggestions(self) -> None:
        self.address_suggestions = []
        self.show_address_suggestions = False

    def _invalidate_coordinates(self) -> int:
        gen = self._bump("coordinates")
        task = self._coordinate_task
        if task is not None and not task.done():
            task.cancel()
        self._coordinate_task = None
        return gen

    def _coordinates_pending(self) -> bool:
        task = self._coordinate_task
        return self._generating > 0 or (task is not None and not task.done())

    def _schedule_coordinates(self) -> Optional[asyncio.Task]:
        if not self.location.city or not self.location.country or self.location.has_coordinates:
            return None
        gen = self._generations["coordinates"]
        task = self._coordinate_task
        if task is not None and not task.done() and self._coordinate_task_generation == gen:
            return task
        self._coordinate_task = asyncio.create_task(self._generate_after_delay(gen))
        self._coordinate_task_generation = gen
        return self._coordinate_task

    async def _generate_after_delay(self, gen: int) -> None:
        await asyncio.sleep(self.city_select_delay)
        if gen != self._generations["coordinates"] or self.location.has_coordinates:
            return
        coordinates = await self.generator.generate(self.location.country)
        if gen != self._generations["coordinates"] or self.location.has_coordinates:
            logger.debug("Discarding generated coordinates (generation %d superseded)", gen)
            return
        self.location = self.location.with_coordinates(coordinates)
        logger.info(
            "Coordinates for %s set to %s, %s",
            self.location.country,
            self.location.latitude,
            self.location.longitude,
        )
