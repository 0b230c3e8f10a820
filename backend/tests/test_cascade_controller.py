"""
CaseLocator Backend — Location Cascade Controller Tests
========================================================

What:  End-to-end cascade behaviour against FakeLocationAPI (online) and
       with every remote call failing (offline).

What we test:
    ✅ Country/State changes reset dependants; edit-mode hydration does not
    ✅ Empty state list → country-level city request
    ✅ Remote failure → fallback lists and the offline notice
    ✅ Coordinate generation: single trigger, never overwriting, regenerate
    ✅ Stale results discarded; deduplicated requests adopted
    ✅ Free-text city search and address suggestions
"""

import asyncio

import pytest

from caselocator.data import world
from caselocator.exceptions import ValidationError
from caselocator.schemas.location import CascadePhase, City, FormLocation
from caselocator.services.cascade_controller import (
    OFFLINE_NOTICE,
    TRANSITIONS,
    LocationCascadeController,
)

from conftest import wait_until

MUNICH_CASE = {"country": "Germany", "state": "Bavaria", "city": "Munich"}


@pytest.fixture
def controller(directory, generator):
    return LocationCascadeController.for_new_case(directory, generator=generator)


@pytest.fixture
def offline(location_api):
    location_api.offline = True
    return location_api


class TestCountryCascade:
    @pytest.mark.asyncio
    async def test_country_change_loads_states(self, controller, location_api):
        await controller.load_countries()
        await controller.change_country("Germany")

        assert [s.name for s in controller.states] == ["Bavaria", "Berlin"]
        assert controller.phase == CascadePhase.SELECTING_STATE
        assert location_api.requests == ["/countries", "/countries/DE/states"]

    @pytest.mark.asyncio
    async def test_country_change_clears_state_city_and_coordinates(self, directory, generator):
        controller = LocationCascadeController.for_new_case(
            directory,
            generator=generator,
            location=FormLocation(
                country="Germany", state="Bavaria", city="Munich",
                address="Marienplatz 1", latitude="51.1657", longitude="10.4515",
            ),
        )

        location = await controller.change_country("United States")

        assert location.country == "United States"
        assert (location.state, location.city, location.latitude, location.longitude) == (
            "", "", "", "",
        )
        assert location.address == "Marienplatz 1"

    @pytest.mark.asyncio
    async def test_clearing_country_returns_to_idle(self, controller, location_api):
        await controller.change_country("Germany")
        await controller.change_country("")

        assert controller.phase == CascadePhase.IDLE
        assert controller.states == []
        assert location_api.count("/countries//states") == 0

    @pytest.mark.asyncio
    async def test_country_without_states_requests_country_level_cities(
        self, controller, location_api
    ):
        await controller.load_countries()
        await controller.change_country("Singapore")

        assert controller.states == []
        assert location_api.requests[-2:] == ["/countries/SG/states", "/countries/SG/cities"]
        assert [c.name for c in controller.cities] == ["Singapore"]
        assert controller.phase == CascadePhase.READY

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", sorted(world.STATES))
    async def test_offline_states_equal_fallback_entries(
        self, controller, fallback, offline, code
    ):
        name = fallback.country_name_for(code)
        await controller.load_countries()

        await controller.change_country(name)

        assert controller.states == await fallback.list_states(code)
        assert controller.snapshot().offline_notice == OFFLINE_NOTICE

    @pytest.mark.asyncio
    async def test_offline_country_without_fallback_states(self, controller, offline):
        await controller.load_countries()
        await controller.change_country("Japan")

        assert "/countries/JP/cities" in offline.requests
        assert controller.cities == []
        assert controller.phase == CascadePhase.READY

    @pytest.mark.asyncio
    async def test_online_snapshot_has_no_offline_notice(self, controller):
        await controller.load_countries()
        await controller.change_country("Germany")

        assert controller.snapshot().offline_notice is None


class TestStateCascade:
    @pytest.mark.asyncio
    async def test_state_change_loads_cities(self, controller, location_api):
        await controller.change_country("Germany")
        await controller.change_state("Bavaria")

        assert [c.name for c in controller.cities] == ["Munich", "Nuremberg"]
        assert location_api.requests[-1] == "/countries/DE/states/BY/cities"
        assert controller.phase == CascadePhase.READY

    @pytest.mark.asyncio
    async def test_state_change_clears_city_and_coordinates(self, controller):
        await controller.change_country("Germany")
        await controller.change_state("Bavaria")
        controller.select_city(controller.cities[0])
        await controller.settle()
        assert controller.location.has_coordinates

        location = await controller.change_state("Berlin")

        assert (location.city, location.latitude, location.longitude) == ("", "", "")
        assert controller.cities == []

    @pytest.mark.asyncio
    async def test_offline_state_cities_use_fallback(self, controller, offline):
        await controller.load_countries()
        await controller.change_country("United States")
        await controller.change_state("Texas")

        assert controller.cities[0].name == "Houston"
        assert controller.cities[0].region == "Texas"


class TestCoordinates:
    @pytest.mark.asyncio
    async def test_city_selection_generates_coordinates(self, controller, generator):
        await controller.change_country("United States")
        await controller.change_state("California")

        task = controller.select_city(controller.cities[0])
        assert task is not None
        assert controller.snapshot().loading.loading_coordinates
        await controller.settle()

        assert controller.location.city == "Los Angeles"
        assert (controller.location.latitude, controller.location.longitude) == (
            "39.8283", "-98.5795",
        )
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_repeated_selection_reuses_pending_generation(self, directory, generator):
        controller = LocationCascadeController.for_new_case(
            directory, generator=generator, city_select_delay=0.02
        )
        await controller.change_country("United States")

        first = controller.select_city("Los Angeles")
        second = controller.select_city("San Diego")
        await controller.settle()

        assert first is second
        assert generator.calls == 1
        assert controller.location.city == "San Diego"

    @pytest.mark.asyncio
    async def test_existing_coordinates_are_not_overwritten(self, directory, generator):
        controller = LocationCascadeController.for_new_case(
            directory,
            generator=generator,
            location=FormLocation(country="United States", latitude="34.05", longitude="-118.24"),
        )

        assert controller.select_city("Los Angeles") is None
        await controller.settle()

        assert (controller.location.latitude, controller.location.longitude) == (
            "34.05", "-118.24",
        )
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_regenerate_overwrites(self, directory, generator):
        controller = LocationCascadeController.for_new_case(
            directory,
            generator=generator,
            location=FormLocation(country="Atlantis", latitude="1.5", longitude="2.5"),
        )

        location = await controller.regenerate_coordinates()

        assert (location.latitude, location.longitude) == ("0", "0")

    @pytest.mark.asyncio
    async def test_regenerate_requires_country(self, controller):
        with pytest.raises(ValidationError) as exc_info:
            await controller.regenerate_coordinates()
        assert exc_info.value.field == "country"

    @pytest.mark.asyncio
    async def test_country_change_discards_pending_generation(self, directory, generator):
        controller = LocationCascadeController.for_new_case(
            directory, generator=generator, city_select_delay=0.02
        )
        await controller.change_country("United States")
        controller.select_city("Los Angeles")

        await controller.change_country("Germany")
        await controller.settle()
        await asyncio.sleep(0.03)

        assert not controller.location.has_coordinates
        assert generator.calls == 0


class TestStaleness:
    @pytest.mark.asyncio
    async def test_superseded_country_result_is_discarded(self, controller, location_api):
        gate = location_api.gate("/countries/US/states")

        slow = asyncio.create_task(controller.change_country("United States"))
        await wait_until(lambda: location_api.count("/countries/US/states") == 1)
        await controller.change_country("Germany")
        gate.set()
        await slow

        assert controller.location.country == "Germany"
        assert [s.name for s in controller.states] == ["Bavaria", "Berlin"]

    @pytest.mark.asyncio
    async def test_deduplicated_request_is_adopted(self, controller, location_api):
        gate = location_api.gate("/countries/US/states")

        first = asyncio.create_task(controller.change_country("United States"))
        await wait_until(lambda: location_api.count("/countries/US/states") == 1)
        await controller.change_country("Germany")
        await controller.change_country("United States")
        assert controller.snapshot().loading.loading_states
        gate.set()
        await first

        assert location_api.count("/countries/US/states") == 1
        assert [s.name for s in controller.states] == ["California", "New York"]
        assert controller.phase == CascadePhase.SELECTING_STATE
        assert not controller.snapshot().loading.loading_states

    @pytest.mark.asyncio
    async def test_superseded_state_cities_are_discarded(self, controller, location_api):
        await controller.change_country("United States")
        gate = location_api.gate("/countries/US/states/CA/cities")

        slow = asyncio.create_task(controller.change_state("California"))
        await wait_until(lambda: location_api.count("/countries/US/states/CA/cities") == 1)
        await controller.change_state("New York")
        gate.set()
        await slow

        assert controller.location.state == "New York"
        assert [c.name for c in controller.cities] == ["New York City"]
        assert controller.phase == CascadePhase.READY

    def test_transition_table(self):
        assert TRANSITIONS["country_hydrated"] == {CascadePhase.IDLE: CascadePhase.AWAITING_STATES}
        assert CascadePhase.IDLE not in TRANSITIONS["cities_loaded"]
        assert all(
            target == CascadePhase.AWAITING_STATES
            for target in TRANSITIONS["country_selected"].values()
        )


class TestEditModeHydration:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_offline", [False, True])
    async def test_round_trip_keeps_values(self, directory, generator, location_api, api_offline):
        location_api.offline = api_offline
        controller = LocationCascadeController.for_existing_case(
            directory, MUNICH_CASE, generator=generator
        )
        assert controller.hydrating

        location = await controller.hydrate()

        assert (location.country, location.state, location.city) == ("Germany", "Bavaria", "Munich")
        assert "Bavaria" in [s.name for s in controller.states]
        assert "Munich" in [c.name for c in controller.cities]
        assert controller.phase == CascadePhase.READY
        assert not controller.hydrating
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_hydration_keeps_stored_coordinates(self, directory, generator):
        record = dict(MUNICH_CASE, gpsCoordinates="POINT(11.5755 48.1374)")
        controller = LocationCascadeController.for_existing_case(
            directory, record, generator=generator
        )

        location = await controller.hydrate()

        assert (location.latitude, location.longitude) == ("48.1374", "11.5755")

    @pytest.mark.asyncio
    async def test_reset_suppression_is_one_shot(self, directory, generator):
        controller = LocationCascadeController.for_existing_case(
            directory, MUNICH_CASE, generator=generator
        )
        await controller.hydrate()

        location = await controller.change_country("Germany")

        assert (location.state, location.city) == ("", "")

    @pytest.mark.asyncio
    async def test_record_without_country_is_not_hydrating(self, directory, generator):
        controller = LocationCascadeController.for_existing_case(
            directory, {"address": "1 Main St"}, generator=generator
        )
        assert not controller.hydrating


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_free_text_city_searches_while_no_list(self, controller, location_api):
        await controller.change_country("Germany")

        await controller.change_city("mun")

        assert controller.location.city == "mun"
        assert [c.name for c in controller.city_suggestions] == ["Munich"]
        assert controller.show_city_suggestions
        assert "/countries/DE/cities" in location_api.requests

        controller.select_city(controller.city_suggestions[0])
        assert controller.location.city == "Munich"
        assert not controller.show_city_suggestions
        await controller.settle()
        assert controller.location.latitude == "51.1657"

    @pytest.mark.asyncio
    async def test_search_skipped_once_city_list_loaded(self, controller, location_api):
        await controller.change_country("Germany")
        await controller.change_state("Bavaria")
        before = list(location_api.requests)

        assert await controller.search_city("Mun") == []
        assert location_api.requests == before

    @pytest.mark.asyncio
    async def test_short_query_clears_suggestions(self, controller):
        await controller.change_country("Germany")
        await controller.search_city("mun")
        assert controller.city_suggestions

        assert await controller.search_city("m") == []
        assert not controller.show_city_suggestions

    @pytest.mark.asyncio
    async def test_address_suggestions(self, controller):
        await controller.change_country("United States")
        await controller.change_state("California")
        controller.select_city(City(id=110992, name="Los Angeles"))

        assert controller.search_address("sun") == ["456 Sunset Strip"]
        assert controller.show_address_suggestions

        controller.select_address("456 Sunset Strip")
        assert controller.location.address == "456 Sunset Strip"
        assert not controller.show_address_suggestions

        assert controller.search_address("s") == []
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_address_requires_city(self, controller):
        assert controller.search_address("main") == []
        assert not controller.show_address_suggestions
