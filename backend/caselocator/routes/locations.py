"""
CaseLocator Backend — Stateless Location Lookup Routes
=======================================================

What:  GET endpoints over the LocationDirectory and CoordinateGenerator.
How:   Each handler makes one directory call and returns its LookupResult,
       whose `source` tells the client whether offline data was served.
Who:   Case forms that manage their own cascade state, and admin tooling.

Failover is invisible here: a remote failure never produces an error
response, only `"source": "fallback"`.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from caselocator.schemas.location import (
    City,
    CoordinatesResponse,
    Country,
    LookupResult,
    State,
    format_coordinate,
)
from caselocator.services.coordinate_generator import (
    CoordinateGenerator,
    get_coordinate_generator,
)
from caselocator.services.directory import LocationDirectory, get_location_directory

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/locations", tags=["Locations"])


@router.get(
    "/countries",
    response_model=LookupResult[Country],
    summary="List countries",
)
async def list_countries(
    directory: LocationDirectory = Depends(get_location_directory),
) -> LookupResult[Country]:
    return await directory.countries()


@router.get(
    "/countries/{country_code}/states",
    response_model=LookupResult[State],
    summary="List the states of a country",
    description=(
        "An empty list means the country has no subdivision data; load its "
        "cities directly instead."
    ),
)
async def list_states(
    country_code: str,
    directory: LocationDirectory = Depends(get_location_directory),
) -> LookupResult[State]:
    return await directory.states(country_code)


@router.get(
    "/countries/{country_code}/cities",
    response_model=LookupResult[City],
    summary="List the cities of a country or of one of its states",
)
async def list_cities(
    country_code: str,
    state: Optional[str] = Query(default=None, max_length=50, description="State code"),
    directory: LocationDirectory = Depends(get_location_directory),
) -> LookupResult[City]:
    return await directory.cities(country_code, state)


@router.get(
    "/cities/search",
    response_model=LookupResult[City],
    responses={422: {"description": "Query too short or too long"}},
    summary="Free-text city search",
    description=(
        "Case-insensitive substring match over the cities of a country "
        "(optionally one state), first 10 results. Not debounced: clients "
        "calling this directly should debounce keystrokes themselves."
    ),
)
async def search_cities(
    q: str = Query(..., min_length=2, max_length=100),
    country: str = Query(..., min_length=1, max_length=100),
    state: Optional[str] = Query(default=None, max_length=50),
    directory: LocationDirectory = Depends(get_location_directory),
) -> LookupResult[City]:
    return await directory.search_cities(q, country, state)


@router.get(
    "/addresses",
    response_model=LookupResult[str],
    summary="Sample street addresses for a city",
)
async def search_addresses(
    city: str = Query(..., min_length=1, max_length=100),
    q: str = Query(..., min_length=2, max_length=200),
    directory: LocationDirectory = Depends(get_location_directory),
) -> LookupResult[str]:
    return directory.addresses(city, q)


@router.get(
    "/coordinates",
    response_model=CoordinatesResponse,
    summary="Representative coordinate of a country",
    description="Unknown countries resolve to 0, 0. Responds after the generator delay.",
)
async def country_coordinates(
    country: str = Query(..., min_length=1, max_length=100),
    generator: CoordinateGenerator = Depends(get_coordinate_generator),
) -> CoordinatesResponse:
    coordinates = await generator.generate(country)
    return CoordinatesResponse(
        country=country,
        latitude=format_coordinate(coordinates.latitude),
        longitude=format_coordinate(coordinates.longitude),
    )
