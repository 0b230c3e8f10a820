"""
CaseLocator Backend — Coordinate Generator
===========================================

What:  Produces a representative latitude/longitude for a country.
How:   Fixed table lookup after an artificial delay that lets the form show
       a loading affordance. Unknown countries resolve to (0, 0).
Who:   LocationCascadeController (after city selection, or on an explicit
       regenerate) and GET /api/locations/coordinates.

This is a representative-point generator, not a geocoder: it never
resolves to city- or address-level precision.
"""

import asyncio
import logging
from typing import Optional

from caselocator.config import settings
from caselocator.schemas.location import Coordinates
from caselocator.services.fallback_provider import FallbackLocationProvider, fallback_provider

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = Coordinates(latitude=0.0, longitude=0.0)


class CoordinateGenerator:
    def __init__(
        self,
        fallback: Optional[FallbackLocationProvider] = None,
        delay_seconds: Optional[float] = None,
    ):
        self.fallback = fallback or fallback_provider
        self.delay_seconds = (
            settings.coordinate_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.calls = 0

    async def generate(self, country: str) -> Coordinates:
        self.calls += 1
        await asyncio.sleep(self.delay_seconds)
        coordinates = self.fallback.coordinates_for(country)
        if coordinates is None:
            logger.info("No representative coordinate for '%s'; using (0, 0)", country)
            return UNKNOWN_COUNTRY
        return coordinates


coordinate_generator = CoordinateGenerator()


def get_coordinate_generator() -> CoordinateGenerator:
    return coordinate_generator
