"""
CaseLocator Backend — Location Value Objects and API Schemas
=============================================================

What:  Pydantic models for the location domain (Country, State, City,
       Coordinates, FormLocation) and the API contracts built on them.
How:   FastAPI uses these models to validate request bodies, serialize
       responses, and generate OpenAPI documentation. Services use the same
       models as immutable value objects.
Who:   Providers, the directory, the cascade controller, and route handlers.

Immutability:
    Country/State/City/Coordinates/FormLocation are frozen. A cascade step
    never patches a list or a location in place; it builds a new value
    (`model_copy(update=...)`) and replaces the old one wholesale.
"""

from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Location Value Objects
# ══════════════════════════════════════════════════════════════════════════


class Country(BaseModel):
    """A country as listed by the location API: ISO alpha-2 code + display name."""

    code: str = Field(description="ISO 3166-1 alpha-2 code, e.g. 'DE'")
    name: str = Field(description="Display name, the value stored in the form")

    model_config = {"frozen": True}


class State(BaseModel):
    """A first-level subdivision (state, province, region) of one country."""

    code: str = Field(description="Subdivision code within the country, e.g. 'BY'")
    name: str = Field(description="Display name, e.g. 'Bavaria'")

    model_config = {"frozen": True}


class City(BaseModel):
    """A city scoped to a country and, when known, a state."""

    id: int = Field(description="Provider identifier (fallback ids are synthetic)")
    name: str
    region: Optional[str] = Field(default=None, description="State/region name if known")
    country: Optional[str] = Field(default=None, description="Country name if known")

    model_config = {"frozen": True}


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees (WGS84)."""

    latitude: float
    longitude: float

    model_config = {"frozen": True}


def format_coordinate(value: float) -> str:
    """
    Render a coordinate the way the form stores it.

    Integral values drop the trailing ".0" so that (0, 0) is stored as
    "0"/"0"; everything else keeps its shortest round-trip representation.
    """
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    if text == "-0":
        text = "0"
    return text


class FormLocation(BaseModel):
    """
    What:  The externally visible location value of one case form.
    Who:   Owned by a single LocationCascadeController; read by the case form.

    All fields are display strings. Coordinates are decimal strings so the
    UI never has to deal with float formatting.
    """

    country: str = ""
    state: str = ""
    city: str = ""
    address: str = ""
    latitude: str = ""
    longitude: str = ""

    model_config = {"frozen": True}

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    def with_coordinates(self, coordinates: Coordinates) -> "FormLocation":
        return self.model_copy(
            update={
                "latitude": format_coordinate(coordinates.latitude),
                "longitude": format_coordinate(coordinates.longitude),
            }
        )

    @classmethod
    def from_case_record(cls, record: Optional[Dict[str, Any]]) -> "FormLocation":
        """
        Build the edit-mode location from a persisted case record.

        Accepts both camelCase (`gpsCoordinates`) and snake_case
        (`gps_coordinates`) keys; the coordinate value may be any format
        understood by `parse_gps_coordinates`. Missing values become "".
        """
        from caselocator.services.gps_parser import parse_gps_coordinates

        if not record:
            return cls()

        location = cls(
            country=str(record.get("country") or ""),
            state=str(record.get("state") or ""),
            city=str(record.get("city") or ""),
            address=str(record.get("address") or ""),
        )
        raw_gps = record.get("gpsCoordinates", record.get("gps_coordinates"))
        coordinates = parse_gps_coordinates(raw_gps)
        if coordinates is not None:
            location = location.with_coordinates(coordinates)
        return location


class DataSource(str, Enum):
    """Which provider supplied a lookup result."""

    REMOTE = "remote"
    FALLBACK = "fallback"


T = TypeVar("T")


class LookupResult(BaseModel, Generic[T]):
    """
    What:  A list of location items tagged with the provider that produced it.
    Who:   Returned by LocationDirectory and directly by the lookup routes.
    """

    items: List[T] = Field(default_factory=list)
    source: DataSource = DataSource.REMOTE

    @property
    def is_fallback(self) -> bool:
        return self.source == DataSource.FALLBACK


# ══════════════════════════════════════════════════════════════════════════
# Cascade State
# ══════════════════════════════════════════════════════════════════════════


class CascadePhase(str, Enum):
    """
    Phases of the location cascade state machine.

        IDLE ──country──▶ AWAITING_STATES ──states[]──▶ AWAITING_CITIES ──▶ READY
                                  │                          ▲
                                  └──states[n]──▶ SELECTING_STATE ──state──┘
    """

    IDLE = "idle"
    AWAITING_STATES = "awaiting_states"
    SELECTING_STATE = "selecting_state"
    AWAITING_CITIES = "awaiting_cities"
    READY = "ready"


class LoadingState(BaseModel):
    loading_countries: bool = False
    loading_states: bool = False
    loading_cities: bool = False
    loading_coordinates: bool = False


class CascadeSnapshot(BaseModel):
    """
    What:  Serializable view of one cascade controller.
    Who:   Returned by every /api/location-sessions endpoint.
    """

    session_id: Optional[str] = None
    location: FormLocation
    phase: CascadePhase
    hydrating: bool = Field(description="True until the edit-mode cascade has run once")
    countries: List[Country]
    states: List[State]
    cities: List[City]
    city_suggestions: List[City]
    address_suggestions: List[str]
    show_city_suggestions: bool
    show_address_suggestions: bool
    loading: LoadingState
    offline_notice: Optional[str] = Field(
        default=None,
        description="Passive notice shown while fallback data is in use",
    )


# ══════════════════════════════════════════════════════════════════════════
# Request / Response Models
# ══════════════════════════════════════════════════════════════════════════


class FieldUpdateRequest(BaseModel):
    """Body for country/state/city/search updates on a session."""

    value: str = Field(default="", max_length=200)


class CitySelectRequest(BaseModel):
    """Body for selecting a city from the dropdown or suggestion list."""

    city: City


class SessionCreateRequest(BaseModel):
    """
    Body for opening a location session.

    `case` is the persisted case record for edit mode; omit it (or send
    null) for a new case.
    """

    case: Optional[Dict[str, Any]] = Field(default=None)


class CoordinatesResponse(BaseModel):
    country: str
    latitude: str
    longitude: str


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or degraded")
    version: str
    location_api: str = Field(description="available, unavailable, or circuit_open")
    active_sessions: int
    uptime_seconds: float


class ErrorResponse(BaseModel):
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable explanation")
    details: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = None
