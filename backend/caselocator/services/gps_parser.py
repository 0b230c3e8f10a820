"""
CaseLocator Backend — GPS Coordinate Parsing
=============================================

What:  Decodes the coordinate value stored on a persisted case so an
       existing case can pre-populate its FormLocation.
Who:   FormLocation.from_case_record, session creation in edit mode.

Accepted formats:
    {"type": "Point", "coordinates": [lng, lat]}   GeoJSON (longitude first)
    "40.7128, -74.0060"                            "lat,lng" text
    "POINT(-74.0060 40.7128)"                      WKT (longitude first)
    "0101000020E6100000…"                          PostGIS (E)WKB hex point

Anything else, or any out-of-range value, parses to None.
"""

import logging
import re
import struct
from typing import Any, Optional

from caselocator.schemas.location import Coordinates

logger = logging.getLogger(__name__)

_WKT_POINT = re.compile(
    r"POINT\s*\(\s*([+-]?\d*\.?\d+)\s+([+-]?\d*\.?\d+)\s*\)", re.IGNORECASE
)
_HEX = re.compile(r"^[0-9a-fA-F]+$")

_WKB_POINT = 1
_EWKB_SRID_FLAG = 0x20000000


def is_valid_gps_coordinate(coordinates: Optional[Coordinates]) -> bool:
    if coordinates is None:
        return False
    return -90 <= coordinates.latitude <= 90 and -180 <= coordinates.longitude <= 180


def format_gps_coordinates(coordinates: Optional[Coordinates]) -> str:
    """Display form: "lat, lng" with six decimals."""
    if coordinates is None:
        return "No coordinates available"
    return f"{coordinates.latitude:.6f}, {coordinates.longitude:.6f}"


def parse_gps_coordinates(value: Any) -> Optional[Coordinates]:
    """
    Parse a stored GPS value into Coordinates.

    Returns None for empty, unrecognised, or out-of-range input; never raises.
    """
    if not value:
        return None

    if isinstance(value, dict):
        coordinates = _from_geojson(value)
    elif isinstance(value, str):
        coordinates = _from_text(value.strip())
    else:
        logger.debug("Unsupported GPS value type: %s", type(value).__name__)
        return None

    if coordinates is None:
        return None
    if not is_valid_gps_coordinate(coordinates):
        logger.warning(
            "Ignoring out-of-range GPS coordinates: %s, %s",
            coordinates.latitude,
            coordinates.longitude,
        )
        return None
    return coordinates


def _from_geojson(value: dict) -> Optional[Coordinates]:
    if value.get("type") != "Point":
        return None
    pair = value.get("coordinates")
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        return None
    try:
        return Coordinates(longitude=float(pair[0]), latitude=float(pair[1]))
    except (TypeError, ValueError):
        return None


def _from_text(text: str) -> Optional[Coordinates]:
    if "," in text:
        parts = text.split(",")
        if len(parts) == 2:
            try:
                return Coordinates(latitude=float(parts[0]), longitude=float(parts[1]))
            except ValueError:
                return None

    match = _WKT_POINT.search(text)
    if match:
        return Coordinates(longitude=float(match.group(1)), latitude=float(match.group(2)))

    if _HEX.match(text) and len(text) % 2 == 0:
        return _from_wkb(bytes.fromhex(text))
    return None


def _from_wkb(data: bytes) -> Optional[Coordinates]:
    """
    Decode a WKB/EWKB point.

    Layout: [1 byte order][4 geometry type][4 SRID if flagged][8 X][8 Y]
    """
    if len(data) < 21 or data[0] not in (0, 1):
        return None
    endian = "<" if data[0] == 1 else ">"
    (geometry_type,) = struct.unpack_from(endian + "I", data, 1)

    offset = 5
    if geometry_type & _EWKB_SRID_FLAG:
        offset += 4
    if geometry_type & 0xFF != _WKB_POINT or len(data) < offset + 16:
        return None

    longitude, latitude = struct.unpack_from(endian + "dd", data, offset)
    if longitude != longitude or latitude != latitude:  # NaN
        return None
    return Coordinates(latitude=latitude, longitude=longitude)
