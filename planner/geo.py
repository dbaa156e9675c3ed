"""Great-circle helpers. Distances are metres, never degrees."""
from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Iterable, Optional

from planner.schemas import GeoPoint

EARTH_RADIUS_M = 6_371_008.8


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between two points in metres."""
    dlat = radians(b.latitude - a.latitude)
    dlon = radians(b.longitude - a.longitude)
    h = sin(dlat / 2) ** 2 + cos(radians(a.latitude)) * cos(radians(b.latitude)) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(min(1.0, sqrt(h)))


def path_length_m(points: Iterable[GeoPoint]) -> float:
    total = 0.0
    previous: Optional[GeoPoint] = None
    for point in points:
        if previous is not None:
            total += distance_m(previous, point)
        previous = point
    return total


def is_valid_coordinate(lat: float, lon: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def parse_coordinates(text: str) -> Optional[GeoPoint]:
    """Parse a literal ``"lat,lon"`` pair; anything else returns None."""
    parts = text.split(",")
    if len(parts) != 2:
        return None
    try:
        lat, lon = float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        return None
    if not is_valid_coordinate(lat, lon):
        return None
    return GeoPoint(latitude=lat, longitude=lon)
