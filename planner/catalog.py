"""Static planning tables: visit durations, city centroids, travel speeds."""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from planner.schemas import Category, GeoPoint, TransportMode

# Expected visit length per category, in seconds.
DEFAULT_CATEGORY_DURATIONS: Dict[Category, float] = {
    Category.restaurant: 4500,
    Category.cafe: 2400,
    Category.bar: 2400,
    Category.museum: 5400,
    Category.culture: 4500,
    Category.sport: 3600,
    Category.shopping: 3600,
    Category.nature: 4500,
    Category.entertainment: 5400,
    Category.aquarium: 7200,
    Category.zoo: 7200,
    Category.historical: 2700,
    Category.religious: 2700,
    Category.adventure_park: 7200,
    Category.ice_rink: 3600,
    Category.swimming_pool: 3600,
    Category.climbing_gym: 4500,
    Category.escape_room: 3600,
    Category.laser_tag: 4500,
    Category.paintball: 4500,
    Category.bowling: 3600,
    Category.mini_golf: 2700,
    Category.karting: 2700,
    Category.trampoline_park: 3600,
    Category.water_park: 10800,
}

FALLBACK_VISIT_DURATION = 5400.0


class CategoryDurationTable:
    """Category → expected visit duration lookup."""

    def __init__(self, durations: Optional[Mapping[Category, float]] = None, default: float = FALLBACK_VISIT_DURATION):
        self._durations: Dict[Category, float] = dict(DEFAULT_CATEGORY_DURATIONS if durations is None else durations)
        self.default = default

    def duration_for(self, category: Category) -> float:
        return float(self._durations.get(category, self.default))

    def total(self, categories: Iterable[Category]) -> float:
        return sum(self.duration_for(c) for c in categories)


# Average speeds in km/h. The day-trip flow assumes faster city driving than
# the suggestion flow, which also waits longer for public transport.
DAY_TRIP_SPEEDS: Dict[TransportMode, float] = {
    TransportMode.walking: 5.0,
    TransportMode.cycling: 15.0,
    TransportMode.driving: 40.0,
    TransportMode.public_transport: 25.0,
}

SUGGESTION_SPEEDS: Dict[TransportMode, float] = {
    TransportMode.walking: 5.0,
    TransportMode.cycling: 15.0,
    TransportMode.driving: 30.0,
    TransportMode.public_transport: 20.0,
}

# Categories searched for "surprise" adventures.
UNUSUAL_CATEGORIES: Tuple[Category, ...] = (
    Category.culture,
    Category.museum,
    Category.nature,
    Category.entertainment,
    Category.aquarium,
    Category.zoo,
)


def _pt(lat: float, lon: float) -> GeoPoint:
    return GeoPoint(latitude=lat, longitude=lon)


# Substring aliases → centroid, checked in order.
CITY_CENTROIDS: List[Tuple[Tuple[str, ...], GeoPoint]] = [
    (("paris", "france"), _pt(48.8566, 2.3522)),
    (("lyon",), _pt(45.7578, 4.8320)),
    (("marseille",), _pt(43.2965, 5.3698)),
    (("toulouse",), _pt(43.6047, 1.4442)),
    (("nice",), _pt(43.7102, 7.2620)),
    (("nantes",), _pt(47.2184, -1.5536)),
    (("strasbourg",), _pt(48.5734, 7.7521)),
    (("montpellier",), _pt(43.6108, 3.8767)),
    (("bordeaux",), _pt(44.8378, -0.5792)),
    (("lille",), _pt(50.6292, 3.0573)),
    (("reims",), _pt(49.2583, 4.0317)),
    (("saint-étienne", "saint etienne"), _pt(45.4397, 4.3872)),
    (("toulon",), _pt(43.1242, 5.9280)),
    (("le havre",), _pt(49.4944, 0.1079)),
    (("grenoble",), _pt(45.1885, 5.7245)),
    (("dijon",), _pt(47.3220, 5.0415)),
    (("angers",), _pt(47.4784, -0.5632)),
    (("saint-denis",), _pt(48.9362, 2.3574)),
    (("nîmes", "nimes"), _pt(43.8367, 4.3601)),
    (("bruxelles", "brussels"), _pt(50.8503, 4.3517)),
    (("antwerpen", "antwerp"), _pt(51.2194, 4.4025)),
    (("gent", "ghent"), _pt(51.0500, 3.7303)),
    (("charleroi",), _pt(50.4108, 4.4446)),
    (("liège", "liege"), _pt(50.6326, 5.5797)),
    (("brugge", "bruges"), _pt(51.2093, 3.2247)),
    (("namur",), _pt(50.4674, 4.8719)),
    (("luxembourg",), _pt(49.6116, 6.1319)),
    (("zurich",), _pt(47.3769, 8.5417)),
    (("genève", "geneva"), _pt(46.2044, 6.1432)),
    (("basel",), _pt(47.5596, 7.5886)),
    (("bern",), _pt(46.9479, 7.4474)),
    (("lausanne",), _pt(46.5197, 6.6323)),
    (("berlin",), _pt(52.5200, 13.4050)),
    (("hamburg",), _pt(53.5511, 9.9937)),
    (("münchen", "munich"), _pt(48.1351, 11.5820)),
    (("köln", "cologne"), _pt(50.9375, 6.9603)),
    (("frankfurt",), _pt(50.1109, 8.6821)),
    (("stuttgart",), _pt(48.7758, 9.1829)),
    (("düsseldorf", "dusseldorf"), _pt(51.2277, 6.7735)),
    (("london",), _pt(51.5074, -0.1278)),
    (("amsterdam",), _pt(52.3676, 4.9041)),
    (("madrid",), _pt(40.4168, -3.7038)),
    (("barcelona",), _pt(41.3874, 2.1686)),
    (("rome", "roma"), _pt(41.9028, 12.4964)),
    (("milan", "milano"), _pt(45.4642, 9.1900)),
    (("prague", "praha"), _pt(50.0755, 14.4378)),
    (("istanbul",), _pt(41.0082, 28.9784)),
    (("ankara",), _pt(39.9334, 32.8597)),
    (("tokyo",), _pt(35.6762, 139.6503)),
    (("osaka",), _pt(34.6937, 135.5023)),
    (("kyoto",), _pt(35.0116, 135.7681)),
    (("beijing",), _pt(39.9042, 116.4074)),
    (("shanghai",), _pt(31.2304, 121.4737)),
    (("new york",), _pt(40.7128, -74.0060)),
    (("tanger", "tangier"), _pt(35.7595, -5.8340)),
    (("casablanca",), _pt(33.5731, -7.5898)),
    (("ain sebaa", "aïn sebaâ", "ain sebaâ", "aïn sebaa"), _pt(33.5957, -7.6328)),
    (("marrakech",), _pt(31.6295, -7.9811)),
    (("fès", "fez"), _pt(34.0181, -5.0078)),
    (("rabat",), _pt(34.0209, -6.8416)),
    (("agadir",), _pt(30.4278, -9.5981)),
]

# City names recognised inside free text, in match order. "france" only
# selects a centroid, it is never queried as a city.
KNOWN_CITIES: Tuple[str, ...] = tuple(
    alias for aliases, _ in CITY_CENTROIDS for alias in aliases if alias != "france"
)


def extract_city(text: str) -> Optional[str]:
    """Return the first known city mentioned in ``text``, title-cased."""
    lowered = text.lower()
    for city in KNOWN_CITIES:
        if city in lowered:
            return city.title()
    return None


def city_centroid(text: str, default_city: str = "Luxembourg") -> Tuple[str, GeoPoint]:
    """Centroid of the first city alias found in ``text``, else of ``default_city``."""
    lowered = text.lower()
    for aliases, point in CITY_CENTROIDS:
        for alias in aliases:
            if alias in lowered:
                return alias.title(), point
    default_lower = default_city.lower()
    for aliases, point in CITY_CENTROIDS:
        if default_lower in aliases:
            return default_city, point
    return "Luxembourg", _pt(49.6116, 6.1319)
