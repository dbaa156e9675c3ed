from enum import Enum
from typing import FrozenSet, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ------- Value types -------
class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class TransportMode(str, Enum):
    walking = "walking"
    cycling = "cycling"
    driving = "driving"
    public_transport = "public_transport"


class Category(str, Enum):
    restaurant = "restaurant"
    culture = "culture"
    sport = "sport"
    shopping = "shopping"
    nature = "nature"
    entertainment = "entertainment"
    historical = "historical"
    museum = "museum"
    bar = "bar"
    cafe = "cafe"
    religious = "religious"
    adventure_park = "adventure_park"
    ice_rink = "ice_rink"
    swimming_pool = "swimming_pool"
    climbing_gym = "climbing_gym"
    escape_room = "escape_room"
    laser_tag = "laser_tag"
    bowling = "bowling"
    mini_golf = "mini_golf"
    paintball = "paintball"
    karting = "karting"
    trampoline_park = "trampoline_park"
    water_park = "water_park"
    zoo = "zoo"
    aquarium = "aquarium"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES.get(self, self.value.replace("_", " ").title())


_CATEGORY_NAMES = {
    Category.restaurant: "Restaurants",
    Category.museum: "Museums",
    Category.bar: "Bars",
    Category.cafe: "Cafes",
    Category.historical: "Historic sites",
    Category.religious: "Religious sites",
    Category.adventure_park: "Adventure parks",
    Category.ice_rink: "Ice rinks",
    Category.swimming_pool: "Swimming pools",
    Category.climbing_gym: "Climbing gyms",
    Category.escape_room: "Escape rooms",
    Category.laser_tag: "Laser tag",
    Category.mini_golf: "Mini golf",
    Category.trampoline_park: "Trampoline parks",
    Category.water_park: "Water parks",
    Category.zoo: "Zoos",
    Category.aquarium: "Aquariums",
}


class Placemark(BaseModel):
    """One geocoder hit, reduced to the fields the relevance score reads."""

    model_config = ConfigDict(frozen=True)

    point: GeoPoint
    name: Optional[str] = None
    house_number: Optional[str] = None
    street: Optional[str] = None
    locality: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    @property
    def formatted_address(self) -> str:
        parts = [self.house_number, self.street, self.locality, self.postal_code]
        return ", ".join(p for p in parts if p)


class ResolutionContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str = "en"
    default_city: Optional[str] = None


class ResolvedAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_text: str
    point: GeoPoint
    display_name: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: Literal["coordinates", "geocoder", "fallback", "device"] = "geocoder"
    attempt: int = 1
    address: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


class PlaceCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: Category
    point: GeoPoint
    rating: Optional[float] = None
    description_tags: FrozenSet[str] = Field(default_factory=frozenset)


class Budget(BaseModel):
    """Time budget and radius for one planning request (seconds / metres)."""

    model_config = ConfigDict(frozen=True)

    time_budget: float = Field(..., ge=0.0)
    radius_budget: float = Field(..., ge=0.0)
    tolerance_margin: float = Field(600.0, ge=0.0)
    round_trip: bool = False


# ------- Itineraries -------
class ItineraryStop(BaseModel):
    model_config = ConfigDict(frozen=True)

    place: PlaceCandidate
    order: int
    visit_duration: float
    travel_time: float
    distance_from_previous: float
    arrival: float
    departure: float
    travel_source: Literal["directions", "speed_model"] = "speed_model"


class Itinerary(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: ResolvedAddress
    stops: Tuple[ItineraryStop, ...] = ()
    mode: TransportMode = TransportMode.walking
    total_visit_time: float = 0.0
    total_travel_time: float = 0.0
    total_distance: float = 0.0
    return_travel_time: float = 0.0
    degraded_legs: int = 0
    budget: Optional[Budget] = None

    @computed_field  # type: ignore[misc]
    @property
    def total_duration(self) -> float:
        return self.total_visit_time + self.total_travel_time

    @property
    def places(self) -> List[PlaceCandidate]:
        return [stop.place for stop in self.stops]


class ReplacementRequest(BaseModel):
    itinerary: Itinerary
    index_to_replace: int = Field(..., ge=0)
    remaining_pool: List[PlaceCandidate] = Field(default_factory=list)


class ScoredCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    place: PlaceCandidate
    distance: float
    visit_duration: float
    score: float
    description: str


class GuidedTour(BaseModel):
    title: str
    city: Optional[str] = None
    stops: List[PlaceCandidate] = Field(default_factory=list)


# ------- Request models -------
class StartPoint(BaseModel):
    """Either typed text or a device-reported coordinate."""

    address: str = ""
    device_location: Optional[GeoPoint] = None


class DayTripRequest(BaseModel):
    start_address: str = Field(..., min_length=1)
    destinations: List[str] = Field(default_factory=list)
    mode: TransportMode = TransportMode.walking
    round_trip: bool = False

    @field_validator("start_address")
    @classmethod
    def _start_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("start_address must not be blank")
        return value


class SuggestionRequest(StartPoint):
    categories: List[Category] = Field(default_factory=list)
    radius_km: float = Field(5.0, gt=0.0)
    available_time: float = Field(3600.0, gt=0.0)
    mode: TransportMode = TransportMode.walking
    fill_in: bool = True
    round_trip: bool = False


class AdventureRequest(StartPoint):
    radius_km: float = Field(5.0, gt=0.0)
    available_time: float = Field(3600.0, gt=0.0)
    excluded_category: Optional[Category] = None
    mode: TransportMode = TransportMode.walking


class GuidedTourRequest(StartPoint):
    tour: GuidedTour
    mode: TransportMode = TransportMode.walking


# ------- Response models -------
class SuggestionPlan(BaseModel):
    itinerary: Itinerary
    suggestions: List[ScoredCandidate] = Field(default_factory=list)
    missing_categories: List[Category] = Field(default_factory=list)


class AdventureResult(BaseModel):
    itinerary: Itinerary
    description: str
    candidate_pool: List[PlaceCandidate] = Field(default_factory=list)
