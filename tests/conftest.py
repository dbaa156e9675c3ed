from typing import Dict, List, Optional

import pytest

from planner.errors import DirectionsUnavailable, ServiceError
from planner.orchestrator import PlannerServices
from planner.schemas import Category, GeoPoint, PlaceCandidate, Placemark, ResolvedAddress


class FakeGeocoder:
    """Canned placemarks keyed by exact query; records every call."""

    def __init__(self, results: Optional[Dict[str, List[Placemark]]] = None, reverse_result=None, errors=None):
        self.results = results or {}
        self.reverse_result = reverse_result
        self.errors = list(errors or [])
        self.queries: List[str] = []

    async def geocode(self, query, language="en"):
        self.queries.append(query)
        if self.errors:
            raise self.errors.pop(0)
        return list(self.results.get(query, []))

    async def reverse(self, point, language="en"):
        if isinstance(self.reverse_result, Exception):
            raise self.reverse_result
        return self.reverse_result


class FakePlaces:
    def __init__(self, by_category: Optional[Dict[Category, List[PlaceCandidate]]] = None, failing=()):
        self.by_category = by_category or {}
        self.failing = set(failing)
        self.searched: List[Category] = []

    async def search(self, category, center, radius_m):
        self.searched.append(category)
        if category in self.failing:
            raise ServiceError(f"{category.value} search failed")
        return list(self.by_category.get(category, []))


class FailingDirections:
    def __init__(self):
        self.calls = 0

    async def duration(self, origin, destination, mode):
        self.calls += 1
        raise DirectionsUnavailable("no route")


def make_place(pid: str, category: Category, lat: float, lon: float, rating=None, tags=()) -> PlaceCandidate:
    return PlaceCandidate(
        id=pid,
        name=pid.title(),
        category=category,
        point=GeoPoint(latitude=lat, longitude=lon),
        rating=rating,
        description_tags=frozenset(tags),
    )


def make_start(lat: float = 0.0, lon: float = 0.0) -> ResolvedAddress:
    return ResolvedAddress(
        input_text="start",
        point=GeoPoint(latitude=lat, longitude=lon),
        display_name="Start",
        confidence=1.0,
        source="coordinates",
    )


@pytest.fixture
def place():
    return make_place


@pytest.fixture
def start():
    return make_start()


@pytest.fixture
def services_factory():
    def build(geocoder=None, places=None, directions=None, **kwargs) -> PlannerServices:
        return PlannerServices(
            geocoder=geocoder or FakeGeocoder(),
            places=places or FakePlaces(),
            directions=directions,
            geocode_retry_delay=0.0,
            **kwargs,
        )

    return build
