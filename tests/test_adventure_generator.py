import asyncio

import pytest

from planner.agents.adventure_generator import AdventureGenerator, describe
from planner.agents.route_optimizer import build_itinerary
from planner.agents.travel_estimator import TravelEstimator
from planner.catalog import CategoryDurationTable
from planner.schemas import Budget, Category, GeoPoint

START = GeoPoint(latitude=0.0, longitude=0.0)
TABLE = CategoryDurationTable(
    {Category.museum: 1800, Category.nature: 1800, Category.zoo: 3600, Category.culture: 1200, Category.aquarium: 900}
)


def _generator():
    return AdventureGenerator(TravelEstimator(), TABLE)


def test_generate_takes_closest_three_and_honours_exclusion(place):
    pool = [
        place("zoo", Category.zoo, 0.001, 0.0),
        place("museum", Category.museum, 0.002, 0.0),
        place("park", Category.nature, 0.003, 0.0),
        place("theatre", Category.culture, 0.004, 0.0),
        place("aquarium", Category.aquarium, 0.005, 0.0),
    ]
    budget = Budget(time_budget=10_000, radius_budget=5000)

    stops, description = _generator().generate(START, pool, Category.zoo, budget)

    assert [s.id for s in stops] == ["museum", "park", "theatre"]
    assert description == "A varied route: Museums, Nature, Culture"


def test_generate_rechecks_remaining_budget(place):
    pool = [
        place("museum", Category.museum, 0.001, 0.0),
        place("park", Category.nature, 0.002, 0.0),
        place("aquarium", Category.aquarium, 0.003, 0.0),
        place("zoo", Category.zoo, 0.004, 0.0),
    ]
    budget = Budget(time_budget=3000, radius_budget=5000)

    stops, _ = _generator().generate(START, pool, None, budget)

    # zoo exceeds the whole budget; park no longer fits after the museum
    assert [s.id for s in stops] == ["museum", "aquarium"]


def test_generate_respects_radius(place):
    pool = [place("far", Category.museum, 0.5, 0.0)]
    stops, description = _generator().generate(START, pool, None, Budget(time_budget=10_000, radius_budget=5000))
    assert stops == []
    assert description == "No adventure found"


def test_descriptions(place):
    a = place("tate", Category.museum, 0.0, 0.0)
    b = place("british museum", Category.museum, 0.0, 0.0)
    assert describe([a]) == "A unique discovery: Tate"
    assert describe([a, b]) == "An immersion in Museums with 2 places"


def test_replace_keeps_categories_distinct(place, start):
    async def run() -> None:
        museum = place("museum", Category.museum, 0.001, 0.0)
        park = place("park", Category.nature, 0.002, 0.0)
        budget = Budget(time_budget=4000, radius_budget=5000)
        itinerary = await build_itinerary(start, [museum, park], TravelEstimator(), durations=TABLE, budget=budget)

        pool = [
            place("museum", Category.museum, 0.001, 0.0),
            place("gallery", Category.museum, 0.003, 0.0),
            place("zoo", Category.zoo, 0.003, 0.0),
            place("theatre", Category.culture, 0.004, 0.0),
        ]
        replaced = await _generator().replace(itinerary, 1, pool)

        assert [s.place.id for s in replaced.stops] == ["museum", "theatre"]
        assert [s.order for s in replaced.stops] == [1, 2]
        assert replaced.total_visit_time == 3000
        assert len({s.place.category for s in replaced.stops}) == 2
        assert itinerary.stops[1].place.id == "park"

    asyncio.run(run())


def test_replace_without_candidate_returns_same_itinerary(place, start):
    async def run() -> None:
        museum = place("museum", Category.museum, 0.001, 0.0)
        budget = Budget(time_budget=2000, radius_budget=5000)
        itinerary = await build_itinerary(start, [museum], TravelEstimator(), durations=TABLE, budget=budget)

        same = await _generator().replace(itinerary, 0, [place("zoo", Category.zoo, 0.001, 0.0)])
        assert same is itinerary

        with pytest.raises(IndexError):
            await _generator().replace(itinerary, 3, [])

    asyncio.run(run())
